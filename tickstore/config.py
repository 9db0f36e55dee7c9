"""
Store 配置。

StoreConfig 是一個凍結的 pydantic 模型；所有欄位都有預設值，
因此 Store(reducer) 不需要任何配置即可使用。
"""

from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from .actions import INIT_ACTION_TYPE
from .errors import ConfigurationError


class StoreConfig(BaseModel):
    """
    Store 的行為配置。

    屬性:
        init_action_type: 建構時直接送進 reducer 的初始化 action 類型
        report_errors: 是否在拋出錯誤前交給全域錯誤處理器記錄
        logger_name: Store 使用的 logger 名稱
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    init_action_type: str = INIT_ACTION_TYPE
    report_errors: bool = True
    logger_name: str = "tickstore"

    @field_validator("init_action_type", "logger_name")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "StoreConfig":
        """
        從映射建立配置，驗證失敗時轉換為 ConfigurationError。

        Args:
            data: 配置鍵值

        Returns:
            驗證後的 StoreConfig
        """
        try:
            return cls(**dict(data))
        except ValidationError as err:
            first = err.errors()[0]
            key = ".".join(str(part) for part in first.get("loc", ())) or None
            raise ConfigurationError(
                f"invalid store configuration: {first.get('msg')}",
                component="StoreConfig",
                config_key=key,
            ) from err
