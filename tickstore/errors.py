"""
tickstore 錯誤處理模組。

定義 Store、Signal、Middleware 在執行期間可能拋出的所有異常，
以及一個集中式的錯誤處理器，用於日誌記錄與錯誤回報。

所有錯誤都會同步地拋給直接呼叫者；ErrorHandler 只負責記錄與通知，
從不吞掉異常。
"""

import functools
import logging
import traceback
from typing import Any, Callable, Dict, List, Optional, TypeVar, Union

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


class TickStoreError(Exception):
    """所有 tickstore 異常的基礎類。"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.traceback = "".join(traceback.format_stack()[:-1])

    def to_dict(self) -> Dict[str, Any]:
        """
        將錯誤轉換為可序列化的字典。

        Returns:
            包含錯誤類型、訊息與細節的字典
        """
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": dict(self.details),
            "traceback": self.traceback,
        }

    def __str__(self) -> str:
        if not self.details:
            return self.message
        details = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
        return f"{self.message} ({details})"


class ConfigurationError(TickStoreError):
    """配置相關的錯誤。"""

    def __init__(self, message: str, component: str, config_key: Optional[str] = None, **kwargs: Any) -> None:
        details = {"component": component, **kwargs}
        if config_key is not None:
            details["config_key"] = config_key
        super().__init__(message, details)


class ActionError(TickStoreError):
    """與 Action 相關的錯誤，例如缺少 type 判別欄位。"""

    def __init__(self, message: str, action_type: Optional[str] = None, payload: Any = None, **kwargs: Any) -> None:
        details = {"action_type": action_type, **kwargs}
        if payload is not None:
            details["payload"] = payload
        super().__init__(message, details)


class ReducerError(TickStoreError):
    """與 Reducer 相關的錯誤。"""

    def __init__(self, message: str, reducer_name: str, action_type: Optional[str] = None, **kwargs: Any) -> None:
        details = {"reducer_name": reducer_name, **kwargs}
        if action_type is not None:
            details["action_type"] = action_type
        super().__init__(message, details)


class ReentrantDispatchError(ReducerError):
    """Reducer 執行期間再次 dispatch 時拋出。"""


class StoreError(TickStoreError):
    """與 Store 相關的錯誤。"""

    def __init__(self, message: str, operation: str, **kwargs: Any) -> None:
        super().__init__(message, {"operation": operation, **kwargs})


class StoreDestroyedError(StoreError):
    """在已銷毀的 Store 上呼叫 dispatch 或 flush 時拋出。"""


class MiddlewareError(TickStoreError):
    """與 Middleware 相關的錯誤。"""

    def __init__(self, message: str, middleware_name: str, action_type: Optional[str] = None, **kwargs: Any) -> None:
        details = {"middleware_name": middleware_name, **kwargs}
        if action_type is not None:
            details["action_type"] = action_type
        super().__init__(message, details)


class SignalError(TickStoreError):
    """與 Signal 相關的錯誤。"""

    def __init__(self, message: str, listener_name: Optional[str] = None, **kwargs: Any) -> None:
        details = dict(kwargs)
        if listener_name is not None:
            details["listener_name"] = listener_name
        super().__init__(message, details)


class BlockingListenerError(SignalError):
    """監聽器試圖掛起（例如返回 coroutine）時拋出。"""


class ErrorHandler:
    """
    集中式錯誤處理器，用於日誌記錄和錯誤報告。

    處理器只觀察錯誤，不改變其傳播：呼叫 handle 之後，
    呼叫端仍然必須自行拋出該錯誤。
    """

    def __init__(self, log_to_console: bool = True, log_to_file: bool = False, log_file: Optional[str] = None) -> None:
        """
        初始化錯誤處理器。

        Args:
            log_to_console: 是否將錯誤寫入 tickstore 的 logger
            log_to_file: 是否額外寫入檔案
            log_file: 日誌檔案路徑，log_to_file 為 True 時必須提供
        """
        if log_to_file and not log_file:
            raise ConfigurationError("log_file is required when log_to_file is enabled",
                                     component="ErrorHandler", config_key="log_file")
        self.log_to_console = log_to_console
        self.log_to_file = log_to_file
        self.log_file = log_file
        self.handlers: List[Callable[[TickStoreError], None]] = []
        self._file_logger: Optional[logging.Logger] = None
        self._file_handler: Optional[logging.FileHandler] = None

        if log_to_file:
            self._file_logger = logging.getLogger(f"{__name__}.file.{id(self)}")
            self._file_handler = logging.FileHandler(log_file, encoding="utf-8")
            self._file_handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
            self._file_logger.addHandler(self._file_handler)
            self._file_logger.propagate = False

    def register_handler(self, handler: Callable[[TickStoreError], None]) -> None:
        """
        註冊一個錯誤回調。

        Args:
            handler: 接收 TickStoreError 的函數
        """
        self.handlers.append(handler)

    def unregister_handler(self, handler: Callable[[TickStoreError], None]) -> None:
        if handler in self.handlers:
            self.handlers.remove(handler)

    def handle(self, error: Union[TickStoreError, Exception]) -> None:
        """
        記錄錯誤並通知所有已註冊的回調。

        非 tickstore 的異常只記錄，不轉發給回調。

        Args:
            error: 要處理的錯誤
        """
        if self.log_to_console:
            logger.error("%s: %s", error.__class__.__name__, error)
        if self._file_logger is not None:
            self._file_logger.error("%s: %s", error.__class__.__name__, error)

        if isinstance(error, TickStoreError):
            for handler in list(self.handlers):
                handler(error)

    def close(self) -> None:
        """
        關閉檔案日誌：移除並關閉 FileHandler。可重複呼叫。

        關閉後 handle 仍然可用，只是不再寫入檔案。
        """
        if self._file_handler is None:
            return
        if self._file_logger is not None:
            self._file_logger.removeHandler(self._file_handler)
        self._file_handler.close()
        self._file_handler = None
        self._file_logger = None


# 單例錯誤處理器
global_error_handler = ErrorHandler()


def handle_error(func: F) -> F:
    """
    裝飾器：把被裝飾函數拋出的 tickstore 錯誤交給全域處理器，然後重新拋出。

    Args:
        func: 被裝飾的函數

    Returns:
        包裝後的函數
    """
    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except TickStoreError as err:
            global_error_handler.handle(err)
            raise
    return wrapper  # type: ignore[return-value]
