"""
tickstore 的 Action 定義模組。

此模組提供 Action 類別、Action 生成器，以及讀取判別欄位的共用函數。
Store 本身接受任何帶有 type 判別欄位的值：映射（{"type": ...}）
或具有 type 屬性的物件（例如本模組的 Action）。
"""
from typing import Any, Callable, Dict, Generic, Mapping, Optional, Union

from .immutable_utils import to_immutable
from .types import P, ActionCreator

INIT_ACTION_TYPE = "@@INIT"


class Action(Generic[P]):
    """
    表示一個有類型和可選負載的動作。

    泛型參數:
        P: 負載的類型

    屬性:
        type: 動作的類型字符串
        payload: 動作的負載數據（可選）
    """
    __slots__ = ('type', 'payload')

    def __init__(self, type: str, payload: Optional[P] = None):
        super().__setattr__('type', type)
        super().__setattr__('payload', payload)

    def __setattr__(self, name, value):
        raise AttributeError(f"Cannot modify immutable instance attribute '{name}'")

    def __eq__(self, other):
        if not isinstance(other, Action):
            return False
        return self.type == other.type and self.payload == other.payload

    def __hash__(self):
        return hash((self.type, self.payload))

    def __repr__(self):
        return f"Action(type='{self.type}', payload={repr(self.payload)})"


def get_action_type(action: Any) -> Optional[str]:
    """
    讀取 action 的判別欄位。

    Args:
        action: 映射或帶 type 屬性的物件

    Returns:
        判別值；如果 action 沒有判別欄位則返回 None
    """
    if isinstance(action, Mapping):
        return action.get("type")
    return getattr(action, "type", None)


def create_action(action_type: str, prepare_fn: Optional[Callable[..., Any]] = None) -> ActionCreator:
    """
    創建一個 Action 生成器函數。

    Args:
        action_type: Action 的類型標識符
        prepare_fn: 可選的預處理函數，用於在創建 Action 前處理輸入參數

    Returns:
        一個可調用的函數，用於生成指定類型的 Action

    範例:
        >>> increment = create_action("[Counter] Increment")
        >>> increment()
        Action(type='[Counter] Increment', payload=None)
        >>> add = create_action("[Counter] Add", lambda amount: amount)
        >>> add(5)
        Action(type='[Counter] Add', payload=5)
    """
    def action_creator(*args: Any, **kwargs: Any) -> Action[Any]:
        if prepare_fn:
            payload = prepare_fn(*args, **kwargs)
        elif len(args) == 1 and not kwargs:
            payload = args[0]
        elif args or kwargs:
            payload: Dict[Union[int, str], Any] = dict(zip(range(len(args)), args))
            payload.update(kwargs)
        else:
            return Action(action_type)
        return Action(action_type, to_immutable(payload))

    # 添加 type 屬性以便於識別
    action_creator.type = action_type  # type: ignore

    return action_creator  # type: ignore[return-value]


# 根 Actions
init_store: ActionCreator = create_action(INIT_ACTION_TYPE)
