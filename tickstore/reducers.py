from typing import Any, Callable, Dict, Mapping, Optional

from .actions import get_action_type
from .errors import ReducerError, handle_error
from .types import S, Reducer


@handle_error
def create_reducer(initial_state: S, *handlers) -> Reducer:
    """
    創建一個 reducer 函式，根據 action 的 type 選擇處理函式。

    Args:
        initial_state: 初始狀態；reducer 收到 None 狀態時使用。
        *handlers: 一系列 (action_type, handler_fn) 元組或使用 on 函式創建的處理器。

    Returns:
        一個 reducer 函式；未知的 action 類型返回原狀態。
    """
    action_handlers: Dict[str, Callable[[Any, Any], Any]] = {}

    for handler in handlers:
        if isinstance(handler, tuple) and len(handler) == 2:
            action_type, handler_fn = handler
            action_handlers[action_type] = handler_fn
        elif isinstance(handler, Mapping):
            action_handlers.update(handler)
        else:
            raise ReducerError(
                "handlers must be (action_type, fn) tuples or on(...) mappings",
                reducer_name="create_reducer",
                handler=repr(handler),
            )

    def reducer(state: Optional[S] = None, action: Any = None) -> S:
        if state is None:
            state = initial_state
        if action is None:
            return state

        handler = action_handlers.get(get_action_type(action))
        if handler:
            return handler(state, action)
        return state

    # 設置 reducer 的初始狀態和處理器映射
    reducer.initial_state = initial_state  # type: ignore[attr-defined]
    reducer.handlers = action_handlers  # type: ignore[attr-defined]

    return reducer


def on(action_creator_or_type, handler) -> Dict[str, Callable[[Any, Any], Any]]:
    """
    創建一個 action 類型與處理函式的映射。

    Args:
        action_creator_or_type: Action 創建器函式或 Action 類型字串。
        handler: 處理該 Action 的函式，接收 (state, action) 並返回新狀態。

    Returns:
        一個包含 {action_type: handler} 的字典。
    """
    if callable(action_creator_or_type) and hasattr(action_creator_or_type, 'type'):
        action_type = action_creator_or_type.type
    else:
        action_type = str(action_creator_or_type)

    return {action_type: handler}


@handle_error
def combine_reducers(reducers: Mapping[str, Reducer]) -> Reducer:
    """
    把多個 reducer 組合成一個，每個 reducer 只處理自己鍵下的狀態切片。

    Args:
        reducers: 鍵到 reducer 的映射

    Returns:
        處理整個字典狀態的 reducer；沒有任何切片變化時返回同一個狀態物件。
    """
    for key, r in reducers.items():
        if not callable(r):
            raise ReducerError(f"reducer for key '{key}' must be callable", reducer_name=str(key))
    feature_reducers = dict(reducers)

    def combined(state: Optional[Dict[str, Any]] = None, action: Any = None) -> Dict[str, Any]:
        if state is None:
            state = {}

        changed = False
        new_state = dict(state)
        for feature_key, reducer in feature_reducers.items():
            # None 或缺少的切片交給該 reducer 的預設值
            prev_substate = state.get(feature_key)
            next_substate = reducer(prev_substate, action)
            if feature_key not in state or next_substate is not prev_substate:
                new_state[feature_key] = next_substate
                changed = True

        return new_state if changed else state

    combined.reducers = feature_reducers  # type: ignore[attr-defined]
    return combined
