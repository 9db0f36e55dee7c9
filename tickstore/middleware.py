"""
tickstore 的中介軟體定義模組。

中介軟體的形狀為 (next) -> (store, action) -> result。
compose 在 Store 建構時把中介軟體列表組合成單一 dispatch 函數：
列表中的第一個中介軟體位於最外層，最先看到每個 action，
它的返回值就是原始呼叫者拿到的結果。

此模組同時提供以鉤子（on_next / on_complete / on_error）撰寫的
類別型中介軟體，以及日誌與 thunk 兩個內建實作。
"""

import contextlib
import inspect
import logging
from typing import Any, Dict, Generator, Iterable, List, Optional

from .actions import get_action_type
from .errors import MiddlewareError
from .types import DispatchFunction, ThunkFunction

logger = logging.getLogger(__name__)

ActionContext = Dict[str, Any]


def _middleware_name(mw: Any) -> str:
    if inspect.isfunction(mw) or inspect.ismethod(mw):
        return mw.__qualname__
    return type(mw).__name__


def _describe(action: Any) -> str:
    action_type = get_action_type(action)
    if action_type is not None:
        return str(action_type)
    return _middleware_name(action) if callable(action) else repr(action)


def resolve_middlewares(middlewares: Optional[Iterable[Any]]) -> List[Any]:
    """
    接受類和實例，如果是類則直接實例化。

    Args:
        middlewares: 中介軟體列表，可以是類、實例或函數

    Returns:
        實例化後的中介軟體列表
    """
    if middlewares is None:
        return []
    return [m() if inspect.isclass(m) else m for m in middlewares]


def compose(middlewares: Iterable[Any], terminal: DispatchFunction) -> DispatchFunction:
    """
    構建中介軟體鏈：m1(m2(...mn(terminal)))。

    Args:
        middlewares: 已實例化的中介軟體，順序即由外到內
        terminal: 鏈的最內層（呼叫 reducer 的步驟）

    Returns:
        組合後的 (store, action) -> result 函數；列表為空時即 terminal
    """
    # 從最後一個中介軟體開始包裹
    dispatch = terminal
    for mw in reversed(list(middlewares)):
        if not callable(mw):
            raise MiddlewareError("middleware must be callable", middleware_name=_middleware_name(mw))
        wrapped = mw(dispatch)
        if not callable(wrapped):
            raise MiddlewareError(
                "middleware must return a (store, action) callable when given next",
                middleware_name=_middleware_name(mw),
            )
        dispatch = wrapped
        logger.debug("wrapped dispatch with %s", _middleware_name(mw))
    return dispatch


# ———— Base Middleware ————
class BaseMiddleware:
    """
    基礎中介類，定義所有中介可能實現的鉤子。

    中介軟體可以介入動作分發的流程，在動作到達 Reducer 前、
    動作處理完成後或出現錯誤時執行自定義邏輯。
    鉤子中的錯誤不會被吞掉；dispatch 中的錯誤在 on_error 之後重新拋出。
    """

    def __call__(self, next_dispatch: DispatchFunction) -> DispatchFunction:
        def dispatch(store: Any, action: Any) -> Any:
            with self.action_context(action, store.get_state()) as context:
                context['result'] = next_dispatch(store, action)
                context['next_state'] = store.get_state()
                return context['result']
        return dispatch

    def on_next(self, action: Any, prev_state: Any) -> None:
        """
        在 action 發送給 reducer 之前調用。

        Args:
            action: 正在 dispatch 的 Action
            prev_state: dispatch 之前的 store 狀態
        """
        pass

    def on_complete(self, next_state: Any, action: Any) -> None:
        """
        在下一層處理完 action 之後調用。

        Args:
            next_state: dispatch 之後的 store 狀態
            action: 剛剛 dispatch 的 Action
        """
        pass

    def on_error(self, error: Exception, action: Any) -> None:
        """
        如果 dispatch 過程中拋出異常，則調用此鉤子。

        Args:
            error: 拋出的異常
            action: 導致異常的 Action
        """
        pass

    def teardown(self) -> None:
        """
        當 Store 銷毀時調用，用於清理中間件持有的資源。
        """
        pass

    @contextlib.contextmanager
    def action_context(self, action: Any, prev_state: Any) -> Generator[ActionContext, None, None]:
        """
        以上下文管理器的形式處理一次 action 分發的生命週期。

        Args:
            action: 要分發的 Action
            prev_state: 分發前的狀態

        Yields:
            包含上下文數據的字典；呼叫端在 with 區塊內填入 result 與 next_state
        """
        context: ActionContext = {
            'action': action,
            'prev_state': prev_state,
            'next_state': None,
            'result': None,
            'error': None,
        }
        self.on_next(action, prev_state)
        try:
            yield context
        except Exception as err:
            context['error'] = err
            self.on_error(err, action)
            raise
        self.on_complete(context['next_state'], action)


# ———— LoggerMiddleware ————
class LoggerMiddleware(BaseMiddleware):
    """
    日誌中介，記錄每個 action 發送前和發送後的 state。

    使用場景:
    - 偵錯時需要觀察每次 state 的變化。
    - 確保 action 的執行順序正確。
    """

    def __init__(self, logger: Optional[logging.Logger] = None, level: int = logging.DEBUG):
        self.logger = logger or logging.getLogger(__name__)
        self.level = level

    def on_next(self, action: Any, prev_state: Any) -> None:
        self.logger.log(self.level, "dispatching %s", _describe(action))
        self.logger.log(self.level, "state before %s: %r", _describe(action), prev_state)

    def on_complete(self, next_state: Any, action: Any) -> None:
        self.logger.log(self.level, "state after %s: %r", _describe(action), next_state)

    def on_error(self, error: Exception, action: Any) -> None:
        self.logger.error("error in %s: %s", _describe(action), error)


# ———— ThunkMiddleware ————
class ThunkMiddleware(BaseMiddleware):
    """
    支援 dispatch 函數 (thunk)，可以在 thunk 內執行多次 dispatch。

    thunk 以 store 為唯一參數被呼叫，其返回值直接交回呼叫者，
    不會再傳給下一層，也不觸發鉤子。其他 action 經由 action_context
    轉發，子類的 on_next / on_complete / on_error 照常執行；
    thunk 內部 dispatch 的 action 重新走完整條鏈，同樣會觸發鉤子。

    範例:
        ```python
        def load_items(store):
            store.dispatch({"type": "loading"})
            store.dispatch({"type": "loaded", "items": fetch_items()})

        store.dispatch(load_items)
        ```
    """

    def __call__(self, next_dispatch: DispatchFunction) -> DispatchFunction:
        forward = super().__call__(next_dispatch)

        def dispatch(store: Any, action: Any) -> Any:
            if callable(action) and get_action_type(action) is None:
                thunk: ThunkFunction = action
                return thunk(store)
            return forward(store, action)
        return dispatch
