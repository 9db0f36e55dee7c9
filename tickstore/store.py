"""
單一寫入者、可觀察的狀態容器。

Store 持有目前狀態，只透過 reducer 轉換；dispatch 經過中介軟體鏈
同步地更新狀態並標記為待通知，flush（由外部的 tick 驅動呼叫）把
兩次 flush 之間的所有變更合併成一次 changed 通知。

狀態契約：get_state 返回的是內部的實際引用，Store 不做防禦性拷貝。
呼叫者必須把它當作唯讀；就地修改屬於未定義行為，容器無法察覺。
reducer 必須是純函數，且不得呼叫 dispatch。
"""

import logging
from typing import Any, Callable, Generic, Iterable, Mapping, Optional, Union

from reactivex import Observable
from reactivex import operators as ops

from .actions import get_action_type
from .config import StoreConfig
from .errors import (
    ActionError, ReducerError, ReentrantDispatchError, StoreDestroyedError,
    TickStoreError, global_error_handler,
)
from .middleware import compose, resolve_middlewares
from .signal import Signal
from .types import S, Reducer


class Store(Generic[S]):
    """
    狀態容器，管理應用狀態並在 flush 時通知觀察者。

    生命週期：建構 -> 活躍（clean / pending） -> 銷毀。
    """

    def __init__(
        self,
        reducer: Reducer,
        initial_state: Optional[S] = None,
        middlewares: Optional[Iterable[Any]] = None,
        config: Union[StoreConfig, Mapping[str, Any], None] = None,
    ):
        """
        建立 Store，並以初始化 action 直接呼叫一次 reducer（不經過中介軟體）。

        初始化造成的狀態轉換不會標記為待通知，因此建構後第一次 flush
        在沒有任何 dispatch 的情況下不會觸發 changed。

        Args:
            reducer: (state, action) -> state 的純函數
            initial_state: 初始狀態；為 None 時由 reducer 自行提供預設值
            middlewares: 中介軟體列表，第一個位於最外層
            config: StoreConfig 或其映射形式
        """
        if config is None:
            config = StoreConfig()
        elif not isinstance(config, StoreConfig):
            config = StoreConfig.from_mapping(config)
        self._config = config
        self._logger = logging.getLogger(config.logger_name)
        self._error_handler = global_error_handler

        if not callable(reducer):
            raise self._report(ReducerError(
                "reducer must be callable",
                reducer_name=type(reducer).__name__,
            ))
        self._reducer = reducer

        self._is_dispatching = False
        self._is_flushing = False
        self._pending_change = False
        self._is_destroyed = False
        self._changed = Signal("changed")

        self._middlewares = resolve_middlewares(middlewares)
        try:
            self._dispatch = compose(self._middlewares, self._dispatch_core)
        except TickStoreError as err:
            raise self._report(err)

        self._state = self._reducer(initial_state, {"type": config.init_action_type})
        self._last_state = self._state
        self._logger.debug(
            "store created with %d middleware(s), init action %s",
            len(self._middlewares), config.init_action_type,
        )

    def _report(self, error: TickStoreError) -> TickStoreError:
        if self._config.report_errors:
            self._error_handler.handle(error)
        return error

    def _dispatch_core(self, store: "Store[S]", action: Any) -> None:
        """
        鏈的最內層：呼叫 reducer 並記錄待通知的變更。

        Args:
            store: 執行 dispatch 的 Store（即 self）
            action: 到達 reducer 的 action
        """
        if self._is_destroyed:
            raise self._report(StoreDestroyedError("dispatch on a destroyed store", operation="dispatch"))
        if self._is_dispatching:
            raise self._report(ReentrantDispatchError(
                "reducers may not dispatch actions",
                reducer_name=getattr(self._reducer, "__qualname__", type(self._reducer).__name__),
                action_type=get_action_type(action),
            ))
        if get_action_type(action) is None:
            raise self._report(ActionError(
                "action reached the reducer without a 'type' discriminator; "
                "no middleware handled it",
                payload=repr(action),
            ))

        self._is_dispatching = True
        try:
            new_state = self._reducer(self._state, action)
        finally:
            self._is_dispatching = False

        # reducer 執行期間被銷毀：丟棄結果，不留下待通知的變更
        if self._is_destroyed:
            return

        # 本輪第一次變更時保存舊狀態，flush 時作為 old_state
        if not self._pending_change:
            self._last_state = self._state
        self._state = new_state
        self._pending_change = True

    def dispatch(self, action: Any) -> Any:
        """
        分發一個 action，同步地經過中介軟體鏈與 reducer。

        dispatch 本身從不觸發 changed；通知延後到下一次 flush。

        Args:
            action: 帶有 type 判別欄位的 action，或交給中介軟體處理的可調用對象

        Returns:
            中介軟體鏈返回的結果（沒有中介軟體時為 None）
        """
        if self._is_destroyed:
            raise self._report(StoreDestroyedError("dispatch on a destroyed store", operation="dispatch"))
        if get_action_type(action) is None and not callable(action):
            raise self._report(ActionError(
                "action must carry a 'type' discriminator",
                payload=repr(action),
            ))
        if self._is_dispatching:
            raise self._report(ReentrantDispatchError(
                "reducers may not dispatch actions",
                reducer_name=getattr(self._reducer, "__qualname__", type(self._reducer).__name__),
                action_type=get_action_type(action),
            ))
        return self._dispatch(self, action)

    def get_state(self) -> S:
        """
        返回目前狀態的引用（不拷貝，呼叫者不得修改）。

        Returns:
            目前狀態
        """
        return self._state

    @property
    def state(self) -> S:
        return self._state

    def flush(self) -> bool:
        """
        如果自上次 flush 以來有變更，觸發一次 changed(new_state, old_state)。

        old_state 是本輪第一次 dispatch 之前的狀態。flush 期間再次呼叫
        flush 不做任何事；監聽器中的 dispatch 會留到下一次 flush 通知。

        Returns:
            是否觸發了 changed
        """
        if self._is_destroyed:
            raise self._report(StoreDestroyedError("flush on a destroyed store", operation="flush"))
        if self._is_flushing or not self._pending_change:
            return False

        self._pending_change = False
        new_state, old_state = self._state, self._last_state
        self._is_flushing = True
        try:
            self._changed.fire(new_state, old_state)
        finally:
            self._is_flushing = False
        self._logger.debug("flushed state change to %d listener(s)", len(self._changed))
        return True

    def destruct(self) -> None:
        """
        銷毀 Store：斷開所有 changed 監聽器、丟棄待通知的變更並清理中介軟體。

        可重複呼叫。之後的 dispatch 與 flush 都會拋出 StoreDestroyedError。
        """
        if self._is_destroyed:
            return
        self._is_destroyed = True
        self._pending_change = False
        self._changed.close()
        for mw in self._middlewares:
            teardown = getattr(mw, "teardown", None)
            if callable(teardown):
                teardown()
        self._logger.debug("store destroyed")

    @property
    def changed(self) -> Signal:
        """changed 信號；監聽器簽名為 (new_state, old_state)。"""
        return self._changed

    @property
    def is_destroyed(self) -> bool:
        return self._is_destroyed

    @property
    def has_pending_change(self) -> bool:
        return self._pending_change

    @property
    def config(self) -> StoreConfig:
        return self._config

    def select(self, selector: Optional[Callable[[S], Any]] = None) -> Observable:
        """
        選擇狀態的一部分進行觀察。

        每次 flush 發出一個 (selector(old_state), selector(new_state)) 元組，
        只有當選出的新值變化時才發出。Store 銷毀時串流完成。

        selector 拋出的異常交給該訂閱者的 on_error 並結束其串流，
        不影響 flush 與其他監聽器；沒有提供 on_error 的訂閱者會沿用
        reactivex 的預設行為，異常從 flush 拋出。

        Args:
            selector: 從整個狀態中取出一部分的函數；預設為整個狀態

        Returns:
            一個可觀察對象，發送選定的狀態部分
        """
        if selector is None:
            selector = lambda state: state

        return self._changed.as_observable().pipe(
            # changed 的參數順序為 (new, old)
            ops.map(lambda pair: (selector(pair[1]), selector(pair[0]))),
            ops.distinct_until_changed(lambda x: x[1]),
        )

    def __enter__(self) -> "Store[S]":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.destruct()

    def __repr__(self) -> str:
        if self._is_destroyed:
            phase = "destroyed"
        else:
            phase = "pending" if self._pending_change else "clean"
        return f"Store({phase}, state={self._state!r})"


def create_store(
    reducer: Reducer,
    initial_state: Optional[S] = None,
    *middlewares: Any,
    config: Union[StoreConfig, Mapping[str, Any], None] = None,
) -> Store[S]:
    """
    創建一個新的 Store 實例。

    Args:
        reducer: 根 reducer
        initial_state: 初始狀態
        *middlewares: 中介軟體，第一個位於最外層
        config: 可選的 StoreConfig

    Returns:
        Store: 新創建的 Store 實例。
    """
    return Store(reducer, initial_state, list(middlewares), config=config)
