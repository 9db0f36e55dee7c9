"""
把外部的 tick 來源接到 Store.flush。

Store 從不自行排程：由宿主應用提供一個 tick 的 Observable
（例如每個渲染幀發出一次），drive_flush 在每個 tick 呼叫一次 flush。
Store 沒有鎖：tick 必須在擁有 Store 的執行緒上發出，
不要使用會切換到背景執行緒的排程器（例如 reactivex.interval 的預設排程器）。
測試中可以直接呼叫 flush，或用 Subject 手動推進 tick。
"""

import logging
from typing import Any, Optional

from reactivex import Observable
from reactivex.abc import DisposableBase, SchedulerBase
from reactivex.disposable import SingleAssignmentDisposable

from .store import Store

logger = logging.getLogger(__name__)


def drive_flush(store: Store[Any], ticks: Observable, scheduler: Optional[SchedulerBase] = None) -> DisposableBase:
    """
    每收到一個 tick 就呼叫一次 store.flush()。

    Store 銷毀後的第一個 tick 會自動取消訂閱，不再呼叫 flush。
    flush 中監聽器拋出的異常沿著 tick 來源的錯誤處理傳播。

    Args:
        store: 要驅動的 Store
        ticks: tick 來源，發出的值會被忽略
        scheduler: 可選的 reactivex 排程器，傳給 subscribe

    Returns:
        可用於停止驅動的 Disposable
    """
    subscription = SingleAssignmentDisposable()

    def on_tick(_: Any) -> None:
        if store.is_destroyed:
            logger.debug("store destroyed; stopping flush driver")
            subscription.dispose()
            return
        store.flush()

    subscription.disposable = ticks.subscribe(on_next=on_tick, scheduler=scheduler)
    return subscription

