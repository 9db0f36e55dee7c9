"""
tickstore 範例：計數器，展示中介軟體、thunk 與每幀一次的 flush。
"""

import logging
from pathlib import Path
import sys
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from reactivex import Subject

from tickstore import (
    LoggerMiddleware, ThunkMiddleware, create_action, create_reducer, create_store,
    drive_flush, on,
)

logging.basicConfig(level=logging.DEBUG, format="%(name)s %(message)s")

# ============== 定義 Actions ==============
increment = create_action("increment")
increment_by = create_action("incrementBy", lambda amount: amount)

# ============== 定義 Reducer ==============
counter_reducer = create_reducer(
    {"count": 0},
    on(increment, lambda state, action: {**state, "count": state["count"] + 1}),
    on(increment_by, lambda state, action: {**state, "count": state["count"] + action.payload}),
)


def increment_twice_then_by(amount):
    """thunk：在一次 dispatch 內分發多個 action"""
    def thunk(store):
        store.dispatch(increment())
        store.dispatch(increment())
        store.dispatch(increment_by(amount))
    return thunk


if __name__ == "__main__":
    store = create_store(counter_reducer, None, LoggerMiddleware(), ThunkMiddleware())
    store.changed.connect(lambda new, old: print(f"changed: {old['count']} -> {new['count']}"))

    # 以 Subject 模擬渲染幀
    frames = Subject()
    drive_flush(store, frames)

    store.dispatch(increment())
    store.dispatch(increment_twice_then_by(10))
    frames.on_next("frame-1")  # changed: 0 -> 13
    frames.on_next("frame-2")  # 沒有變更，不通知

    store.destruct()
