"""
tickstore 的共用類型定義。

State 與 Action 對容器而言是不透明的：Store 只要求 action 暴露
一個 type 判別欄位（映射的 "type" 鍵或物件的 type 屬性）。
"""

from typing import Any, Callable, TypeVar

from typing_extensions import Protocol

S = TypeVar("S")  # 狀態類型
P = TypeVar("P")  # 負載類型

# (state, action) -> state
Reducer = Callable[[Any, Any], Any]

# (store, action) -> result；中介軟體的形狀為 (next: DispatchFunction) -> DispatchFunction
DispatchFunction = Callable[[Any, Any], Any]

# thunk 以 store 為唯一參數
ThunkFunction = Callable[[Any], Any]


class ActionCreator(Protocol):
    """帶有 type 屬性的 Action 生成器。"""

    type: str

    def __call__(self, *args: Any, **kwargs: Any) -> Any: ...
