"""
最小化的同步發布/訂閱原語。

Signal 以 reactivex 的 Subject 作為扇出機制：fire 時 Subject 會先
複製觀察者列表再逐一呼叫，因此在一次 fire 期間新連上的監聽器
要到下一次 fire 才會被呼叫。每個連線另外持有一個 connected 旗標，
讓在同一次 fire 中被斷開、尚未輪到的監聽器被跳過。
"""

import inspect
import logging
from typing import Any, Callable, List, Optional

from reactivex import Observable, Subject
from reactivex import operators as ops
from reactivex.abc import DisposableBase

from .errors import BlockingListenerError, SignalError

logger = logging.getLogger(__name__)


def _listener_name(listener: Callable[..., Any]) -> str:
    return getattr(listener, "__qualname__", None) or repr(listener)


class Connection:
    """
    connect 返回的連線句柄。

    同一個函數連接多次會得到彼此獨立的 Connection。
    """

    def __init__(self, signal: "Signal", listener: Callable[..., Any]):
        self._signal = signal
        self.listener = listener
        self._connected = True
        self._subscription: Optional[DisposableBase] = None

    @property
    def connected(self) -> bool:
        return self._connected

    def disconnect(self) -> None:
        """斷開連線；可重複呼叫。"""
        if not self._connected:
            return
        self._connected = False
        if self._subscription is not None:
            self._subscription.dispose()
            self._subscription = None
        self._signal._forget(self)

    def _deliver(self, args: tuple) -> None:
        # 在本次 fire 中已被斷開的監聽器直接跳過
        if not self._connected:
            return
        result = self.listener(*args)
        if inspect.isawaitable(result):
            close = getattr(result, "close", None)
            if close is not None:
                close()
            raise BlockingListenerError(
                "signal listeners must not suspend; listener returned an awaitable",
                listener_name=_listener_name(self.listener),
            )

    def __repr__(self) -> str:
        state = "connected" if self._connected else "disconnected"
        return f"Connection({_listener_name(self.listener)}, {state})"


class Signal:
    """
    同步信號：按照註冊順序呼叫監聽器。

    監聽器拋出的異常會直接從 fire 傳給呼叫者；監聽器不得掛起。
    """

    def __init__(self, name: str = "signal"):
        self.name = name
        self._subject: Subject = Subject()
        self._connections: List[Connection] = []
        self._closed = False

    def connect(self, listener: Callable[..., Any]) -> Connection:
        """
        註冊一個監聽器。

        Args:
            listener: 同步的可調用對象，參數為 fire 傳入的值

        Returns:
            可用於斷開的 Connection
        """
        if self._closed:
            raise SignalError(f"cannot connect to closed signal '{self.name}'",
                              listener_name=_listener_name(listener))
        if not callable(listener):
            raise SignalError(f"listener must be callable, got {type(listener).__name__}")
        if inspect.iscoroutinefunction(listener) or inspect.isasyncgenfunction(listener):
            raise BlockingListenerError("signal listeners must be synchronous functions",
                                        listener_name=_listener_name(listener))

        connection = Connection(self, listener)
        connection._subscription = self._subject.subscribe(on_next=connection._deliver)
        self._connections.append(connection)
        return connection

    def fire(self, *args: Any) -> None:
        """
        同步呼叫所有目前連線中的監聽器。

        Args:
            *args: 傳給每個監聽器的參數
        """
        if self._closed:
            return
        self._subject.on_next(args)

    def disconnect_all(self) -> None:
        """斷開所有監聽器。"""
        for connection in list(self._connections):
            connection.disconnect()

    def close(self) -> None:
        """
        斷開所有監聽器並結束 as_observable 的串流；關閉後不能再 connect。
        """
        if self._closed:
            return
        self.disconnect_all()
        self._closed = True
        self._subject.on_completed()
        logger.debug("signal '%s' closed", self.name)

    @property
    def closed(self) -> bool:
        return self._closed

    def as_observable(self) -> Observable:
        """
        以 reactivex Observable 的形式觀察此信號。

        Returns:
            每次 fire 發出一個參數元組的 Observable
        """
        return self._subject.pipe(ops.map(tuple))

    def _forget(self, connection: Connection) -> None:
        if connection in self._connections:
            self._connections.remove(connection)

    def __len__(self) -> int:
        return len(self._connections)

    def __repr__(self) -> str:
        return f"Signal({self.name!r}, listeners={len(self._connections)})"
