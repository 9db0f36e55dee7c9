"""
tickstore：單一寫入者、可觀察的狀態容器。

dispatch 同步地經過中介軟體鏈與 reducer 更新狀態；
flush 把一個 tick 內的所有變更合併成一次 changed 通知。
"""

from .errors import (
    TickStoreError, ConfigurationError, ActionError, ReducerError,
    ReentrantDispatchError, StoreError, StoreDestroyedError, MiddlewareError,
    SignalError, BlockingListenerError, ErrorHandler, global_error_handler,
    handle_error,
)
from .actions import Action, create_action, get_action_type, init_store, INIT_ACTION_TYPE
from .config import StoreConfig
from .signal import Signal, Connection
from .middleware import BaseMiddleware, LoggerMiddleware, ThunkMiddleware, compose
from .reducers import create_reducer, on, combine_reducers
from .store import Store, create_store
from .scheduler import drive_flush
from .immutable_utils import to_immutable, to_dict

__all__ = [
    # Errors
    "TickStoreError", "ConfigurationError", "ActionError", "ReducerError",
    "ReentrantDispatchError", "StoreError", "StoreDestroyedError", "MiddlewareError",
    "SignalError", "BlockingListenerError", "ErrorHandler", "global_error_handler",
    "handle_error",

    # Actions
    "Action", "create_action", "get_action_type", "init_store", "INIT_ACTION_TYPE",

    # Config
    "StoreConfig",

    # Signal
    "Signal", "Connection",

    # Middleware
    "BaseMiddleware", "LoggerMiddleware", "ThunkMiddleware", "compose",

    # Reducers
    "create_reducer", "on", "combine_reducers",

    # Store
    "Store", "create_store",

    # Scheduler
    "drive_flush",

    # Immutable Utils
    "to_immutable", "to_dict",
]
