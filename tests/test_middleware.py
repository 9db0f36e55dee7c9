"""Tests for middleware composition and the bundled middleware."""

import logging

import pytest

from tickstore import (
    Action, BaseMiddleware, LoggerMiddleware, MiddlewareError, Store, ThunkMiddleware,
    compose, get_action_type,
)

from .conftest import counter_reducer


def tracing(name, trail, result=None):
    """Build a middleware that records entry/exit and optionally overrides the result."""
    def middleware(next_dispatch):
        def dispatch(store, action):
            trail.append(f"{name}:before")
            value = next_dispatch(store, action)
            trail.append(f"{name}:after:{value}")
            return value if result is None else result
        return dispatch
    return middleware


def test_empty_chain_is_the_terminal_step():
    """Test that composing nothing returns the terminal function itself."""
    def terminal(store, action):
        return "done"

    assert compose([], terminal) is terminal


def test_first_middleware_is_outermost(calls):
    """Test [A, B] runs A before B before the reducer and unwinds in reverse."""
    def reducer(state, action):
        if action["type"] != "@@INIT":
            calls.append("reducer")
        return state

    store = Store(reducer, 0, [tracing("A", calls), tracing("B", calls, result="from-B")])

    returned = store.dispatch({"type": "go"})

    assert calls == ["A:before", "B:before", "reducer", "B:after:None", "A:after:from-B"]
    assert returned == "from-B"


def test_middleware_can_short_circuit(calls):
    """Test that a middleware that never calls next leaves state clean."""
    def swallow(next_dispatch):
        def dispatch(store, action):
            calls.append(action["type"])
            return "ignored"
        return dispatch

    store = Store(counter_reducer, 0, [swallow])

    assert store.dispatch({"type": "inc"}) == "ignored"
    assert store.get_state() == 0
    assert not store.has_pending_change
    assert calls == ["inc"]


def test_middleware_can_call_next_twice():
    """Test that calling next twice reduces the action twice."""
    def twice(next_dispatch):
        def dispatch(store, action):
            next_dispatch(store, action)
            return next_dispatch(store, action)
        return dispatch

    store = Store(counter_reducer, 0, [twice])
    store.dispatch({"type": "inc"})

    assert store.get_state() == 2


def test_middleware_can_replace_the_action():
    """Test that a middleware may forward a different action."""
    def doubler(next_dispatch):
        def dispatch(store, action):
            if action["type"] == "inc":
                action = {"type": "add", "amount": 2}
            return next_dispatch(store, action)
        return dispatch

    store = Store(counter_reducer, 0, [doubler])
    store.dispatch({"type": "inc"})

    assert store.get_state() == 2


def test_middleware_can_dispatch_recursively(calls):
    """Test that nested dispatches run the whole chain again, like a call stack."""
    def follow_up(next_dispatch):
        def dispatch(store, action):
            calls.append(action["type"])
            result = next_dispatch(store, action)
            if action["type"] == "inc" and store.get_state() < 3:
                store.dispatch({"type": "inc"})
            return result
        return dispatch

    store = Store(counter_reducer, 0, [follow_up])
    store.changed.connect(lambda new, old: calls.append((new, old)))
    store.dispatch({"type": "inc"})
    store.flush()

    assert calls == ["inc", "inc", "inc", (3, 0)]


def test_middleware_classes_are_instantiated():
    """Test that passing a middleware class builds an instance of it."""
    store = Store(counter_reducer, 0, [ThunkMiddleware])

    store.dispatch(lambda s: s.dispatch({"type": "inc"}))

    assert store.get_state() == 1


def test_non_callable_middleware_is_rejected():
    """Test that composition refuses entries that cannot wrap next."""
    with pytest.raises(MiddlewareError):
        Store(counter_reducer, 0, ["not middleware"])


def test_middleware_must_return_a_dispatch_function():
    """Test that a middleware returning a non-callable fails at construction."""
    with pytest.raises(MiddlewareError):
        Store(counter_reducer, 0, [lambda next_dispatch: None])


def test_thunk_receives_store_and_returns_its_value(calls):
    """Test that a dispatched function is invoked with the store."""
    store = Store(counter_reducer, 0, [ThunkMiddleware()])

    def thunk(s):
        calls.append(s)
        return "thunk-result"

    assert store.dispatch(thunk) == "thunk-result"
    assert calls == [store]


def test_thunk_forwards_plain_actions():
    """Test that ordinary actions pass through the thunk middleware."""
    store = Store(counter_reducer, 0, [ThunkMiddleware()])

    store.dispatch({"type": "inc"})
    store.dispatch(Action("inc"))

    assert store.get_state() == 2


def test_logged_thunk_dispatches_coalesce_into_one_flush(calls):
    """Test log wrapping thunk: every inner action is reduced but flushed once."""
    recorded = []

    def log(next_dispatch):
        def dispatch(store, action):
            recorded.append(get_action_type(action))
            return next_dispatch(store, action)
        return dispatch

    store = Store(counter_reducer, 0, [log, ThunkMiddleware()])
    store.changed.connect(lambda new, old: calls.append((new, old)))

    def thunk(s):
        s.dispatch({"type": "inc"})
        s.dispatch({"type": "add", "amount": 5})

    store.dispatch(thunk)
    assert store.get_state() == 6
    store.flush()

    assert recorded == [None, "inc", "add"]
    assert calls == [(6, 0)]


class RecordingMiddleware(BaseMiddleware):
    def __init__(self):
        self.events = []
        self.torn_down = False

    def on_next(self, action, prev_state):
        self.events.append(("next", get_action_type(action), prev_state))

    def on_complete(self, next_state, action):
        self.events.append(("complete", get_action_type(action), next_state))

    def on_error(self, error, action):
        self.events.append(("error", get_action_type(action), str(error)))

    def teardown(self):
        self.torn_down = True


def failing_reducer(state, action):
    if action["type"] == "boom":
        raise RuntimeError("reducer failed")
    return counter_reducer(state, action)


def test_base_middleware_hooks_see_state_around_dispatch():
    """Test on_next / on_complete receive the states before and after."""
    recorder = RecordingMiddleware()
    store = Store(counter_reducer, 0, [recorder])

    store.dispatch({"type": "inc"})

    assert recorder.events == [("next", "inc", 0), ("complete", "inc", 1)]


def test_base_middleware_reports_and_reraises_errors():
    """Test on_error runs and the original exception still reaches the caller."""
    recorder = RecordingMiddleware()
    store = Store(failing_reducer, 0, [recorder])

    with pytest.raises(RuntimeError):
        store.dispatch({"type": "boom"})

    assert recorder.events == [("next", "boom", 0), ("error", "boom", "reducer failed")]


def test_destruct_tears_down_middleware():
    """Test that middleware teardown runs when the store is destroyed."""
    recorder = RecordingMiddleware()
    store = Store(counter_reducer, 0, [recorder])

    store.destruct()

    assert recorder.torn_down


def test_logger_middleware_logs_dispatch_and_state(caplog):
    """Test that the logger middleware writes through the logging module."""
    caplog.set_level(logging.DEBUG, logger="tickstore.middleware")
    store = Store(counter_reducer, 0, [LoggerMiddleware()])

    store.dispatch({"type": "inc"})

    assert "dispatching inc" in caplog.text
    assert "state before inc: 0" in caplog.text
    assert "state after inc: 1" in caplog.text


def test_logger_middleware_logs_errors(caplog):
    """Test that failures are logged at ERROR level and re-raised."""
    caplog.set_level(logging.DEBUG, logger="tickstore.middleware")
    store = Store(failing_reducer, 0, [LoggerMiddleware()])

    with pytest.raises(RuntimeError):
        store.dispatch({"type": "boom"})

    errors = [r for r in caplog.records if r.levelno == logging.ERROR and r.name == "tickstore.middleware"]
    assert len(errors) == 1
    assert "error in boom: reducer failed" in errors[0].getMessage()


class RecordingThunkMiddleware(ThunkMiddleware, RecordingMiddleware):
    pass


def test_thunk_subclass_hooks_run_for_forwarded_actions():
    """Test that a ThunkMiddleware subclass sees hooks for plain actions but not for thunks."""
    recorder = RecordingThunkMiddleware()
    store = Store(failing_reducer, 0, [recorder])

    def thunk(s):
        s.dispatch({"type": "inc"})
        return "done"

    assert store.dispatch(thunk) == "done"
    store.dispatch({"type": "add", "amount": 5})
    with pytest.raises(RuntimeError):
        store.dispatch({"type": "boom"})

    assert recorder.events == [
        ("next", "inc", 0),
        ("complete", "inc", 1),
        ("next", "add", 1),
        ("complete", "add", 6),
        ("next", "boom", 6),
        ("error", "boom", "reducer failed"),
    ]
