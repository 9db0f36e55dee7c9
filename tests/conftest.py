"""
Shared pytest fixtures for tickstore tests.
"""

import pytest

from tickstore import Store, global_error_handler


def counter_reducer(state=0, action=None):
    """Counter used throughout the suite: "inc" adds one, "add" adds action["amount"]."""
    if state is None:
        state = 0
    action_type = action.get("type") if isinstance(action, dict) else getattr(action, "type", None)
    if action_type == "inc":
        return state + 1
    if action_type == "add":
        return state + action["amount"]
    return state


@pytest.fixture
def reducer():
    return counter_reducer


@pytest.fixture
def store():
    """Provide a fresh counter store starting at 0."""
    s = Store(counter_reducer, 0)
    yield s
    s.destruct()


@pytest.fixture
def reported_errors():
    """Collect every error passed to the global error handler during a test."""
    errors = []
    global_error_handler.register_handler(errors.append)
    yield errors
    global_error_handler.unregister_handler(errors.append)


@pytest.fixture
def calls():
    return []
