import time
from typing import Callable


def wait_until(predicate: Callable[[], bool], timeout: float = 3.0) -> bool:
    """Чекати, поки predicate() стане істинним (потоки опитування датчика)."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()
