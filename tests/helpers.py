import time


def wait_for(condition, timeout=5.0, what="condition"):
    """
    Poll condition() until it returns something truthy and return that value.

    Worker threads and cut timers finish asynchronously; tests use this
    instead of fixed sleeps.
    """
    deadline = time.monotonic() + timeout
    while True:
        result = condition()
        if result:
            return result
        if time.monotonic() >= deadline:
            raise AssertionError(f"Timed out after {timeout}s waiting for {what}")
        time.sleep(0.01)
