import time
from functools import wraps
from inspect import signature
from types import SimpleNamespace
from typing import Callable


type Arguments = SimpleNamespace
type Duration = float


def timeit(log_fn: Callable[[Arguments, Duration], None]):
    """
    Measure wall time of the decorated call and pass it to `log_fn` with the call arguments bound by name.
    `log_fn` is not called if the function raises.
    """
    def decorator[T](func: Callable[..., T]):
        sig = signature(func)

        @wraps(func)
        def wrapped(*args, **kwargs) -> T:
            start_time = time.perf_counter()
            result = func(*args, **kwargs)
            execution_time = time.perf_counter() - start_time
            arguments = SimpleNamespace(**sig.bind(*args, **kwargs).arguments)
            log_fn(arguments, execution_time)
            return result

        return wrapped

    return decorator
