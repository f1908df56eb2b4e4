import logging
from functools import wraps
from typing import Callable, TypeVar

from beacon_participation.metrics.prometheus.basic import FUNCTIONS_DURATION, Status

logger = logging.getLogger(__name__)


T = TypeVar("T")


def duration_meter(name: str | None = None):
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        full_name = name or f"{func.__module__}.{func.__name__}"

        @wraps(func)
        def wrapper(*args, **kwargs) -> T:
            with FUNCTIONS_DURATION.time() as t:
                try:
                    logger.debug({"msg": f"Function '{full_name}' started"})
                    result = func(*args, **kwargs)
                    t.labels(name=full_name, status=Status.SUCCESS.value)
                    return result
                except Exception:
                    t.labels(name=full_name, status=Status.FAILURE.value)
                    raise
                finally:
                    logger.debug({"msg": f"Function '{full_name}' finished"})

        return wrapper

    return decorator
