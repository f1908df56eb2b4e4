from types import SimpleNamespace
from unittest.mock import Mock

import pytest

from beacon_participation.utils.timeit import timeit

pytestmark = pytest.mark.unit


def test_timeit_log_fn_no_args():
    log_fn = Mock()

    @timeit(log_fn)
    def fn(): ...

    fn()
    log_fn.assert_called_once()
    assert log_fn.call_args.args[0] == SimpleNamespace()


def test_timeit_log_fn_args_method():
    log_fn = Mock()

    class Some:
        @timeit(log_fn)
        def fn(self, a, b):
            return a

    some = Some()
    assert some.fn(42, b="any") == 42

    log_fn.assert_called_once()
    assert log_fn.call_args.args[0] == SimpleNamespace(a=42, b="any", self=some)


def test_timeit_log_fn_not_called_on_exception():
    log_fn = Mock()

    @timeit(log_fn)
    def fn():
        raise ValueError

    with pytest.raises(ValueError):
        fn()

    log_fn.assert_not_called()


def test_timeit_duration(monkeypatch: pytest.MonkeyPatch):
    log_fn = Mock()

    @timeit(log_fn)
    def fn(): ...

    perf_counter = Mock(side_effect=[1, 12.5])
    monkeypatch.setattr("time.perf_counter", perf_counter)
    fn()

    assert perf_counter.call_count == 2
    log_fn.assert_called_once_with(SimpleNamespace(), 11.5)
