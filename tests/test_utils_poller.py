from __future__ import annotations

import math

import pytest

from azsm.errors import AzsmError, PollTimeoutError, TransportError
from azsm.utils.poller import perform_polling


class ScriptedPoller:
    """Poller whose ``is_done`` answers come from a script, one per probe."""

    def __init__(self, answers, *, clock=None, probe_cost: float = 0.0, errors=None) -> None:
        self.answers = list(answers)
        self.errors = list(errors or [])
        self.clock = clock
        self.probe_cost = probe_cost
        self.probes = 0
        self.seen: list[tuple[object, object]] = []

    def probe(self):
        self.probes += 1
        if self.clock is not None:
            self.clock.now += self.probe_cost
        if self.errors:
            error = self.errors.pop(0)
            if error is not None:
                raise error
        return f"result-{self.probes}"

    def is_done(self, result, error):
        self.seen.append((result, error))
        answer = self.answers.pop(0) if self.answers else False
        if isinstance(answer, Exception):
            raise answer
        return answer


def test_first_probe_is_immediate(fake_clock) -> None:
    poller = ScriptedPoller([True])

    result = perform_polling(poller, interval=60.0, timeout=600.0)

    assert result == "result-1"
    assert poller.probes == 1
    assert fake_clock.sleeps == []


def test_polls_every_interval_until_done(fake_clock) -> None:
    poller = ScriptedPoller([False, False, True])

    result = perform_polling(poller, interval=10.0, timeout=600.0)

    assert result == "result-3"
    assert poller.probes == 3
    assert fake_clock.sleeps == [10.0, 10.0]


def test_ticks_stay_anchored_when_probes_take_time(fake_clock) -> None:
    poller = ScriptedPoller([False, False, True], clock=fake_clock, probe_cost=3.0)

    perform_polling(poller, interval=10.0, timeout=600.0)

    assert fake_clock.sleeps == [7.0, 7.0]


def test_slow_probe_skips_missed_ticks(fake_clock) -> None:
    poller = ScriptedPoller([False, True], clock=fake_clock, probe_cost=25.0)

    perform_polling(poller, interval=10.0, timeout=600.0)

    assert fake_clock.sleeps == [5.0]


@pytest.mark.parametrize(("interval", "timeout"), [(1.0, 5.0), (2.0, 7.0), (3.0, 1.0), (0.5, 4.2)])
def test_times_out_without_probing_past_deadline(fake_clock, interval, timeout) -> None:
    poller = ScriptedPoller([])

    with pytest.raises(PollTimeoutError) as excinfo:
        perform_polling(poller, interval=interval, timeout=timeout)

    assert str(excinfo.value) == "polling timed out waiting for an asynchronous operation"
    assert excinfo.value.timeout == timeout
    assert poller.probes <= math.ceil(timeout / interval) + 1
    assert fake_clock.now >= timeout


def test_timeout_takes_priority_over_a_probe_that_would_succeed(fake_clock) -> None:
    poller = ScriptedPoller([False, False, True])

    with pytest.raises(PollTimeoutError):
        perform_polling(poller, interval=1.0, timeout=1.5)

    assert poller.probes == 2


def test_timeout_error_is_a_builtin_timeout() -> None:
    assert issubclass(PollTimeoutError, TimeoutError)
    assert issubclass(PollTimeoutError, AzsmError)


def test_error_from_is_done_stops_polling(fake_clock) -> None:
    boom = AzsmError("boom")
    poller = ScriptedPoller([False, False, boom, True])

    with pytest.raises(AzsmError) as excinfo:
        perform_polling(poller, interval=1.0, timeout=600.0)

    assert excinfo.value is boom
    assert poller.probes == 3


def test_probe_errors_are_handed_to_is_done(fake_clock) -> None:
    transient = TransportError("connection reset")
    poller = ScriptedPoller([False, True], errors=[transient, None])

    result = perform_polling(poller, interval=1.0, timeout=600.0)

    assert result == "result-2"
    assert poller.seen == [(None, transient), ("result-2", None)]


def test_real_clock_small_interval() -> None:
    poller = ScriptedPoller([False, False, True])

    result = perform_polling(poller, interval=0.001, timeout=5.0)

    assert result == "result-3"


@pytest.mark.parametrize("interval", [0, 0.0, -5.0])
def test_rejects_non_positive_interval_without_probing(fake_clock, interval) -> None:
    poller = ScriptedPoller([False])

    with pytest.raises(ValueError):
        perform_polling(poller, interval=interval, timeout=0.2)

    assert poller.probes == 0
    assert fake_clock.sleeps == []
