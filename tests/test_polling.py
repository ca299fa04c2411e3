from __future__ import annotations

import pytest

from conftest import RecordingSleep
from pygps51.exceptions import Gps51ApiError, Gps51RateLimitError, Gps51TransportError
from pygps51.models.command import CommandOutcome
from pygps51.polling import poll_until


class ScriptedCheck:
    """Check function that replays a list of results or exceptions."""

    def __init__(self, *steps: bool | Exception) -> None:
        self._steps = list(steps)
        self.calls = 0

    async def __call__(self) -> bool:
        self.calls += 1
        step = self._steps.pop(0) if self._steps else False
        if isinstance(step, Exception):
            raise step
        return step


@pytest.mark.asyncio
async def test_confirmed_after_pending_polls() -> None:
    sleep = RecordingSleep()
    check = ScriptedCheck(False, False, True)

    result = await poll_until(check, attempts=10, delay=1.0, sleep=sleep)

    assert result.outcome == CommandOutcome.CONFIRMED
    assert result.attempts == 3
    assert sleep.delays == [1.0, 1.0]


@pytest.mark.asyncio
async def test_exhausted_is_sent_unconfirmed() -> None:
    sleep = RecordingSleep()
    check = ScriptedCheck()

    result = await poll_until(check, attempts=10, delay=1.0, sleep=sleep)

    assert result.outcome == CommandOutcome.SENT_UNCONFIRMED
    assert result.attempts == 10
    assert check.calls == 10
    assert len(sleep.delays) == 9


@pytest.mark.asyncio
async def test_api_error_fails_immediately() -> None:
    check = ScriptedCheck(False, Gps51ApiError("device offline", code=1, action="querycommand"))

    result = await poll_until(check, attempts=10, delay=0, sleep=RecordingSleep())

    assert result.outcome == CommandOutcome.FAILED
    assert result.attempts == 2
    assert result.error is not None and "device offline" in result.error


@pytest.mark.asyncio
async def test_transport_error_counts_as_pending() -> None:
    check = ScriptedCheck(Gps51TransportError("timeout"), True)

    result = await poll_until(check, attempts=3, delay=0, sleep=RecordingSleep())

    assert result.outcome == CommandOutcome.CONFIRMED
    assert result.attempts == 2


@pytest.mark.asyncio
async def test_rate_limit_propagates() -> None:
    check = ScriptedCheck(Gps51RateLimitError("ip limit", code=8902, action="querycommand"))

    with pytest.raises(Gps51RateLimitError):
        await poll_until(check, attempts=3, delay=0, sleep=RecordingSleep())
