"""Bounded confirmation polling.

Vendor commands and some reports complete asynchronously. :func:`poll_until`
calls a check function a fixed number of times and reports one of three
outcomes instead of blocking indefinitely.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from pygps51.exceptions import Gps51ApiError, Gps51RateLimitError, Gps51TransportError
from pygps51.models.command import CommandOutcome

_logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class PollResult:
    outcome: CommandOutcome
    attempts: int
    error: str | None = None


async def poll_until(
    check: Callable[[], Awaitable[bool]],
    *,
    attempts: int,
    delay: float,
    sleep: Sleep = asyncio.sleep,
    label: str = "poll",
) -> PollResult:
    """Run *check* up to *attempts* times, *delay* seconds apart.

    Parameters
    ----------
    check : callable
        Coroutine function returning ``True`` once confirmed and ``False``
        while still pending. A :class:`Gps51ApiError` means terminal
        failure; a :class:`Gps51TransportError` counts as still pending.
    attempts : int
        Maximum number of checks.
    delay : float
        Seconds slept before every check after the first.
    sleep : callable
        Injectable sleep coroutine.
    label : str
        Name used in log messages.

    Returns
    -------
    PollResult
        ``CONFIRMED``, ``SENT_UNCONFIRMED`` when attempts ran out, or
        ``FAILED``.

    Raises
    ------
    Gps51RateLimitError
        Propagated so the caller can enter backoff.
    """
    for attempt in range(1, attempts + 1):
        if attempt > 1 and delay > 0:
            await sleep(delay)
        try:
            if await check():
                _logger.debug("%s confirmed attempt=%d", label, attempt)
                return PollResult(CommandOutcome.CONFIRMED, attempt)
        except Gps51RateLimitError:
            raise
        except Gps51ApiError as exc:
            _logger.warning("%s failed attempt=%d: %s", label, attempt, exc)
            return PollResult(CommandOutcome.FAILED, attempt, str(exc))
        except Gps51TransportError:
            _logger.debug("%s attempt=%d failed", label, attempt, exc_info=True)
            continue
        _logger.debug("%s pending attempt=%d/%d", label, attempt, attempts)

    _logger.debug("%s exhausted without confirmation attempts=%d", label, attempts)
    return PollResult(CommandOutcome.SENT_UNCONFIRMED, max(attempts, 0))
