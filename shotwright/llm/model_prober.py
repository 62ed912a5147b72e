"""
Shotwright Model Availability Prober

Finds a hosted model identifier that currently answers, trying an ordered candidate
list and remembering the first one that works.
"""

import asyncio
from typing import Any, Awaitable, Callable, Dict, Optional, Sequence, Tuple

from shotwright.core.exceptions import InvalidConfigError, ModelAvailabilityError
from shotwright.core.logging_config import get_logger

from .context import ProviderContext

logger = get_logger("llm.prober")

PingCallable = Callable[[str], Awaitable[Any]]


class ModelAvailabilityProber:
    """
    Probes candidate models with a trivial call.

    Features:
    - Cache-first: a warm cache costs one test call
    - Candidates tried strictly in order, first success wins
    - Cache cleared when a call using the cached model fails
    """

    def __init__(
        self,
        candidates: Sequence[str],
        ping: PingCallable,
        context: ProviderContext
    ):
        """
        Initialize the prober.

        Args:
            candidates: Model identifiers, most preferred first
            ping: Coroutine issuing a trivial call against one model; raises on failure
            context: Shared provider state holding the cached model
        """
        if not candidates:
            raise InvalidConfigError("Model candidate list is empty")
        self._candidates: Tuple[str, ...] = tuple(candidates)
        self._ping = ping
        self._context = context
        self._lock = asyncio.Lock()

    @property
    def candidates(self) -> Tuple[str, ...]:
        return self._candidates

    @property
    def cached_model(self) -> Optional[str]:
        return self._context.cached_working_model

    async def find_working_model(self) -> str:
        """
        Return a model identifier that accepted a test call.

        Raises:
            ModelAvailabilityError: if no candidate responds
        """
        async with self._lock:
            cached = self._context.cached_working_model
            if cached:
                try:
                    await self._ping(cached)
                    logger.debug(f"Cached model {cached} still available")
                    return cached
                except Exception as e:
                    logger.warning(f"Cached model {cached} failed ({e}), re-probing candidates")
                    self._context.cached_working_model = None

            failures: Dict[str, str] = {}
            for candidate in self._candidates:
                try:
                    await self._ping(candidate)
                except Exception as e:
                    logger.debug(f"❌ {candidate} unavailable: {e}")
                    failures[candidate] = str(e)
                    continue

                self._context.cached_working_model = candidate
                logger.info(f"✅ Found working model: {candidate}")
                return candidate

            logger.error(f"No working model among {len(self._candidates)} candidates")
            raise ModelAvailabilityError(failures)

    def invalidate(self, model: str) -> None:
        """Forget the cached model if it is the one that just failed."""
        if self._context.cached_working_model == model:
            logger.warning(f"Invalidating cached model {model}")
            self._context.cached_working_model = None

    async def probe_all(self) -> Dict[str, Optional[str]]:
        """
        Test every candidate without touching the cache.

        Returns:
            Mapping of candidate to None when available, or the failure message
        """
        report: Dict[str, Optional[str]] = {}
        for candidate in self._candidates:
            try:
                await self._ping(candidate)
                report[candidate] = None
            except Exception as e:
                report[candidate] = str(e)
        return report
