"""
Credential rotator.

Owns a pool of rate-limited API credentials and hands out the next usable
one in round-robin order. Credentials cooling down after a rate-limit
signal, or disabled after repeated failures, are skipped. When nothing is
usable the least-recently-used credential is returned anyway (degraded
mode) so callers never block indefinitely.

Every mutation happens under one asyncio.Lock, held only for the state
update and never across a provider call.

Dependencies: asyncio, retrieval_core.models.credential
System role: Shared view of credential health for every ingestion/query call site
"""

import asyncio
import logging
import time
from typing import Callable, Sequence

from retrieval_core.configs.credentials import CredentialSettings
from retrieval_core.core.exceptions import ConfigurationError
from retrieval_core.models.credential import Credential, CredentialSnapshot

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class CredentialRotator:
    """Round-robin selection over a pool of credentials with health tracking."""

    def __init__(
        self,
        credentials: Sequence[Credential],
        failure_threshold: int = 5,
        default_cooldown: float = 60.0,
        clock: Clock = time.monotonic,
    ) -> None:
        """
        Initialize rotator.

        Args:
            credentials: Pool of credentials (at least one)
            failure_threshold: Consecutive failures that disable a credential
            default_cooldown: Cooldown in seconds when the provider gives none
            clock: Monotonic time source

        Raises:
            ConfigurationError: When the pool is empty or ids are duplicated
        """
        if not credentials:
            raise ConfigurationError(
                "At least one credential is required", setting="api_keys"
            )
        ids = [credential.id for credential in credentials]
        if len(set(ids)) != len(ids):
            raise ConfigurationError("Credential ids must be unique", setting="api_keys")

        self._credentials = list(credentials)
        self._by_id = {credential.id: credential for credential in self._credentials}
        self.failure_threshold = failure_threshold
        self.default_cooldown = default_cooldown
        self._clock = clock
        self._cursor = 0
        self._lock = asyncio.Lock()
        self.degraded_selections = 0

        logger.info(
            f"{__name__}:__init__ - Initialized with {len(self._credentials)} credential(s)"
        )

    @classmethod
    def from_keys(cls, keys: Sequence[str], **kwargs) -> "CredentialRotator":
        """Build a rotator with ids ``key-1 .. key-N`` for the given secrets."""
        credentials = [
            Credential(id=f"key-{i + 1}", secret=key) for i, key in enumerate(keys)
        ]
        return cls(credentials, **kwargs)

    @classmethod
    def from_settings(
        cls,
        settings: CredentialSettings,
        clock: Clock = time.monotonic,
    ) -> "CredentialRotator":
        """
        Build a rotator from configuration.

        Raises:
            ConfigurationError: When no API key is configured
        """
        return cls.from_keys(
            settings.resolved_keys(),
            failure_threshold=settings.failure_threshold,
            default_cooldown=settings.rate_limit_cooldown,
            clock=clock,
        )

    def __len__(self) -> int:
        return len(self._credentials)

    @property
    def credentials(self) -> list[Credential]:
        return list(self._credentials)

    async def acquire(self) -> Credential:
        """
        Select the next usable credential.

        Returns:
            Credential: Next healthy credential in round-robin order, or the
            least-recently-used one when every credential is unusable
        """
        async with self._lock:
            now = self._clock()
            count = len(self._credentials)
            for offset in range(count):
                index = (self._cursor + offset) % count
                credential = self._credentials[index]
                if credential.is_usable(now):
                    self._cursor = (index + 1) % count
                    return self._mark_used(credential, now)

            credential = self._least_recently_used()
            self.degraded_selections += 1
            logger.warning(
                f"{__name__}:acquire - All credentials exhausted, "
                f"using least recently used ({credential.id})",
                extra={
                    "credential_id": credential.id,
                    "cooldown_remaining": max(0.0, credential.cooldown_until - now),
                    "active": credential.active,
                },
            )
            return self._mark_used(credential, now)

    async def report_rate_limited(
        self,
        credential: Credential,
        cooldown: float | None = None,
    ) -> None:
        """
        Put a credential on cooldown without disabling it.

        Args:
            credential: Credential that was throttled
            cooldown: Seconds to cool down (default_cooldown if None)
        """
        duration = self.default_cooldown if cooldown is None else cooldown
        async with self._lock:
            tracked = self._tracked(credential)
            if tracked is None:
                return
            tracked.cooldown_until = self._clock() + duration
        logger.warning(
            f"{__name__}:report_rate_limited - Credential {credential.id} "
            f"rate limited for {duration:.1f}s"
        )

    async def report_failure(self, credential: Credential) -> None:
        """Count a failure; disable the credential at the threshold."""
        disabled = False
        async with self._lock:
            tracked = self._tracked(credential)
            if tracked is None:
                return
            tracked.failure_count += 1
            tracked.consecutive_failures += 1
            if tracked.active and tracked.consecutive_failures >= self.failure_threshold:
                tracked.active = False
                disabled = True
        if disabled:
            logger.error(
                f"{__name__}:report_failure - Credential {credential.id} "
                f"disabled after {self.failure_threshold} consecutive failures"
            )

    async def report_success(self, credential: Credential) -> None:
        """Reset the consecutive-failure counter and re-enable the credential."""
        async with self._lock:
            tracked = self._tracked(credential)
            if tracked is None:
                return
            tracked.consecutive_failures = 0
            tracked.active = True

    async def reset_rate_limits(self) -> None:
        """Clear every cooldown."""
        async with self._lock:
            for credential in self._credentials:
                credential.cooldown_until = 0.0
        logger.info(f"{__name__}:reset_rate_limits - All rate limits reset")

    def available_count(self) -> int:
        """Number of credentials that are active and not cooling down."""
        now = self._clock()
        return sum(1 for credential in self._credentials if credential.is_usable(now))

    def seconds_until_available(self) -> float:
        """
        Time until some active credential leaves its cooldown.

        Returns:
            float: 0.0 if one is usable now; otherwise the shortest remaining
            cooldown among active credentials (or among all, if none is active)
        """
        now = self._clock()
        if any(credential.is_usable(now) for credential in self._credentials):
            return 0.0
        pool = [c for c in self._credentials if c.active] or self._credentials
        return max(0.0, min(c.cooldown_until for c in pool) - now)

    def stats(self) -> list[CredentialSnapshot]:
        """Snapshot of every credential's counters."""
        now = self._clock()
        return [
            CredentialSnapshot(
                id=c.id,
                request_count=c.request_count,
                failure_count=c.failure_count,
                consecutive_failures=c.consecutive_failures,
                cooling_down=c.is_cooling_down(now),
                cooldown_remaining=max(0.0, c.cooldown_until - now),
                active=c.active,
                last_used=c.last_used,
            )
            for c in self._credentials
        ]

    def _mark_used(self, credential: Credential, now: float) -> Credential:
        credential.request_count += 1
        credential.last_used = now
        return credential

    def _least_recently_used(self) -> Credential:
        pool = [c for c in self._credentials if c.active] or self._credentials
        # Never-used credentials sort first
        return min(pool, key=lambda c: float("-inf") if c.last_used is None else c.last_used)

    def _tracked(self, credential: Credential) -> Credential | None:
        tracked = self._by_id.get(credential.id)
        if tracked is None:
            logger.warning(
                f"{__name__}:_tracked - Unknown credential {credential.id}, ignoring report"
            )
        return tracked
