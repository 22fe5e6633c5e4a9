"""
Test suite for CredentialRotator.

Tests round-robin fairness, cooldown after rate limits, disabling after
repeated failures and degraded selection when every credential is unusable.

System role: Verification of credential health tracking
"""

import asyncio
import math

import pytest

from retrieval_core.configs.credentials import MAX_NUMBERED_KEYS, CredentialSettings
from retrieval_core.core.credentials import CredentialRotator
from retrieval_core.core.exceptions import ConfigurationError
from retrieval_core.models.credential import Credential


class TestCredentialRotatorConstruction:
    """Test suite for rotator construction."""

    def test_init_should_reject_empty_pool(self) -> None:
        """Test an empty credential list is a configuration error."""
        with pytest.raises(ConfigurationError):
            CredentialRotator([])

    def test_init_should_reject_duplicate_ids(self) -> None:
        """Test duplicate credential ids are rejected."""
        credentials = [Credential(id="a", secret="1"), Credential(id="a", secret="2")]

        with pytest.raises(ConfigurationError):
            CredentialRotator(credentials)

    def test_from_settings_should_build_one_credential_per_key(self, monkeypatch) -> None:
        """Test keys from settings become key-1..key-N."""
        # Arrange
        for i in range(1, MAX_NUMBERED_KEYS + 1):
            monkeypatch.delenv(f"EMBEDDING_API_KEY_{i}", raising=False)
        settings = CredentialSettings(api_keys="alpha,beta", failure_threshold=2)

        # Act
        rotator = CredentialRotator.from_settings(settings)

        # Assert
        assert len(rotator) == 2
        assert [c.id for c in rotator.credentials] == ["key-1", "key-2"]
        assert rotator.failure_threshold == 2


class TestCredentialRotatorSelection:
    """Test suite for acquire() selection order."""

    @pytest.mark.asyncio
    async def test_acquire_should_rotate_round_robin(self, rotator: CredentialRotator) -> None:
        """Test consecutive acquires cycle through the pool in order."""
        # Act
        ids = [(await rotator.acquire()).id for _ in range(6)]

        # Assert
        assert ids == ["key-1", "key-2", "key-3", "key-1", "key-2", "key-3"]

    @pytest.mark.asyncio
    async def test_acquire_should_spread_requests_fairly(self, rotator: CredentialRotator) -> None:
        """Test no credential serves more than ceil(M/K) of M healthy acquisitions."""
        # Arrange
        requests = 20

        # Act
        await asyncio.gather(*(rotator.acquire() for _ in range(requests)))

        # Assert
        counts = [snapshot.request_count for snapshot in rotator.stats()]
        assert sum(counts) == requests
        assert max(counts) <= math.ceil(requests / len(rotator))

    @pytest.mark.asyncio
    async def test_acquire_should_skip_cooling_down_credential(
        self, rotator: CredentialRotator, clock
    ) -> None:
        """Test a rate-limited credential is not handed out during its cooldown."""
        # Arrange
        first = await rotator.acquire()
        await rotator.report_rate_limited(first, cooldown=30.0)

        # Act
        ids = [(await rotator.acquire()).id for _ in range(4)]

        # Assert
        assert first.id not in ids
        assert rotator.available_count() == 2

    @pytest.mark.asyncio
    async def test_acquire_should_return_credential_after_cooldown(
        self, rotator: CredentialRotator, clock
    ) -> None:
        """Test a credential is usable again once its cooldown elapses."""
        # Arrange
        first = await rotator.acquire()
        await rotator.report_rate_limited(first, cooldown=30.0)

        # Act
        clock.advance(31.0)
        ids = {(await rotator.acquire()).id for _ in range(3)}

        # Assert
        assert first.id in ids
        assert rotator.available_count() == 3

    @pytest.mark.asyncio
    async def test_acquire_should_fall_back_to_least_recently_used(
        self, rotator: CredentialRotator, clock
    ) -> None:
        """Test degraded mode when every credential is cooling down."""
        # Arrange
        for _ in range(3):
            credential = await rotator.acquire()
            clock.advance(1.0)
            await rotator.report_rate_limited(credential, cooldown=60.0)

        # Act
        chosen = await rotator.acquire()

        # Assert
        assert chosen.id == "key-1"
        assert rotator.degraded_selections == 1


class TestCredentialRotatorHealth:
    """Test suite for failure and success reporting."""

    @pytest.mark.asyncio
    async def test_report_failure_should_disable_at_threshold(self, clock) -> None:
        """Test consecutive failures at the threshold disable a credential."""
        # Arrange
        rotator = CredentialRotator.from_keys(["a", "b"], failure_threshold=2, clock=clock)
        first = await rotator.acquire()

        # Act
        await rotator.report_failure(first)
        await rotator.report_failure(first)

        # Assert
        snapshot = rotator.stats()[0]
        assert snapshot.active is False
        assert snapshot.failure_count == 2
        assert {(await rotator.acquire()).id for _ in range(3)} == {"key-2"}

    @pytest.mark.asyncio
    async def test_report_success_should_reenable_credential(self, clock) -> None:
        """Test a success resets consecutive failures and re-enables."""
        # Arrange
        rotator = CredentialRotator.from_keys(["a"], failure_threshold=1, clock=clock)
        credential = await rotator.acquire()
        await rotator.report_failure(credential)

        # Act
        await rotator.report_success(credential)

        # Assert
        snapshot = rotator.stats()[0]
        assert snapshot.active is True
        assert snapshot.consecutive_failures == 0

    @pytest.mark.asyncio
    async def test_rate_limit_should_not_disable_credential(
        self, rotator: CredentialRotator
    ) -> None:
        """Test throttling puts a credential on cooldown but keeps it active."""
        # Arrange
        credential = await rotator.acquire()

        # Act
        await rotator.report_rate_limited(credential)

        # Assert
        snapshot = rotator.stats()[0]
        assert snapshot.active is True
        assert snapshot.cooling_down is True
        assert snapshot.cooldown_remaining == pytest.approx(rotator.default_cooldown)

    @pytest.mark.asyncio
    async def test_seconds_until_available_should_report_shortest_cooldown(self, clock) -> None:
        """Test the wait hint for a single rate-limited credential."""
        # Arrange
        rotator = CredentialRotator.from_keys(["only"], clock=clock)
        credential = await rotator.acquire()
        await rotator.report_rate_limited(credential, cooldown=30.0)

        # Act
        clock.advance(10.0)

        # Assert
        assert rotator.seconds_until_available() == pytest.approx(20.0)

    @pytest.mark.asyncio
    async def test_reset_rate_limits_should_clear_cooldowns(
        self, rotator: CredentialRotator
    ) -> None:
        """Test resetting makes every credential available again."""
        # Arrange
        for _ in range(3):
            await rotator.report_rate_limited(await rotator.acquire(), cooldown=60.0)

        # Act
        await rotator.reset_rate_limits()

        # Assert
        assert rotator.available_count() == 3
        assert rotator.seconds_until_available() == 0.0
