"""
Credential record.

Created once at process start from configuration and mutated only by the
CredentialRotator, under its lock.

Dependencies: dataclasses
System role: Rate-limited API key state
"""

from dataclasses import dataclass, field


@dataclass
class Credential:
    """API key plus its health counters."""

    id: str
    secret: str = field(repr=False)
    request_count: int = 0
    failure_count: int = 0
    consecutive_failures: int = 0
    cooldown_until: float = 0.0
    last_used: float | None = None
    active: bool = True

    def is_cooling_down(self, now: float) -> bool:
        return now < self.cooldown_until

    def is_usable(self, now: float) -> bool:
        return self.active and not self.is_cooling_down(now)


@dataclass(frozen=True)
class CredentialSnapshot:
    """Read-only view of a credential for statistics."""

    id: str
    request_count: int
    failure_count: int
    consecutive_failures: int
    cooling_down: bool
    cooldown_remaining: float
    active: bool
    last_used: float | None
