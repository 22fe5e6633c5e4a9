"""
Shared test fixtures and configuration for entire test suite.

Provides: Fake embedding provider, fake clock and sleep, in-memory vector
store, SQLite engine and session factory
Dependencies: pytest, sqlalchemy, aiosqlite
System role: Test infrastructure and fixture management
"""

import hashlib
import math
import re
from typing import Sequence

import pytest

from retrieval_core.boundary.db.connection import (
    get_async_engine,
    get_async_session_factory,
    init_models,
)
from retrieval_core.boundary.embeddings.base import TaskHint
from retrieval_core.boundary.vdb.memory_store import InMemoryVectorStore
from retrieval_core.configs.database import DatabaseSettings
from retrieval_core.core.credentials import CredentialRotator
from retrieval_core.core.exceptions import PermanentInputError
from retrieval_core.models.credential import Credential

DIMENSION = 64
_WORD = re.compile(r"[a-z0-9]+")


def embed_text(text: str, dimension: int = DIMENSION) -> list[float]:
    """Deterministic hashed bag-of-words vector, L2-normalized."""
    vector = [0.0] * dimension
    for word in _WORD.findall(text.lower()):
        bucket = int(hashlib.sha1(word.encode()).hexdigest(), 16) % dimension
        vector[bucket] += 1.0
    norm = math.sqrt(sum(v * v for v in vector)) or 1.0
    return [v / norm for v in vector]


class FakeEmbeddingService:
    """
    Scriptable embedding provider.

    ``script`` entries are consumed one per call: an Exception is raised,
    the string "short" drops the last vector, None behaves normally.
    Any text containing a ``poison`` marker is rejected permanently.
    """

    def __init__(
        self,
        script: Sequence[Exception | str | None] = (),
        poison: Sequence[str] = ("POISON",),
        dimension: int = DIMENSION,
    ) -> None:
        self.script = list(script)
        self.poison = tuple(poison)
        self.dimension = dimension
        self.batch_sizes: list[int] = []
        self.credential_ids: list[str] = []
        self.task_hints: list[TaskHint] = []

    async def embed_batch(
        self,
        texts: Sequence[str],
        task_hint: TaskHint,
        credential: Credential,
    ) -> list[list[float]]:
        self.batch_sizes.append(len(texts))
        self.credential_ids.append(credential.id)
        self.task_hints.append(task_hint)

        step = self.script.pop(0) if self.script else None
        if isinstance(step, Exception):
            raise step
        for text in texts:
            if any(marker in text for marker in self.poison):
                raise PermanentInputError("Provider rejected input: 400 invalid argument")

        vectors = [embed_text(text, self.dimension) for text in texts]
        if step == "short":
            vectors = vectors[:-1]
        return vectors


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class SleepRecorder:
    """Awaitable sleep replacement that records delays and advances a clock."""

    def __init__(self, clock: FakeClock | None = None) -> None:
        self.delays: list[float] = []
        self._clock = clock

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)
        if self._clock is not None:
            self._clock.advance(seconds)


@pytest.fixture
def clock() -> FakeClock:
    """Provide a fake monotonic clock."""
    return FakeClock()


@pytest.fixture
def sleep(clock: FakeClock) -> SleepRecorder:
    """Provide a sleep that returns immediately and advances the fake clock."""
    return SleepRecorder(clock)


@pytest.fixture
def fake_embeddings() -> FakeEmbeddingService:
    """Provide a well-behaved fake embedding provider."""
    return FakeEmbeddingService()


@pytest.fixture
def rotator(clock: FakeClock) -> CredentialRotator:
    """Provide a three-credential rotator on the fake clock."""
    return CredentialRotator.from_keys(["secret-1", "secret-2", "secret-3"], clock=clock)


@pytest.fixture
def vector_store() -> InMemoryVectorStore:
    """Provide an empty in-memory vector store."""
    return InMemoryVectorStore()


@pytest.fixture
async def db_engine(tmp_path):
    """
    Create a throwaway SQLite database for testing.

    A file rather than :memory: so concurrent sessions get separate
    connections and transactions.

    Yields:
        AsyncEngine: Engine with all tables created
    """
    url = f"sqlite+aiosqlite:///{tmp_path / 'retrieval.db'}"
    engine = get_async_engine(DatabaseSettings(url=url))
    await init_models(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    """Provide a session factory bound to the test database."""
    return get_async_session_factory(db_engine)


@pytest.fixture
def make_embeddings():
    """Provide the FakeEmbeddingService class for scripted providers."""
    return FakeEmbeddingService


@pytest.fixture
def embed():
    """Provide the deterministic embedding function used by the fake provider."""
    return embed_text
