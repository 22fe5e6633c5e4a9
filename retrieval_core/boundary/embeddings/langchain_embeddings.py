"""
LangChain embedding service adapter.

Wraps a LangChain ``Embeddings`` implementation (Google Generative AI by
default) behind the EmbeddingService contract, creating one client per
credential and translating provider errors into the core taxonomy.

Dependencies: langchain_core, langchain_google_genai
System role: Production embedding provider adapter
"""

import asyncio
import logging
import re
from typing import Callable, Sequence

from langchain_core.embeddings import Embeddings

from retrieval_core.boundary.embeddings.base import TaskHint
from retrieval_core.core.exceptions import (
    PermanentInputError,
    RateLimitError,
    TransientProviderError,
)
from retrieval_core.models.credential import Credential

logger = logging.getLogger(__name__)

EmbeddingsFactory = Callable[[Credential], Embeddings]

_RATE_LIMIT_PATTERN = re.compile(
    r"\b429\b|quota|rate.?limit|resource.?exhausted", re.IGNORECASE
)
_PERMANENT_PATTERN = re.compile(
    r"\b400\b|invalid.?argument|empty content", re.IGNORECASE
)
_RETRY_AFTER = re.compile(r"retry[_\s-]?(?:after|delay)\D{0,10}(\d+(?:\.\d+)?)", re.IGNORECASE)


def google_embeddings_factory(
    model: str = "models/text-embedding-004",
    output_dimensionality: int | None = None,
) -> EmbeddingsFactory:
    """
    Build a factory creating GoogleGenerativeAIEmbeddings per credential.

    Args:
        model: Google embedding model ID
        output_dimensionality: Optional fixed dimension

    Returns:
        EmbeddingsFactory: Callable producing a client bound to a credential
    """
    from langchain_google_genai import GoogleGenerativeAIEmbeddings

    def _factory(credential: Credential) -> Embeddings:
        kwargs = {"model": model, "google_api_key": credential.secret}
        if output_dimensionality is not None:
            kwargs["output_dimensionality"] = output_dimensionality
        return GoogleGenerativeAIEmbeddings(**kwargs)

    return _factory


def classify_provider_error(error: Exception) -> Exception:
    """
    Map a provider exception onto the core error taxonomy.

    Args:
        error: Exception raised by the provider client

    Returns:
        Exception: RateLimitError, PermanentInputError or TransientProviderError
    """
    message = f"{type(error).__name__}: {error}"
    if _RATE_LIMIT_PATTERN.search(message):
        match = _RETRY_AFTER.search(message)
        retry_after = float(match.group(1)) if match else None
        return RateLimitError(f"Provider rate limit: {error}", retry_after=retry_after)
    if _PERMANENT_PATTERN.search(message):
        return PermanentInputError(f"Provider rejected input: {error}")
    return TransientProviderError(f"Provider call failed: {error}")


class LangChainEmbeddingService:
    """EmbeddingService backed by per-credential LangChain clients."""

    def __init__(
        self,
        factory: EmbeddingsFactory,
        timeout: float | None = 60.0,
    ) -> None:
        """
        Initialize adapter.

        Args:
            factory: Builds an Embeddings client for a credential
            timeout: Per-call timeout in seconds (None disables)
        """
        self._factory = factory
        self._timeout = timeout
        self._clients: dict[str, Embeddings] = {}

    def _client(self, credential: Credential) -> Embeddings:
        client = self._clients.get(credential.id)
        if client is None:
            client = self._factory(credential)
            self._clients[credential.id] = client
        return client

    async def embed_batch(
        self,
        texts: Sequence[str],
        task_hint: TaskHint,
        credential: Credential,
    ) -> list[list[float]]:
        """
        Embed texts with the client bound to ``credential``.

        Raises:
            RateLimitError: Provider throttled the credential
            PermanentInputError: Provider rejected the input
            TransientProviderError: Any other provider failure or a timeout
        """
        if not texts:
            return []

        client = self._client(credential)
        try:
            if task_hint is TaskHint.RETRIEVAL_QUERY and len(texts) == 1:
                call = client.aembed_query(texts[0])
                vector = await asyncio.wait_for(call, timeout=self._timeout)
                return [list(vector)]
            call = client.aembed_documents(list(texts))
            vectors = await asyncio.wait_for(call, timeout=self._timeout)
            return [list(vector) for vector in vectors]
        except asyncio.TimeoutError as e:
            raise TransientProviderError(
                "Embedding call timed out",
                details={"timeout": self._timeout, "batch_size": len(texts)},
            ) from e
        except Exception as e:
            classified = classify_provider_error(e)
            logger.debug(
                f"{__name__}:embed_batch - {type(classified).__name__} "
                f"for credential {credential.id}: {e}"
            )
            raise classified from e
