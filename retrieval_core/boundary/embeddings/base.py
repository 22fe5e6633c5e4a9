"""
Embedding service contract.

The core treats the embedding provider as an abstract service. Batch size
and vector dimensionality are provider properties discovered at first call.
Implementations raise RateLimitError for throttling and
TransientProviderError for anything worth retrying.

Dependencies: typing
System role: External interface for the embedding provider
"""

import enum
from typing import Protocol, Sequence, runtime_checkable

from retrieval_core.models.credential import Credential


class TaskHint(str, enum.Enum):
    """What the vectors will be used for."""

    RETRIEVAL_DOCUMENT = "RETRIEVAL_DOCUMENT"
    RETRIEVAL_QUERY = "RETRIEVAL_QUERY"


@runtime_checkable
class EmbeddingService(Protocol):
    """Provider able to embed a batch of texts with a given credential."""

    async def embed_batch(
        self,
        texts: Sequence[str],
        task_hint: TaskHint,
        credential: Credential,
    ) -> list[list[float]]:
        """
        Embed texts, one vector per input in the same order.

        Raises:
            RateLimitError: Provider throttled the credential
            TransientProviderError: Timeout or transient failure
            PermanentInputError: Content the provider can never embed
        """
        ...
