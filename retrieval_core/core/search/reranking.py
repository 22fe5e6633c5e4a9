"""
Reranker contract.

An optional cross-encoder style scorer applied to fused candidates. When
none is configured its fusion weight is redistributed to the other paths.

Dependencies: typing
System role: Optional fourth score source for hybrid fusion
"""

from typing import Protocol, Sequence, runtime_checkable


@runtime_checkable
class Reranker(Protocol):
    """Scores candidate texts against a query, one score per text."""

    async def rerank(self, query: str, texts: Sequence[str]) -> list[float]: ...
