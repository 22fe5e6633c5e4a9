"""
Result deduplication.

Candidates are keyed by (document_id, hash of the first 200 normalized
characters); only the highest-scoring candidate per key survives.

Dependencies: hashlib
System role: Post-fusion cleanup
"""

import hashlib
import logging
from typing import Sequence

from retrieval_core.models.search import SearchCandidate

logger = logging.getLogger(__name__)

DEFAULT_PREFIX_LENGTH = 200


def normalize_text(text: str) -> str:
    return " ".join(text.lower().split())


def text_fingerprint(text: str, prefix_length: int = DEFAULT_PREFIX_LENGTH) -> str:
    """SHA-1 of the leading normalized characters."""
    prefix = normalize_text(text)[:prefix_length]
    return hashlib.sha1(prefix.encode("utf-8")).hexdigest()


def dedup_key(
    candidate: SearchCandidate,
    prefix_length: int = DEFAULT_PREFIX_LENGTH,
) -> tuple[str, str]:
    return candidate.document_id, text_fingerprint(candidate.text, prefix_length)


def deduplicate(
    candidates: Sequence[SearchCandidate],
    prefix_length: int = DEFAULT_PREFIX_LENGTH,
) -> list[SearchCandidate]:
    """
    Keep the highest composite score per dedup key, preserving input order.

    Applying it to its own output returns the same list.
    """
    best: dict[tuple[str, str], SearchCandidate] = {}
    for candidate in candidates:
        key = dedup_key(candidate, prefix_length)
        current = best.get(key)
        if current is None or candidate.composite_score > current.composite_score:
            best[key] = candidate

    kept_ids = {id(candidate) for candidate in best.values()}
    deduped = [candidate for candidate in candidates if id(candidate) in kept_ids]
    if len(deduped) < len(candidates):
        logger.debug(
            f"{__name__}:deduplicate - {len(candidates)} -> {len(deduped)} candidates"
        )
    return deduped
