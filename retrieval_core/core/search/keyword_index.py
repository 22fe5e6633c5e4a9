"""
BM25 keyword index.

Sparse ranker complementing vector similarity. The index is read-mostly:
adding or removing documents rebuilds it wholesale.

Dependencies: math, retrieval_core.core.search.tokenization
System role: Keyword retrieval path of hybrid search
"""

import logging
import math
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Iterable, Sequence

from retrieval_core.core.search.tokenization import tokenize

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KeywordDocument:
    """Unit indexed by the keyword index (one chunk)."""

    id: str
    text: str
    document_id: str = ""
    metadata: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)


@dataclass(frozen=True)
class KeywordHit:
    """Scored keyword result."""

    document: KeywordDocument
    score: float

    @property
    def id(self) -> str:
        return self.document.id


class KeywordIndex:
    """
    Okapi BM25 over a fixed corpus.

    score(d, q) = sum over query terms t of
        idf(t) * tf(t,d) * (k1 + 1) / (tf(t,d) + k1 * (1 - b + b * |d| / avgLen))
    with idf(t) = ln((N - df(t) + 0.5) / (df(t) + 0.5) + 1).
    """

    def __init__(self, k1: float = 1.5, b: float = 0.75) -> None:
        self.k1 = k1
        self.b = b
        self._documents: list[KeywordDocument] = []
        self._positions: dict[str, int] = {}
        self._term_frequencies: list[Counter] = []
        self._lengths: list[int] = []
        self._avg_length = 0.0
        self._idf: dict[str, float] = {}

    def __len__(self) -> int:
        return len(self._documents)

    def build_index(self, documents: Iterable[KeywordDocument]) -> None:
        """Replace the corpus and recompute every statistic."""
        self._documents = list(documents)
        self._positions = {doc.id: i for i, doc in enumerate(self._documents)}
        self._term_frequencies = []
        self._lengths = []
        document_frequency: Counter = Counter()

        for doc in self._documents:
            terms = Counter(tokenize(doc.text))
            self._term_frequencies.append(terms)
            self._lengths.append(sum(terms.values()))
            document_frequency.update(terms.keys())

        count = len(self._documents)
        self._avg_length = sum(self._lengths) / count if count else 0.0
        self._idf = {
            term: math.log((count - df + 0.5) / (df + 0.5) + 1)
            for term, df in document_frequency.items()
        }
        logger.debug(
            f"{__name__}:build_index - Indexed {count} documents, {len(self._idf)} unique terms"
        )

    def add_documents(self, documents: Sequence[KeywordDocument]) -> None:
        """Add or replace documents, then rebuild."""
        if not documents:
            return
        incoming = {doc.id for doc in documents}
        kept = [doc for doc in self._documents if doc.id not in incoming]
        self.build_index(kept + list(documents))

    def remove_documents(self, ids: Iterable[str]) -> None:
        """Drop documents by ID, then rebuild."""
        removed = set(ids)
        self.build_index([doc for doc in self._documents if doc.id not in removed])

    def search(self, query: str, top_k: int = 10) -> list[KeywordHit]:
        """
        Rank indexed documents against a query.

        Returns:
            list[KeywordHit]: Up to ``top_k`` hits with positive score, best first
        """
        terms = tokenize(query)
        if not terms or not self._documents:
            return []

        hits = []
        for position, doc in enumerate(self._documents):
            score = self._score(
                terms, self._term_frequencies[position], self._lengths[position]
            )
            if score > 0:
                hits.append(KeywordHit(document=doc, score=score))
        hits.sort(key=lambda hit: (-hit.score, hit.id))
        return hits[:top_k]

    def score_against(
        self,
        query: str,
        documents: Sequence[KeywordDocument],
    ) -> list[KeywordHit]:
        """
        Score an arbitrary document set, in input order.

        Indexed documents use index statistics; others are scored on the fly,
        with ``ln(N + 1)`` as idf for terms the index has never seen.
        """
        terms = tokenize(query)
        hits = []
        for doc in documents:
            position = self._positions.get(doc.id)
            if position is not None:
                score = self._score(
                    terms, self._term_frequencies[position], self._lengths[position]
                )
            else:
                frequencies = Counter(tokenize(doc.text))
                score = self._score(
                    terms,
                    frequencies,
                    sum(frequencies.values()),
                    unseen_idf=math.log(len(self._documents) + 1),
                )
            hits.append(KeywordHit(document=doc, score=score))
        return hits

    def stats(self) -> dict[str, Any]:
        return {
            "document_count": len(self._documents),
            "unique_terms": len(self._idf),
            "avg_document_length": self._avg_length,
            "k1": self.k1,
            "b": self.b,
        }

    def _score(
        self,
        terms: Sequence[str],
        frequencies: Counter,
        length: int,
        unseen_idf: float = 0.0,
    ) -> float:
        avg_length = self._avg_length or float(length) or 1.0
        norm = self.k1 * (1 - self.b + self.b * length / avg_length)
        score = 0.0
        for term in terms:
            tf = frequencies.get(term, 0)
            if tf == 0:
                continue
            idf = self._idf.get(term, unseen_idf)
            score += idf * (tf * (self.k1 + 1)) / (tf + norm)
        return score
