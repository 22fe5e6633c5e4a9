"""
Hybrid retrieval: BM25 keyword index, metadata filter search and fusion.

Exports: HybridSearchEngine, KeywordIndex, KeywordIndexCache, tokenize,
extract_filters, MetadataFilterSearch, ResultValidator, deduplicate
"""

from .deduplication import dedup_key, deduplicate, text_fingerprint
from .hybrid_search import HybridSearchEngine
from .index_cache import KeywordIndexCache, linkage_corpus_loader
from .keyword_index import KeywordDocument, KeywordHit, KeywordIndex
from .metadata_filter import MetadataFilterSearch, StructuredStore, extract_filters
from .reranking import Reranker
from .scoring import FusionWeights, normalize_scores
from .tokenization import tokenize
from .validation import ResultValidator

__all__ = [
    "HybridSearchEngine",
    "KeywordDocument",
    "KeywordHit",
    "KeywordIndex",
    "KeywordIndexCache",
    "linkage_corpus_loader",
    "MetadataFilterSearch",
    "StructuredStore",
    "extract_filters",
    "Reranker",
    "FusionWeights",
    "normalize_scores",
    "ResultValidator",
    "dedup_key",
    "deduplicate",
    "text_fingerprint",
    "tokenize",
]
