"""
Hybrid retrieval core.

Parallel document ingestion (chunking, embedding with credential rotation,
vector persistence) and hybrid search fusing semantic, BM25 keyword and
metadata filter retrieval.

Exports: RetrievalEngine, get_settings
"""

from retrieval_core.configs import Settings, get_settings
from retrieval_core.engine import RetrievalEngine

__all__ = ["RetrievalEngine", "Settings", "get_settings"]

__version__ = "0.1.0"
