"""
Database ORM models.

Exports: DocumentRecordModel, DocumentVectorModel
"""

from .document_record_model import DocumentRecordModel
from .document_vector_model import DocumentVectorModel

__all__ = ["DocumentRecordModel", "DocumentVectorModel"]
