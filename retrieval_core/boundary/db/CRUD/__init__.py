"""
CRUD operations for database models.

Exports: BaseCRUD, DocumentRecordCRUD, DocumentVectorCRUD
"""

from .base_crud import BaseCRUD
from .document_record_crud import DocumentRecordCRUD
from .document_vector_crud import DocumentVectorCRUD

__all__ = ["BaseCRUD", "DocumentRecordCRUD", "DocumentVectorCRUD"]
