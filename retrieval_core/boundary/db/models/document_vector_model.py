"""
Document-to-vector linkage ORM model.

Durable mapping from a document to the vector points created for it, so a
document can be deleted point-by-point without scanning the collection.
Also stores the chunk text, which the keyword index is built from.

Dependencies: sqlalchemy, retrieval_core.boundary.db.base
System role: Linkage index for vector deletes and keyword corpus
"""

from sqlalchemy import Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from retrieval_core.boundary.db.base import Base, TimestampMixin


class DocumentVectorModel(Base, TimestampMixin):
    """
    One row per persisted vector.

    Attributes:
        id: Surrogate primary key
        namespace: Vector collection (partition key)
        document_id: Parent document ID
        vector_id: Point ID in the vector store
        ordinal: Chunk position within the document
        text: Exact chunk text that was embedded
    """

    __tablename__ = "document_vectors"
    __table_args__ = (UniqueConstraint("namespace", "vector_id", name="uq_namespace_vector"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    namespace: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
    document_id: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
    vector_id: Mapped[str] = mapped_column(String(64), nullable=False)
    ordinal: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    text: Mapped[str] = mapped_column(Text, default="", nullable=False)
