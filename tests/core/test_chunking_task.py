"""
Test suite for ChunkingTask.

Tests size limits, overlap validation, header rendering, metadata
inheritance and deterministic chunk identifiers.
"""

import pytest

from retrieval_core.core.document_processing.tasks import ChunkingTask
from retrieval_core.core.exceptions import ConfigurationError, PermanentInputError
from retrieval_core.models.document import Document, DocumentMetadata


@pytest.fixture
def long_text() -> str:
    paragraphs = [
        " ".join(f"word{p}_{i}" for i in range(40)) for p in range(5)
    ]
    return "\n\n".join(paragraphs)


class TestChunkingTaskConfiguration:
    """Test suite for ChunkingTask construction."""

    def test_init_should_reject_overlap_not_below_max(self) -> None:
        with pytest.raises(ConfigurationError):
            ChunkingTask(max_length=100, overlap_length=100)

    def test_init_should_clamp_to_provider_limit(self) -> None:
        """Test the provider input limit caps the chunk size."""
        task = ChunkingTask(max_length=1000, overlap_length=20, provider_max_length=300)

        assert task.max_length == 300

    def test_init_should_reject_overlap_after_clamping(self) -> None:
        """Test the overlap is validated against the clamped size."""
        with pytest.raises(ConfigurationError):
            ChunkingTask(max_length=1000, overlap_length=200, provider_max_length=150)


class TestChunkingTaskSplit:
    """Test suite for ChunkingTask.split()."""

    @pytest.mark.parametrize("text", ["", "   \n\t  "])
    def test_split_should_reject_empty_text(self, text: str) -> None:
        with pytest.raises(PermanentInputError):
            ChunkingTask().split(text, document_id="doc-1")

    def test_split_should_keep_bodies_within_max_length(self, long_text: str) -> None:
        # Arrange
        task = ChunkingTask(max_length=120, overlap_length=20)

        # Act
        chunks = task.split(long_text, document_id="doc-1", partition_key="ws")

        # Assert
        assert len(chunks) > 1
        assert all(len(chunk.body) <= 120 for chunk in chunks)
        assert [chunk.ordinal for chunk in chunks] == list(range(len(chunks)))
        assert all(chunk.partition_key == "ws" for chunk in chunks)

    def test_split_should_return_single_chunk_for_short_text(self) -> None:
        chunks = ChunkingTask(max_length=500, overlap_length=20).split("A short judgment.")

        assert len(chunks) == 1
        assert chunks[0].body == "A short judgment."

    def test_split_should_prefix_header_to_every_chunk(self, long_text: str) -> None:
        """Test embedded text is header plus body and metadata is inherited."""
        # Arrange
        metadata = DocumentMetadata(title="State v. Kumar", court="Supreme Court of India", year=2021)
        task = ChunkingTask(max_length=200, overlap_length=20)

        # Act
        chunks = task.split(long_text, header_metadata=metadata, document_id="doc-1")

        # Assert
        header = metadata.render_header()
        assert header.startswith("<document_metadata>")
        for chunk in chunks:
            assert chunk.header == header
            assert chunk.text == header + chunk.body
            assert chunk.metadata["court"] == "Supreme Court of India"
            assert chunk.metadata["year"] == 2021

    def test_split_should_generate_deterministic_ids(self, long_text: str) -> None:
        task = ChunkingTask(max_length=150, overlap_length=10)

        first = [chunk.id for chunk in task.split(long_text, document_id="doc-1")]
        second = [chunk.id for chunk in task.split(long_text, document_id="doc-1")]
        other = [chunk.id for chunk in task.split(long_text, document_id="doc-2")]

        assert first == second
        assert len(set(first)) == len(first)
        assert set(first).isdisjoint(other)

    def test_chunk_document_should_use_document_fields(self) -> None:
        document = Document(
            id="doc-9",
            text="First paragraph.\n\nSecond paragraph.",
            partition_key="tenant-a",
            metadata=DocumentMetadata(title="Title"),
        )

        chunks = ChunkingTask().chunk_document(document)

        assert chunks[0].document_id == "doc-9"
        assert chunks[0].partition_key == "tenant-a"
        assert "title: Title" in chunks[0].text
