"""External system adapters: embeddings, vector stores and the database."""
