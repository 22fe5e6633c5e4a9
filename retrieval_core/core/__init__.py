"""Domain logic: credentials, concurrency, ingestion and search."""
