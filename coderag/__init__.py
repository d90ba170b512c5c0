"""Code indexing and hybrid retrieval."""
