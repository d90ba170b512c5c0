"""Engine exception types."""


class CodeRagError(Exception):
    """Base class for engine errors."""


class IndexStoreError(CodeRagError):
    """A store mutation failed and was rolled back."""


class EmbeddingUnavailableError(CodeRagError):
    """No embedding capability is available for a semantic operation."""
