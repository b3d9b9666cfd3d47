"""Exception types raised across the pipeline."""


class RegulationRagError(Exception):
    """Base class for pipeline errors."""


class ProviderError(RegulationRagError):
    """An external provider (embedding, vector store, completion) failed."""


class DraftGenerationError(RegulationRagError):
    """The immediate draft answer could not be produced.

    This is the only fatal error of a chat request; everything else degrades
    to a draft-only answer.
    """

    def __init__(self, message: str, details: str = "") -> None:
        super().__init__(message)
        self.details = details or message
