"""Custom exception hierarchy for Gonçalinho.

All application exceptions inherit from :class:`GoncalinhoError`, which
carries an optional ``provider_name`` so error handlers can identify which
component or external service (e.g. "pdf", "json_store", "openai") caused
the failure.

The hierarchy is organized by pipeline domain:

    GoncalinhoError  (base -- catch-all for any Gonçalinho error)
    +-- UnsupportedFormatError   (extraction: unknown file extension)
    +-- ExtractionError          (extraction: corrupt PDF/DOCX/XLSX)
    +-- StoreError               (document store could not be read)
    |   +-- StoreWriteError      (document store could not be written)
    +-- ProcessingError          (ingestion failed -- surfaced to callers)
    +-- LLMError                 (answer-generation provider failure)
    +-- ConfigurationError       (startup / missing config)

``UnsupportedFormatError`` is informational: the ingestion service turns
it into an empty chunk set rather than a failure.  ``ProcessingError`` is
the single signal the upload caller sees; the underlying extraction or
store error is chained as ``__cause__`` and logged.
"""


class GoncalinhoError(Exception):
    """Base exception for all Gonçalinho errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which component triggered the error.
    ``__str__`` prefixes the provider name in brackets for log output,
    e.g. ``[pdf] Could not parse PDF``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Extraction errors
# ---------------------------------------------------------------------------

class UnsupportedFormatError(GoncalinhoError):
    """Raised when no extractor is registered for a file extension."""

    def __init__(
        self,
        message: str = "Unsupported file format",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ExtractionError(GoncalinhoError):
    """Raised when a format-specific parser cannot process the uploaded bytes."""

    def __init__(
        self,
        message: str = "Content extraction failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Persistence errors
# ---------------------------------------------------------------------------

class StoreError(GoncalinhoError):
    """Raised when the document store cannot read its backing files."""

    def __init__(
        self,
        message: str = "Document store operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class StoreWriteError(StoreError):
    """Raised when the document store cannot durably write (disk full, permissions)."""

    def __init__(
        self,
        message: str = "Document store write failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Orchestration errors
# ---------------------------------------------------------------------------

class ProcessingError(GoncalinhoError):
    """Raised when ingesting an upload fails at any stage.

    Callers treat the document as not created.
    """

    def __init__(
        self,
        message: str = "Processing failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class LLMError(GoncalinhoError):
    """Raised when an LLM API call fails or returns an unusable stream."""

    def __init__(
        self,
        message: str = "LLM API call failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ConfigurationError(GoncalinhoError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
