"""
Error hierarchy of the resolution layer

None of these errors is meant to abort the process: each one is raised at the
point of failure and recovered by the component that owns the safe default.
"""
from typing import Optional


class SemanticLayerError(Exception):
    """
    Base class for resolution layer errors

    Attributes:
        message: Human-readable error message
        original_error: Original exception if wrapped
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error

    def __str__(self):
        if self.original_error is not None:
            return f"{self.message} (caused by {type(self.original_error).__name__}: {self.original_error})"
        return self.message


class ConfigurationError(SemanticLayerError):
    """Missing or malformed configuration value, replaced by a default"""

    def __init__(self, message: str, key: Optional[str] = None, original_error: Optional[Exception] = None):
        super().__init__(message, original_error)
        self.key = key


class ConversionError(ConfigurationError):
    """A configuration value expected to be numeric could not be parsed"""
    pass


class LoadError(SemanticLayerError):
    """A class hierarchy file could not be read or parsed"""

    def __init__(
        self,
        message: str,
        file: Optional[str] = None,
        encoding: Optional[str] = None,
        base_uri: Optional[str] = None,
        original_error: Optional[Exception] = None
    ):
        super().__init__(message, original_error)
        self.file = file
        self.encoding = encoding
        self.base_uri = base_uri


class CacheBackendError(SemanticLayerError):
    """The durable same-as cache could not be opened, read or written"""

    def __init__(self, message: str, cache_file: Optional[str] = None, original_error: Optional[Exception] = None):
        super().__init__(message, original_error)
        self.cache_file = cache_file


class ResolutionFailure(SemanticLayerError):
    """
    A same-as strategy failed for a single URI (timeout, transport error,
    malformed response). Expected in steady state.
    """

    def __init__(self, message: str, uri: Optional[str] = None, original_error: Optional[Exception] = None):
        super().__init__(message, original_error)
        self.uri = uri
