"""
Error taxonomy shared by the analysis pipeline and the healing resolvers.
"""

from typing import Any, Optional


class ChangeFlowError(Exception):
    """Base class for all change_flow errors."""


class DiffParseError(ChangeFlowError):
    """A unified diff contained a hunk header that could not be read."""


class ParseError(ChangeFlowError):
    """No usable syntax tree could be produced for a file."""

    def __init__(self, message: str, file_path: Optional[str] = None):
        super().__init__(message)
        self.file_path = file_path


class AnalysisUnavailable(ChangeFlowError):
    """Source-control history could not be read."""


class ResolutionError(ChangeFlowError):
    """Every resolution tier was exhausted."""


class ElementNotFound(ResolutionError):
    def __init__(self, descriptor: Any):
        payload = descriptor.to_dict() if hasattr(descriptor, "to_dict") else descriptor
        super().__init__(f"Element not found with selectors: {payload}")
        self.descriptor = descriptor


class EndpointUnresolved(ResolutionError):
    def __init__(self, endpoint: str, method: str, last_error: Optional[BaseException] = None):
        detail = f": {last_error}" if last_error else ""
        super().__init__(f"{method} {endpoint} could not be resolved{detail}")
        self.endpoint = endpoint
        self.method = method
        self.last_error = last_error
