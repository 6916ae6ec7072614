"""
Custom exceptions for the HTML structure analyzer.

Every failure is fatal for the document being analyzed: the orchestrator never
returns a partial AnalysisResult.

  - StructuralParseError → no usable root element (or blank HTML).
  - NoContentError       → the tree was built but holds no words.
  - AnalysisFailure      → anything else that went wrong inside the pipeline.

No retries are attempted anywhere: the analysis is a pure function of the
input tree and options, so a retry would hit the identical failure.
"""

from typing import Optional


class StructureAnalysisError(Exception):
    """Base exception for all structure analysis errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_response(self) -> dict:
        """Convert to a JSON-ready error payload (used by the CLI report)."""
        return {
            "error": type(self).__name__,
            "message": self.message,
            "details": self.details
        }


class StructuralParseError(StructureAnalysisError):
    """
    Raised when no structural tree can be built.

    The supplied root is missing, is not an element, or the HTML handed to
    the preprocessor was blank.
    """
    pass


class NoContentError(StructureAnalysisError):
    """Raised when the structural tree yields zero words."""
    pass


class AnalysisFailure(StructureAnalysisError):
    """
    Catch-all for any other internal error during analysis.

    The original exception is kept on `cause` (and chained with `raise ... from`).
    """

    def __init__(
        self,
        message: str,
        cause: Optional[BaseException] = None,
        details: Optional[dict] = None
    ):
        super().__init__(message, details)
        self.cause = cause

    def to_response(self) -> dict:
        response = super().to_response()
        if self.cause is not None:
            response["cause"] = type(self.cause).__name__
        return response
