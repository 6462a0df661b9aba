"""
Exception hierarchy raised inside fetch tiers.

Tiers raise these internally and convert them into failure
``ExtractionResult`` objects at their boundary; none of them escape
``ExtractionPipeline.extract``.
"""

from __future__ import annotations

from typing import Optional, Tuple

from .protocols import ErrorKind, RejectionReason


class ExtractionError(Exception):
    """Base class for all extraction failures."""

    kind: ErrorKind = ErrorKind.FETCH_FAILED

    def __init__(self, message: str, *, final_url: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.final_url = final_url


class InputInvalidError(ExtractionError):
    """Raised when the URL or snippet fails the input gate."""

    kind = ErrorKind.INPUT_INVALID


class FetchFailedError(ExtractionError):
    """Raised on network errors, non-2xx responses and timeouts."""

    kind = ErrorKind.FETCH_FAILED


class NoSelectorMatchedError(ExtractionError):
    """Raised when no profile selector matched any element on the page."""

    kind = ErrorKind.NO_SELECTOR_MATCHED


class ValidationRejectedError(ExtractionError):
    """Raised when selectors matched but every candidate failed validation."""

    kind = ErrorKind.VALIDATION_REJECTED

    def __init__(
        self,
        message: str,
        *,
        reason: RejectionReason,
        rejections: Tuple[Tuple[str, RejectionReason], ...] = (),
        final_url: Optional[str] = None,
    ) -> None:
        super().__init__(message, final_url=final_url)
        self.reason = reason
        self.rejections = rejections


class ResourceError(ExtractionError):
    """Raised when the headless browser cannot be launched or driven."""

    kind = ErrorKind.RESOURCE_ERROR
