"""
Core contracts and dataclasses for the job-posting extraction pipeline.

Every entity here lives for exactly one ``ExtractionRequest -> ExtractionResult``
round trip. Nothing is persisted and nothing is shared between calls except
the constant domain profile table.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Optional, Protocol, Tuple, runtime_checkable

if TYPE_CHECKING:
    from .extractor.profiles import DomainProfile

# ============================================================================
# Enums
# ============================================================================


class ExtractionMethod(Enum):
    """Which fetch tier produced an accepted description."""

    STATIC = "static"
    RENDERED = "rendered"


class ErrorKind(Enum):
    """Failure taxonomy surfaced on negative results."""

    INPUT_INVALID = "InputInvalid"
    FETCH_FAILED = "FetchFailed"
    NO_SELECTOR_MATCHED = "NoSelectorMatched"
    VALIDATION_REJECTED = "ValidationRejected"
    RESOURCE_ERROR = "ResourceError"


class RejectionReason(Enum):
    """Why the quality validator refused a candidate text."""

    TOO_SHORT = "TooShort"
    ERROR_PATTERN = "ErrorPattern"
    INSUFFICIENT_IMPROVEMENT = "InsufficientImprovement"
    MISSING_KEYWORDS = "MissingKeywords"


# ============================================================================
# Dataclasses
# ============================================================================


@dataclass(slots=True, frozen=True)
class ExtractionRequest:
    """A job-posting URL plus the snippet already known to the caller."""

    url: str
    original_snippet: str


@dataclass(slots=True, frozen=True)
class ValidationVerdict:
    """Outcome of the four-criterion acceptance test."""

    accepted: bool
    reason: Optional[RejectionReason] = None
    detail: str = ""

    def __post_init__(self) -> None:
        if self.accepted and self.reason is not None:
            raise ValueError("Accepted verdict cannot carry a rejection reason")
        if not self.accepted and self.reason is None:
            raise ValueError("Rejected verdict requires a rejection reason")


@dataclass(slots=True, frozen=True)
class ExtractionResult:
    """
    Result of one extraction attempt (a single tier or the whole pipeline).

    Exactly one of ``description`` (success) or ``error`` (failure) is
    meaningful. ``method`` is set if and only if ``success`` is true.
    ``final_url`` is best-effort and may be missing when the failure happened
    before any response was received.
    """

    success: bool
    description: Optional[str] = None
    method: Optional[ExtractionMethod] = None
    final_url: Optional[str] = None
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    rejections: Tuple[Tuple[str, RejectionReason], ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        """Validate the success/failure invariants."""
        if self.success:
            if not self.description:
                raise ValueError("Successful result requires a description")
            if self.method is None:
                raise ValueError("Successful result requires a method")
            if self.error is not None or self.error_kind is not None:
                raise ValueError("Successful result cannot carry an error")
        else:
            if not self.error:
                raise ValueError("Failed result requires an error message")
            if self.method is not None:
                raise ValueError("Failed result cannot carry a method")
            if self.description is not None:
                raise ValueError("Failed result cannot carry a description")

    @classmethod
    def succeeded(cls, description: str, method: ExtractionMethod, final_url: Optional[str]) -> ExtractionResult:
        return cls(success=True, description=description, method=method, final_url=final_url)

    @classmethod
    def failed(
        cls,
        kind: ErrorKind,
        message: str,
        *,
        final_url: Optional[str] = None,
        rejections: Tuple[Tuple[str, RejectionReason], ...] = (),
    ) -> ExtractionResult:
        """Build a failure result whose error text is prefixed with the taxonomy name."""
        return cls(
            success=False,
            final_url=final_url,
            error=f"{kind.value}: {message}",
            error_kind=kind,
            rejections=rejections,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the external wire shape consumed by the orchestration layer."""
        payload: Dict[str, Any] = {"success": self.success}
        if self.description is not None:
            payload["description"] = self.description
        if self.method is not None:
            payload["method"] = self.method.value
        if self.final_url is not None:
            payload["finalUrl"] = self.final_url
        if self.error is not None:
            payload["error"] = self.error
        return payload


# ============================================================================
# Protocols
# ============================================================================


@runtime_checkable
class FetchTier(Protocol):
    """One extraction strategy: retrieve a page and pick acceptable content from it."""

    name: str

    async def fetch(self, url: str, snippet: str, profile: DomainProfile) -> ExtractionResult:
        """Fetch ``url`` and return the first profile selector whose text is accepted.

        Args:
            url: Absolute http(s) URL of the job posting
            snippet: Baseline excerpt used by the improvement criterion
            profile: Domain profile resolved for ``url``

        Returns:
            ExtractionResult; never raises for expected failures
        """
        ...


__all__ = [
    "ExtractionMethod",
    "ErrorKind",
    "RejectionReason",
    "ExtractionRequest",
    "ValidationVerdict",
    "ExtractionResult",
    "FetchTier",
]
