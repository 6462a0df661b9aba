"""
Selector candidate evaluation shared by both fetch tiers.

Each tier walks its profile's selectors in priority order and hands the raw
text of every match to a ``CandidateEvaluator``, which normalizes it, runs the
quality gate and remembers why candidates were turned down.
"""

from __future__ import annotations

from typing import List, Optional, Tuple

import structlog

from ..exceptions import ExtractionError, NoSelectorMatchedError, ValidationRejectedError
from ..observability.metrics import record_rejection
from ..protocols import RejectionReason
from .normalizer import ContentNormalizer
from .validator import QualityValidator

logger = structlog.get_logger(__name__)

NO_CONTENT_MESSAGE = "no valid content found"


class CandidateEvaluator:
    """Normalizes and validates selector candidates for one page."""

    def __init__(
        self,
        snippet: str,
        *,
        normalizer: ContentNormalizer,
        validator: QualityValidator,
        tier: str,
    ) -> None:
        self.snippet = snippet
        self.normalizer = normalizer
        self.validator = validator
        self.tier = tier
        self.matched_selectors = 0
        self.rejections: List[Tuple[str, RejectionReason]] = []

    def evaluate(self, selector: str, raw_text: str) -> Optional[str]:
        """
        Normalize and validate the text found under ``selector``.

        Args:
            selector: CSS selector that produced ``raw_text``
            raw_text: Raw text content of the matched element(s)

        Returns:
            The normalized text when accepted, otherwise None
        """
        self.matched_selectors += 1
        cleaned = self.normalizer.normalize(raw_text)
        verdict = self.validator.validate(cleaned, self.snippet)

        if verdict.accepted:
            logger.debug("Selector accepted", tier=self.tier, selector=selector, length=len(cleaned))
            return cleaned

        assert verdict.reason is not None
        self.rejections.append((selector, verdict.reason))
        record_rejection(verdict.reason.value)
        logger.debug(
            "Selector rejected",
            tier=self.tier,
            selector=selector,
            reason=verdict.reason.value,
            detail=verdict.detail,
        )
        return None

    def failure(self, final_url: Optional[str]) -> ExtractionError:
        """Build the exception describing why no candidate was accepted."""
        if not self.rejections:
            return NoSelectorMatchedError(
                f"{NO_CONTENT_MESSAGE} (no selector matched any element)",
                final_url=final_url,
            )

        last_selector, last_reason = self.rejections[-1]
        return ValidationRejectedError(
            f"{NO_CONTENT_MESSAGE} ({len(self.rejections)} candidates rejected, "
            f"last: {last_reason.value} for '{last_selector}')",
            reason=last_reason,
            rejections=tuple(self.rejections),
            final_url=final_url,
        )
