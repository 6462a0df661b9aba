"""
Quality gate for extracted job descriptions.

A candidate text is accepted only when it passes four criteria, checked in
order and short-circuiting on the first failure:

1. Minimum length
2. No error-page signatures
3. Meaningful improvement over the snippet the caller already has
4. Enough job-description vocabulary
"""

from __future__ import annotations

import re
from typing import Pattern, Sequence, Tuple

from ..protocols import RejectionReason, ValidationVerdict

MIN_CONTENT_LENGTH = 300
MIN_IMPROVEMENT_PERCENT = 20.0
MIN_KEYWORD_MATCHES = 3

ERROR_PATTERNS: Tuple[Pattern[str], ...] = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"access denied",
        r"unauthorized",
        r"forbidden",
        r"404",
        r"not found",
        r"page not found",
        r"captcha",
        r"robot",
        r"bot detection",
        r"please enable javascript",
        r"javascript is required",
        r"cookies required",
        r"blocked",
        r"unavailable",
        r"temporarily unavailable",
        r"service unavailable",
        r"error",
        r"something went wrong",
    )
)

JOB_DESCRIPTION_KEYWORDS: Tuple[str, ...] = (
    "responsibilities",
    "requirements",
    "qualifications",
    "skills",
    "experience",
    "education",
    "apply",
    "position",
    "role",
    "job",
    "opportunity",
    "benefits",
    "salary",
    "compensation",
    "location",
    "team",
    "company",
    "about",
    "description",
    "duties",
)


def calculate_improvement(text: str, snippet: str) -> float:
    """Percentage growth of ``text`` over ``snippet``, floored at 0 (100 for an empty snippet)."""
    if len(snippet) == 0:
        return 100.0
    improvement = (len(text) - len(snippet)) / len(snippet) * 100
    return max(0.0, improvement)


class QualityValidator:
    """Four-criterion acceptance test with overridable thresholds."""

    def __init__(
        self,
        *,
        min_length: int = MIN_CONTENT_LENGTH,
        min_improvement_percent: float = MIN_IMPROVEMENT_PERCENT,
        min_keyword_matches: int = MIN_KEYWORD_MATCHES,
        error_patterns: Sequence[Pattern[str]] = ERROR_PATTERNS,
        keywords: Sequence[str] = JOB_DESCRIPTION_KEYWORDS,
    ) -> None:
        self.min_length = min_length
        self.min_improvement_percent = min_improvement_percent
        self.min_keyword_matches = min_keyword_matches
        self.error_patterns = tuple(error_patterns)
        self.keywords = tuple(keywords)

    def find_error_pattern(self, text: str) -> str | None:
        for pattern in self.error_patterns:
            if pattern.search(text):
                return pattern.pattern
        return None

    def count_keywords(self, text: str) -> int:
        lowered = text.lower()
        return sum(1 for keyword in self.keywords if keyword in lowered)

    def validate(self, normalized_text: str, original_snippet: str) -> ValidationVerdict:
        """
        Decide whether ``normalized_text`` may replace ``original_snippet``.

        Args:
            normalized_text: Output of the content normalizer
            original_snippet: Baseline excerpt known to the caller

        Returns:
            ValidationVerdict carrying the first failed criterion, if any
        """
        length = len(normalized_text)
        if length < self.min_length:
            return ValidationVerdict(
                accepted=False,
                reason=RejectionReason.TOO_SHORT,
                detail=f"Content too short ({length} chars, minimum {self.min_length})",
            )

        matched = self.find_error_pattern(normalized_text)
        if matched is not None:
            return ValidationVerdict(
                accepted=False,
                reason=RejectionReason.ERROR_PATTERN,
                detail=f"Content contains error pattern '{matched}'",
            )

        improvement = calculate_improvement(normalized_text, original_snippet)
        if improvement < self.min_improvement_percent:
            return ValidationVerdict(
                accepted=False,
                reason=RejectionReason.INSUFFICIENT_IMPROVEMENT,
                detail=(
                    f"Insufficient improvement over snippet ({improvement:.1f}%, "
                    f"minimum {self.min_improvement_percent:g}%)"
                ),
            )

        keyword_count = self.count_keywords(normalized_text)
        if keyword_count < self.min_keyword_matches:
            return ValidationVerdict(
                accepted=False,
                reason=RejectionReason.MISSING_KEYWORDS,
                detail=f"Only {keyword_count} job keywords found, minimum {self.min_keyword_matches}",
            )

        return ValidationVerdict(accepted=True)


_DEFAULT_VALIDATOR = QualityValidator()


def validate(normalized_text: str, original_snippet: str) -> ValidationVerdict:
    """Validate with the default thresholds."""
    return _DEFAULT_VALIDATOR.validate(normalized_text, original_snippet)
