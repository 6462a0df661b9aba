"""
Content selection for job postings: domain profiles, text normalization and
the quality gate applied to every selector candidate.
"""

from __future__ import annotations

from .normalizer import ContentNormalizer, normalize
from .profiles import (
    DEFAULT_REGISTRY,
    FALLBACK_PROFILE,
    GLOBAL_REMOVE_SELECTORS,
    KNOWN_PROFILES,
    DomainProfile,
    ProfileRegistry,
    lookup,
)
from .selection import NO_CONTENT_MESSAGE, CandidateEvaluator
from .validator import QualityValidator, calculate_improvement, validate

__all__ = [
    "ContentNormalizer",
    "normalize",
    "DEFAULT_REGISTRY",
    "FALLBACK_PROFILE",
    "GLOBAL_REMOVE_SELECTORS",
    "KNOWN_PROFILES",
    "DomainProfile",
    "ProfileRegistry",
    "lookup",
    "NO_CONTENT_MESSAGE",
    "CandidateEvaluator",
    "QualityValidator",
    "calculate_improvement",
    "validate",
]
