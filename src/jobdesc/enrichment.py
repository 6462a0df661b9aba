"""
Caller-side resolution of an extraction result.

Turns a pipeline result into the update a job record should receive: the
extracted text on success, otherwise the snippet the caller already had, plus
whether the description is long enough to be worth scoring downstream.
Nothing is persisted here.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

import structlog

from .pipeline import ExtractionPipeline
from .protocols import ExtractionMethod, ExtractionRequest, ExtractionResult

logger = structlog.get_logger(__name__)

MIN_DESCRIPTION_LENGTH = 300


class ExtractionStatus(Enum):
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


@dataclass(slots=True, frozen=True)
class DescriptionUpdate:
    """What to write back to the job record after an extraction attempt."""

    description: str
    status: ExtractionStatus
    method: Optional[ExtractionMethod] = None
    final_url: Optional[str] = None
    error: Optional[str] = None
    should_score: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "description": self.description,
            "status": self.status.value,
            "method": self.method.value if self.method else None,
            "finalUrl": self.final_url,
            "error": self.error,
            "shouldScore": self.should_score,
        }


def resolve_update(
    request: ExtractionRequest,
    result: ExtractionResult,
    min_description_length: int = MIN_DESCRIPTION_LENGTH,
) -> DescriptionUpdate:
    """
    Decide which description to keep for ``request``.

    Scoring is gated on the length of whatever description is kept, not on
    ``result.success``: a long original snippet is still scored after a
    failed extraction.
    """
    if result.success and result.description:
        description = result.description
        status = ExtractionStatus.SUCCESS
        error = None
    else:
        description = request.original_snippet or ""
        status = ExtractionStatus.FAILED
        error = result.error or "Unknown error"

    should_score = len(description) >= min_description_length
    if not should_score:
        logger.info(
            "Skipping scoring, description too short",
            url=request.url,
            length=len(description),
            minimum=min_description_length,
        )

    return DescriptionUpdate(
        description=description,
        status=status,
        method=result.method,
        final_url=result.final_url,
        error=error,
        should_score=should_score,
    )


async def enrich(
    request: ExtractionRequest,
    pipeline: Optional[ExtractionPipeline] = None,
    min_description_length: int = MIN_DESCRIPTION_LENGTH,
) -> DescriptionUpdate:
    """Run the pipeline for ``request`` and resolve the resulting update."""
    pipeline = pipeline or ExtractionPipeline()
    result = await pipeline.extract(request)
    return resolve_update(request, result, min_description_length)
