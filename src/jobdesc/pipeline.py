"""
Extraction orchestrator.

Runs the cheap static tier first and escalates to the rendered tier only when
it fails. Every call is self-contained: the tiers hold no per-call state and
the profile registry is read-only, so one ``ExtractionPipeline`` can serve any
number of concurrent ``extract`` calls.
"""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple
from urllib.parse import urlparse
from uuid import uuid4

import structlog

from .config import Config, settings
from .crawler.rendered_fetch import RenderedFetchTier
from .crawler.static_fetch import StaticFetchTier
from .exceptions import InputInvalidError
from .extractor.normalizer import ContentNormalizer
from .extractor.profiles import ProfileRegistry
from .observability.metrics import record_extraction
from .protocols import ErrorKind, ExtractionRequest, ExtractionResult, FetchTier

logger = structlog.get_logger(__name__)

MIN_SNIPPET_LENGTH = 50
ALLOWED_SCHEMES = ("http", "https")


def validate_request(request: ExtractionRequest, min_snippet_length: int = MIN_SNIPPET_LENGTH) -> str:
    """
    Input gate applied before any network activity.

    Returns:
        The URL with surrounding whitespace removed; this is the URL that
        gets resolved and fetched

    Raises:
        InputInvalidError: If the URL is not an absolute http(s) URL or the
            snippet is missing or shorter than ``min_snippet_length``
    """
    url = (request.url or "").strip()
    if not url:
        raise InputInvalidError("url is required")
    if not url.lower().startswith("http"):
        raise InputInvalidError(f"url must be an absolute http(s) URL, got {url!r}")

    try:
        parsed = urlparse(url)
    except ValueError as e:
        raise InputInvalidError(f"url could not be parsed: {e}") from e
    if parsed.scheme.lower() not in ALLOWED_SCHEMES or not parsed.netloc:
        raise InputInvalidError(f"url must be an absolute http(s) URL, got {url!r}")

    snippet = request.original_snippet
    if not snippet:
        raise InputInvalidError("original snippet is required")
    if len(snippet) < min_snippet_length:
        raise InputInvalidError(
            f"original snippet must be at least {min_snippet_length} characters, got {len(snippet)}"
        )
    return url


class ExtractionPipeline:
    """
    Two-tier job description extraction.

    Tiers are tried in order until one succeeds. When all of them fail the
    result combines every tier's error and carries the latest final URL any
    tier captured.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        *,
        registry: Optional[ProfileRegistry] = None,
        tiers: Optional[Sequence[FetchTier]] = None,
    ) -> None:
        self.config = config or settings
        self.registry = registry or self.config.profiles.build_registry()
        self.min_snippet_length = self.config.validation.min_snippet_length

        if tiers is None:
            normalizer = ContentNormalizer()
            validator = self.config.validation.build_validator()
            tiers = (
                StaticFetchTier.from_config(self.config.fetch, normalizer=normalizer, validator=validator),
                RenderedFetchTier.from_config(self.config.fetch, normalizer=normalizer, validator=validator),
            )
        if not tiers:
            raise ValueError("ExtractionPipeline requires at least one fetch tier")
        self.tiers: Tuple[FetchTier, ...] = tuple(tiers)

        self.logger = logger.bind(component="ExtractionPipeline")

    async def extract(self, request: ExtractionRequest) -> ExtractionResult:
        """
        Recover the full job description for ``request``.

        Args:
            request: URL plus the snippet already known to the caller

        Returns:
            ExtractionResult; expected failures are returned, never raised
        """
        with structlog.contextvars.bound_contextvars(request_id=uuid4().hex[:12]):
            return await self._extract(request)

    async def _extract(self, request: ExtractionRequest) -> ExtractionResult:
        try:
            url = validate_request(request, self.min_snippet_length)
        except InputInvalidError as e:
            record_extraction("input_invalid")
            self.logger.warning("Rejected extraction request", url=request.url, error=e.message)
            return ExtractionResult.failed(e.kind, e.message)

        profile = self.registry.lookup(url)
        self.logger.info(
            "Starting extraction",
            url=url,
            profile=profile.match_suffix,
            tiers=[tier.name for tier in self.tiers],
        )

        failures: List[Tuple[str, ExtractionResult]] = []
        for tier in self.tiers:
            try:
                result = await tier.fetch(url, request.original_snippet, profile)
            except Exception as e:
                # Tiers report failures as results; anything raised is a bug in the tier
                self.logger.error(
                    "Fetch tier raised",
                    tier=tier.name,
                    error=str(e),
                    error_type=type(e).__name__,
                    exc_info=True,
                )
                result = ExtractionResult.failed(ErrorKind.RESOURCE_ERROR, f"{type(e).__name__}: {e}")

            if result.success:
                assert result.method is not None
                record_extraction(result.method.value)
                self.logger.info(
                    "Extraction succeeded",
                    url=url,
                    method=result.method.value,
                    final_url=result.final_url,
                    length=len(result.description or ""),
                )
                return result

            failures.append((tier.name, result))

        combined = self._combine_failures(failures)
        record_extraction("failed")
        self.logger.warning(
            "Extraction failed",
            url=url,
            error=combined.error,
            error_kind=combined.error_kind.value if combined.error_kind else None,
        )
        return combined

    @staticmethod
    def _combine_failures(failures: List[Tuple[str, ExtractionResult]]) -> ExtractionResult:
        if len(failures) == 1:
            return failures[0][1]

        prefix = "Both extraction tiers failed" if len(failures) == 2 else f"All {len(failures)} extraction tiers failed"
        details = "; ".join(f"{name}: {result.error}" for name, result in failures)

        # Later tiers ran later, so their URL is closer to the real destination
        final_url = next((result.final_url for _, result in reversed(failures) if result.final_url), None)
        rejections = tuple(rejection for _, result in failures for rejection in result.rejections)

        return ExtractionResult(
            success=False,
            final_url=final_url,
            error=f"{prefix}. {details}",
            error_kind=failures[-1][1].error_kind,
            rejections=rejections,
        )


async def extract_job_description(url: str, original_snippet: str, config: Optional[Config] = None) -> ExtractionResult:
    """Run a one-off extraction with a freshly built pipeline."""
    pipeline = ExtractionPipeline(config)
    return await pipeline.extract(ExtractionRequest(url=url, original_snippet=original_snippet))
