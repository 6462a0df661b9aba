"""
jobdesc - recover full job descriptions from job-posting URLs.
"""

from __future__ import annotations

__version__ = "0.1.0"

from .config import Config
from .enrichment import DescriptionUpdate, enrich
from .pipeline import ExtractionPipeline, extract_job_description
from .protocols import ErrorKind, ExtractionMethod, ExtractionRequest, ExtractionResult

__all__ = [
    "__version__",
    "Config",
    "DescriptionUpdate",
    "enrich",
    "ExtractionPipeline",
    "extract_job_description",
    "ErrorKind",
    "ExtractionMethod",
    "ExtractionRequest",
    "ExtractionResult",
]
