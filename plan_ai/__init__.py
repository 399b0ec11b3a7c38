"""Extraction and display of a 36-month financial plan from an Excel workbook."""

__all__ = [
    "extract_plan",
    "PlanExtractor",
    "PlanResult",
    "coerce_number",
    "PlanExtractionError",
]

from .errors import PlanExtractionError
from .extractor import PlanExtractor, PlanResult, coerce_number, extract_plan
