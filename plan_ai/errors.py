"""Errors raised while extracting a financial plan from a workbook."""

from typing import List, Sequence


class PlanExtractionError(ValueError):
    """Base class for structural problems found in a plan workbook."""

    def __init__(self, message: str, sheet: str = "") -> None:
        super().__init__(message)
        self.sheet = sheet


class SheetNotFound(PlanExtractionError):
    def __init__(self, sheet: str) -> None:
        super().__init__(f'Sheet "{sheet}" not found in workbook', sheet)


class InsufficientData(PlanExtractionError):
    def __init__(self, sheet: str) -> None:
        super().__init__(f"{sheet} sheet is empty or has insufficient data", sheet)


class MissingRequiredRows(PlanExtractionError):
    """Raised with every missing label, in the order they are required."""

    def __init__(self, sheet: str, missing: Sequence[str]) -> None:
        self.missing: List[str] = list(missing)
        super().__init__(
            f"Missing required rows in {sheet}: {', '.join(self.missing)}", sheet
        )


class InsufficientMonths(PlanExtractionError):
    def __init__(self, sheet: str, found: int, required: int = 12) -> None:
        self.found = found
        self.required = required
        super().__init__(
            f"{sheet} should have at least {required} months of data (found {found})",
            sheet,
        )
