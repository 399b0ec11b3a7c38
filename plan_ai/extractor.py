"""Core logic for extracting a 36-month financial plan from an Excel workbook."""

from __future__ import annotations

import io
import logging
import math
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from .errors import InsufficientData, InsufficientMonths, MissingRequiredRows, SheetNotFound

logger = logging.getLogger(__name__)

Number = Union[int, float]
Row = Tuple[Any, ...]

MONTHLY_SHEET = "Financial Plan"
SUMMARY_SHEET = "Summary"
MIN_MONTHS = 12

FREE_USERS = "Free Users"
FREEMIUM_USERS = "Freemium Users"
ENTERPRISE_USERS = "Enterprise Users"
OPENING_FUNDING = "Opening Funding Balance €"
TOTAL_REVENUE = "Total Revenue €"
MARKETING = "Marketing €"
IT_SUPPLIER = "IT Supplier (Dev/Hosting) €"
FOUNDER_WAGE = "Founder Wage €"
NEW_HIRE_WAGE = "New Hire Wage €"

REQUIRED_LABELS: Tuple[str, ...] = (
    FREE_USERS,
    FREEMIUM_USERS,
    ENTERPRISE_USERS,
    OPENING_FUNDING,
    TOTAL_REVENUE,
    MARKETING,
    IT_SUPPLIER,
    FOUNDER_WAGE,
    NEW_HIRE_WAGE,
)

BREAKEVEN_MONTH = "Breakeven Month"
LOWEST_CASH_MONTH = "Lowest Cash Month"
LOWEST_CASH_BALANCE = "Lowest Cash Balance €"
ENDING_CASH_DEC28 = "Ending Cash Dec-28 €"

_NON_NUMERIC = re.compile(r"[^0-9.\-]")


@dataclass(frozen=True)
class UserSnapshot:
    """User counts per tier for a single month."""

    month: str
    free: Number
    freemium: Number
    enterprise: Number

    @property
    def total(self) -> Number:
        return self.free + self.freemium + self.enterprise

    def to_dict(self) -> Dict[str, Any]:
        return {
            "month": self.month,
            "free": self.free,
            "freemium": self.freemium,
            "enterprise": self.enterprise,
        }


@dataclass(frozen=True)
class MonthlyFinancial:
    """Revenue, expense lines and the resulting cash position for one month.

    ``cash`` is the displayed balance: never negative, even when the running
    balance it is derived from has dipped below zero.
    """

    month: str
    revenue: Number
    marketing: Number
    it: Number
    founder: Number
    hire: Number
    expenses: Number
    net: Number
    cash: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "month": self.month,
            "revenue": self.revenue,
            "marketing": self.marketing,
            "it": self.it,
            "founder": self.founder,
            "hire": self.hire,
            "expenses": self.expenses,
            "net": self.net,
            "cash": self.cash,
        }


@dataclass(frozen=True)
class SummaryMetrics:
    """Precomputed scalars from the summary sheet, plus the opening balance."""

    opening_funding: Number
    breakeven_month: Optional[Any] = None
    lowest_cash_month: Optional[Any] = None
    lowest_cash_balance: Number = 0
    ending_cash_dec28: Number = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "opening_funding": self.opening_funding,
            "breakeven_month": self.breakeven_month,
            "lowest_cash_month": self.lowest_cash_month,
            "lowest_cash_balance": self.lowest_cash_balance,
            "ending_cash_dec28": self.ending_cash_dec28,
        }


@dataclass(frozen=True)
class PlanResult:
    """Immutable snapshot of an extracted plan."""

    months: Tuple[str, ...]
    users: Tuple[UserSnapshot, ...]
    monthly: Tuple[MonthlyFinancial, ...]
    metrics: SummaryMetrics
    raw_rows: Tuple[Row, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        """Convert the plan to plain containers for serialization."""
        return {
            "months": list(self.months),
            "users": [user.to_dict() for user in self.users],
            "monthly": [month.to_dict() for month in self.monthly],
            "metrics": self.metrics.to_dict(),
            "raw_rows": [list(row) for row in self.raw_rows],
        }


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value == ""
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def coerce_number(value: Any) -> Number:
    """Permissively convert a spreadsheet cell into a finite number.

    Blank cells become ``0`` and native numbers pass through. Anything else is
    stringified, stripped of every character other than digits, ``.`` and
    ``-``, then parsed; a failed or non-finite parse yields ``0``. Currency
    symbols and thousands separators are therefore tolerated, while genuinely
    malformed cells are zeroed rather than rejected.
    """
    if _is_missing(value):
        return 0
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value
    cleaned = _NON_NUMERIC.sub("", str(value))
    try:
        number = float(cleaned)
    except ValueError:
        return 0
    return number if math.isfinite(number) else 0


def round_half_up(value: float) -> int:
    """Round to the nearest integer, ties toward positive infinity."""
    return math.floor(value + 0.5)


def project_cash(opening_funding: Number, nets: Iterable[Number]) -> List[int]:
    """Displayed cash balance for each month.

    The running total starts at ``opening_funding`` and accumulates every
    month's net cash flow unfloored; only the emitted value is clamped at zero.
    A month shown as ``0`` therefore does not reset the balance carried into
    the following month.
    """
    running = opening_funding + np.cumsum(np.asarray(list(nets), dtype=float))
    return [max(0, round_half_up(total)) for total in running]


def _trim_row(row: Iterable[Any]) -> List[Any]:
    cells = [None if _is_missing(cell) else cell for cell in row]
    while cells and cells[-1] is None:
        cells.pop()
    return cells


def sheet_names(book: Union[pd.ExcelFile, Mapping[str, Any]]) -> List[str]:
    if isinstance(book, Mapping):
        return list(book.keys())
    return list(book.sheet_names)


def sheet_rows(book: Union[pd.ExcelFile, Mapping[str, Any]], name: str) -> List[List[Any]]:
    """
    Read one sheet as a row-major grid.

    Row 0 is the sheet's first row; no header or key inference is applied.
    Blank cells are ``None`` and trailing blanks are dropped from each row;
    text such as ``"N/A"`` is kept as written.

    Args:
        book: An open ``pandas.ExcelFile`` or a mapping of sheet name to rows
        name: Sheet to read

    Returns:
        List of rows, each a list of cell values
    """
    if isinstance(book, Mapping):
        raw_rows = [list(row) for row in book[name]]
    else:
        frame = pd.read_excel(book, sheet_name=name, header=None, keep_default_na=False)
        raw_rows = frame.astype(object).values.tolist()
    return [_trim_row(row) for row in raw_rows]


def _month_label(value: Any) -> str:
    if isinstance(value, (datetime, date)):
        return value.strftime("%b %y")
    return value if isinstance(value, str) else str(value)


def _cell(row: Sequence[Any], column: int) -> Any:
    return row[column] if column < len(row) else None


class PlanExtractor:
    """Extracts the monthly plan and summary metrics from a plan workbook."""

    def __init__(
        self,
        monthly_sheet: str = MONTHLY_SHEET,
        summary_sheet: str = SUMMARY_SHEET,
        required_labels: Sequence[str] = REQUIRED_LABELS,
        min_months: int = MIN_MONTHS,
    ) -> None:
        self.monthly_sheet = monthly_sheet
        self.summary_sheet = summary_sheet
        self.required_labels = tuple(required_labels)
        self.min_months = min_months

    def extract(self, source) -> PlanResult:
        """
        Extract a plan from a workbook.

        Args:
            source: Workbook bytes, a path, a binary file object, an open
                ``pandas.ExcelFile`` or a mapping of sheet name to rows

        Returns:
            PlanResult: The extracted plan

        Raises:
            PlanExtractionError: If the workbook does not have the expected shape
        """
        if isinstance(source, (pd.ExcelFile, Mapping)):
            return self._extract_from(source)
        if isinstance(source, (bytes, bytearray, memoryview)):
            source = io.BytesIO(bytes(source))
        with pd.ExcelFile(source) as book:
            return self._extract_from(book)

    def validate(self, rows: Sequence[Sequence[Any]]) -> Tuple[Dict[str, int], List[str]]:
        """Check the monthly grid and return the label lookup and month labels.

        The lookup maps each row label to the index of the first row carrying it.
        """
        if len(rows) < 2:
            raise InsufficientData(self.monthly_sheet)

        label_index: Dict[str, int] = {}
        for position, row in enumerate(rows[1:], start=1):
            label = row[0] if row else None
            if isinstance(label, str) and label and label not in label_index:
                label_index[label] = position

        missing = [label for label in self.required_labels if label not in label_index]
        if missing:
            raise MissingRequiredRows(self.monthly_sheet, missing)

        months = [_month_label(cell) for cell in rows[0][1:] if cell is not None]
        if len(months) < self.min_months:
            raise InsufficientMonths(self.monthly_sheet, len(months), self.min_months)

        return label_index, months

    def _extract_from(self, book) -> PlanResult:
        names = sheet_names(book)
        logger.debug("Workbook sheets: %s", names)
        if self.monthly_sheet not in names:
            raise SheetNotFound(self.monthly_sheet)

        rows = sheet_rows(book, self.monthly_sheet)
        label_index, months = self.validate(rows)

        def row_for(label: str) -> Sequence[Any]:
            # Unknown labels read as an all-blank row.
            return rows[label_index[label]] if label in label_index else []

        def series(label: str) -> List[Number]:
            row = row_for(label)
            return [coerce_number(_cell(row, i + 1)) for i in range(len(months))]

        free, freemium, enterprise = series(FREE_USERS), series(FREEMIUM_USERS), series(ENTERPRISE_USERS)
        users = tuple(
            UserSnapshot(month=month, free=free[i], freemium=freemium[i], enterprise=enterprise[i])
            for i, month in enumerate(months)
        )

        opening_funding = coerce_number(_cell(row_for(OPENING_FUNDING), 1))

        revenue = series(TOTAL_REVENUE)
        marketing = series(MARKETING)
        it = series(IT_SUPPLIER)
        founder = series(FOUNDER_WAGE)
        hire = series(NEW_HIRE_WAGE)

        expenses = [marketing[i] + it[i] + founder[i] + hire[i] for i in range(len(months))]
        nets = [revenue[i] - expenses[i] for i in range(len(months))]
        cash = project_cash(opening_funding, nets)

        monthly = tuple(
            MonthlyFinancial(
                month=month,
                revenue=revenue[i],
                marketing=marketing[i],
                it=it[i],
                founder=founder[i],
                hire=hire[i],
                expenses=expenses[i],
                net=nets[i],
                cash=cash[i],
            )
            for i, month in enumerate(months)
        )

        metrics = self._read_summary(book, opening_funding)
        logger.info(
            "Extracted %d months from '%s' (opening funding %s)",
            len(months), self.monthly_sheet, opening_funding,
        )
        return PlanResult(
            months=tuple(months),
            users=users,
            monthly=monthly,
            metrics=metrics,
            raw_rows=tuple(tuple(row) for row in rows),
        )

    def _read_summary(self, book, opening_funding: Number) -> SummaryMetrics:
        if self.summary_sheet not in sheet_names(book):
            logger.warning("Sheet '%s' not found; summary metrics left at defaults", self.summary_sheet)
            return SummaryMetrics(opening_funding=opening_funding)

        rows = sheet_rows(book, self.summary_sheet)

        def find_value(label: str) -> Any:
            for row in rows:
                if row and row[0] == label:
                    return _cell(row, 1)
            return None

        return SummaryMetrics(
            opening_funding=opening_funding,
            breakeven_month=find_value(BREAKEVEN_MONTH),
            lowest_cash_month=find_value(LOWEST_CASH_MONTH),
            lowest_cash_balance=coerce_number(find_value(LOWEST_CASH_BALANCE)),
            ending_cash_dec28=coerce_number(find_value(ENDING_CASH_DEC28)),
        )


def extract_plan(source) -> PlanResult:
    """Convenience wrapper around :class:`PlanExtractor`."""

    return PlanExtractor().extract(source)
