# ledger/services/import_preview.py
"""
Import preview: turn parsed QIF/CSV records into candidate transactions
plus diagnostics, without touching the ledger.

Invalid rows are kept in the candidate list (with their raw values) so the
caller can inspect them before deciding to execute the import.
"""

import logging
import re
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Dict, List, Optional, Tuple

import pandas as pd

from ledger.repositories import LedgerStore
from ledger.schemas import QIF_MAPPING, ImportCandidate, ImportMapping, ImportPreview
from ledger.services.parsers import QifRecord, parse_csv, parse_qif, read_csv_headers

logger = logging.getLogger(__name__)


# Tried in order; the first match wins
_DATE_PATTERNS = (
    re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{2,4})"),  # MM/DD/YYYY or MM/DD/YY
    re.compile(r"^(\d{1,2})-(\d{1,2})-(\d{2,4})"),  # MM-DD-YYYY or MM-DD-YY
    re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})"),    # YYYY-MM-DD
)
_ISO_PATTERN = _DATE_PATTERNS[2]

_CSV_AMOUNT_NOISE_RE = re.compile(r"[,$]")


def _expand_year(year: int) -> int:
    if year < 100:
        year += 2000 if year < 50 else 1900
    return year


def parse_import_date(value: Optional[str]) -> Optional[date]:
    """
    Parse a date string from an import file. Returns None if it is invalid.

    For the YYYY-MM-DD pattern the month and day groups are swapped before
    the date is built, so '2024-03-05' reads as 3 May 2024. Existing imports
    depend on this reading; keep it.
    """
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None

    for pattern in _DATE_PATTERNS:
        match = pattern.match(text)
        if not match:
            continue

        if pattern is _ISO_PATTERN:
            year, month, day = (int(g) for g in match.groups())
            month, day = day, month
        else:
            month, day, year = (int(g) for g in match.groups())

        try:
            return date(_expand_year(year), month, day)
        except ValueError:
            return None

    # Fallback: generic parse, may yield NaT
    parsed = pd.to_datetime(text, errors="coerce")
    if pd.isna(parsed):
        return None
    return parsed.date()


def _normalize_amount(value: Decimal) -> Tuple[Optional[Decimal], bool]:
    """
    Signed amount -> (absolute amount, is_debit).
    Non-finite amounts come back as (None, False).
    """
    if not value.is_finite():
        return None, False
    return abs(value), value < 0


def parse_csv_amount(raw: Optional[str]) -> Decimal:
    cleaned = _CSV_AMOUNT_NOISE_RE.sub("", raw or "").strip() or "0"
    try:
        return Decimal(cleaned)
    except InvalidOperation:
        return Decimal("NaN")


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


class ImportPreviewEngine:
    """Builds previews for QIF and CSV imports."""

    def __init__(self, store: LedgerStore):
        self.store = store

    def _check_target_account(self, account_id: int, errors: List[str]) -> None:
        if self.store.accounts.get(account_id) is None:
            errors.append("Target account not found")

    @staticmethod
    def _validate_candidate(candidate: ImportCandidate, row_number: int, errors: List[str], warnings: List[str]) -> None:
        if candidate.date is None:
            errors.append(f"Invalid date format at row {row_number}: {candidate.raw_date}")
        if candidate.amount is None or candidate.amount == 0:
            errors.append(f"Invalid amount at row {row_number}: {candidate.raw_amount}")
        if not candidate.description:
            warnings.append(f"Missing description at row {row_number}")

    def preview_qif(self, content: str, account_id: int) -> ImportPreview:
        records = parse_qif(content)
        errors: List[str] = []
        warnings: List[str] = []

        self._check_target_account(account_id, errors)

        candidates: List[ImportCandidate] = []
        for index, record in enumerate(records):
            candidate = self._qif_candidate(index, record)
            self._validate_candidate(candidate, index + 1, errors, warnings)
            candidates.append(candidate)

        if not records:
            warnings.append("No transactions found in file")

        logger.info(
            "QIF preview for account %s: %d candidates, %d errors, %d warnings",
            account_id, len(candidates), len(errors), len(warnings),
        )
        return ImportPreview(candidates=candidates, mappings=QIF_MAPPING, errors=errors, warnings=warnings)

    @staticmethod
    def _qif_candidate(index: int, record: QifRecord) -> ImportCandidate:
        amount, is_debit = _normalize_amount(record.amount)
        return ImportCandidate(
            original_index=index,
            date=parse_import_date(record.date),
            raw_date=record.date,
            amount=amount,
            raw_amount=str(record.amount),
            is_debit=is_debit,
            description=record.description or "",
            category=_blank_to_none(record.category),
            reference=_blank_to_none(record.reference),
            original_data=record.as_raw(),
        )

    def preview_csv(self, content: str, mappings: ImportMapping, account_id: int, delimiter: str = ",") -> ImportPreview:
        headers = read_csv_headers(content, delimiter)
        rows = parse_csv(content, delimiter)
        errors: List[str] = []
        warnings: List[str] = []

        self._check_target_account(account_id, errors)

        # Every mapped column must exist in the header row
        header_set = set(headers)
        mapped = (
            ("Date", mappings.date_field),
            ("Amount", mappings.amount_field),
            ("Description", mappings.description_field),
            ("Category", mappings.category_field),
            ("Reference", mappings.reference_field),
        )
        for label, field in mapped:
            if field and field not in header_set:
                errors.append(f"{label} field '{field}' not found in CSV")

        candidates: List[ImportCandidate] = []
        for index, row in enumerate(rows):
            candidate = self._csv_candidate(index, row, mappings)
            # +2: header line plus 1-based numbering
            self._validate_candidate(candidate, index + 2, errors, warnings)
            candidates.append(candidate)

        if not rows:
            warnings.append("No transactions found in file")

        logger.info(
            "CSV preview for account %s: %d candidates, %d errors, %d warnings",
            account_id, len(candidates), len(errors), len(warnings),
        )
        return ImportPreview(candidates=candidates, mappings=mappings, errors=errors, warnings=warnings)

    @staticmethod
    def _csv_candidate(index: int, row: Dict[str, str], mappings: ImportMapping) -> ImportCandidate:
        raw_amount = row.get(mappings.amount_field)
        amount, is_debit = _normalize_amount(parse_csv_amount(raw_amount))
        return ImportCandidate(
            original_index=index,
            date=parse_import_date(row.get(mappings.date_field)),
            raw_date=row.get(mappings.date_field),
            amount=amount,
            raw_amount=raw_amount,
            is_debit=is_debit,
            description=row.get(mappings.description_field) or "",
            category=_blank_to_none(row.get(mappings.category_field)) if mappings.category_field else None,
            reference=_blank_to_none(row.get(mappings.reference_field)) if mappings.reference_field else None,
            original_data=dict(row),
        )
