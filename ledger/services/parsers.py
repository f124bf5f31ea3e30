# ledger/services/parsers.py
#
# Format parsers for import files.
# They only split text into loosely-typed records; every validation
# happens later in the preview step, so nothing here raises on bad data.

from dataclasses import dataclass, asdict
from decimal import Decimal, InvalidOperation
from typing import Dict, List, Optional

NAN = Decimal("NaN")


@dataclass
class QifRecord:
    """One QIF entry. `amount` is Decimal('NaN') when the T line is not numeric."""

    date: str
    amount: Decimal
    description: Optional[str] = None
    category: Optional[str] = None
    cleared: Optional[str] = None
    reference: Optional[str] = None

    def as_raw(self) -> Dict[str, Optional[str]]:
        raw = asdict(self)
        raw["amount"] = None if self.amount.is_nan() else str(self.amount)
        return raw


def parse_qif_amount(value: str) -> Decimal:
    """
    '1,234.56' -> Decimal('1234.56'); anything non-numeric -> NaN.
    """
    try:
        return Decimal(value.replace(",", "").strip())
    except InvalidOperation:
        return NAN


def _split_lines(content: str) -> List[str]:
    return content.replace("\r\n", "\n").replace("\r", "\n").split("\n")


def parse_qif(content: str) -> List[QifRecord]:
    """
    Parse QIF text into records.

    Entries end at a line holding only '^'. Tags:
    D date, T amount, P payee / M memo (joined with ' - '),
    L category, C cleared flag, N reference. Other tags are ignored.
    Entries without a date or an amount are dropped.
    """
    records: List[QifRecord] = []
    entry: Dict[str, object] = {}

    def flush():
        if entry.get("date") and entry.get("amount") is not None:
            records.append(QifRecord(**entry))
        entry.clear()

    for line in _split_lines(content):
        stripped = line.strip()
        if not stripped:
            continue
        if stripped == "^":
            flush()
            continue

        code, value = stripped[0], stripped[1:].strip()

        if code == "D":
            entry["date"] = value
        elif code == "T":
            entry["amount"] = parse_qif_amount(value)
        elif code in ("P", "M"):
            previous = entry.get("description")
            entry["description"] = f"{previous} - {value}" if previous else value
        elif code == "L":
            entry["category"] = value
        elif code == "C":
            entry["cleared"] = value
        elif code == "N":
            entry["reference"] = value
        # '!Type:' headers and unknown tags fall through

    # Trailing entry without a closing '^'
    flush()
    return records


def _split_fields(line: str, delimiter: str) -> List[str]:
    # Naive split: quoted fields containing the delimiter are not supported
    return [field.strip().replace('"', "") for field in line.split(delimiter)]


def _csv_lines(content: str) -> List[str]:
    return [line for line in _split_lines(content.strip()) if line.strip()]


def read_csv_headers(content: str, delimiter: str = ",") -> List[str]:
    lines = _csv_lines(content)
    if not lines:
        return []
    return _split_fields(lines[0], delimiter)


def parse_csv(content: str, delimiter: str = ",") -> List[Dict[str, str]]:
    """
    Parse CSV text into one {header: value} dict per data line.

    Rows shorter or longer than the header are truncated to the shorter
    of the two; no error is raised.
    """
    lines = _csv_lines(content)
    if len(lines) < 2:
        return []

    headers = _split_fields(lines[0], delimiter)
    rows: List[Dict[str, str]] = []

    for line in lines[1:]:
        values = _split_fields(line, delimiter)
        rows.append(dict(zip(headers, values)))

    return rows
