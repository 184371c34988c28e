from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal, localcontext
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple, Union

import pandas as pd

from campaign_core.options import IngestSettings


logger = logging.getLogger(__name__)

CAMPAIGN_TITLE = "مستهدف حملة رمضان للأقسام التسويقية لعام 2025م"
HEADER_LINE = "القسم;المستهدف;المتحقق;المتبقي"

# ASCII comma and U+066C ARABIC THOUSANDS SEPARATOR
THOUSANDS_SEPARATORS = (",", "٬")

SERIES_KEYS = ("target", "achieved", "remaining")

SERIES_STYLES: Dict[str, Dict[str, str]] = {
    "target": {
        "label": "المستهدف",
        "fill": "rgba(255, 165, 0, 0.5)",
        "border": "rgba(255, 165, 0, 1)",
    },
    "achieved": {
        "label": "المتحقق",
        "fill": "rgba(0, 255, 255, 0.5)",
        "border": "rgba(0, 255, 255, 1)",
    },
    "remaining": {
        "label": "المتبقي",
        "fill": "rgba(255, 255, 0, 0.5)",
        "border": "rgba(255, 255, 0, 1)",
    },
    "achievement_pct": {
        "label": "نسبة الإنجاز",
        "fill": "rgba(0, 255, 128, 0.5)",
        "border": "rgba(0, 255, 128, 1)",
    },
}

# Per-department palette for the polar area and pie views; cycles past five departments.
DEPARTMENT_PALETTE: List[Tuple[str, str]] = [
    ("rgba(255, 165, 0, 0.5)", "rgba(255, 165, 0, 1)"),
    ("rgba(0, 255, 255, 0.5)", "rgba(0, 255, 255, 1)"),
    ("rgba(0, 255, 128, 0.5)", "rgba(0, 255, 128, 1)"),
    ("rgba(255, 255, 0, 0.5)", "rgba(255, 255, 0, 1)"),
    ("rgba(255, 99, 132, 0.5)", "rgba(255, 99, 132, 1)"),
]

DEFAULT_LABELS = (
    "المكاتب التعريفية",
    "التسويق الالكتروني",
    "النخبة والتسويق المباشر",
    "المؤسسات المانحة",
    "إدارة التسويق",
)
DEFAULT_TARGET = (15000000.0, 12000000.0, 10000000.0, 2000000.0, 39000000.0)
DEFAULT_ACHIEVED = (11677377.0, 8003356.0, 8660000.0, 1550000.0, 29890733.0)
DEFAULT_REMAINING = (3322623.0, 3996644.0, 1340000.0, 450000.0, 9109267.0)

_ARABIC_NUMERALS = str.maketrans(
    {
        **{str(d): chr(0x0660 + d) for d in range(10)},
        ",": "٬",
        ".": "٫",
    }
)

# Longest numeric prefix, the way a browser's parseFloat reads a field.
_LEADING_NUMBER = re.compile(r"[+-]?(?:Infinity|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


@dataclass(frozen=True)
class Dataset:
    labels: Tuple[str, ...] = ()
    target: Tuple[float, ...] = ()
    achieved: Tuple[float, ...] = ()
    remaining: Tuple[float, ...] = ()

    def __post_init__(self) -> None:
        for name in ("labels", "target", "achieved", "remaining"):
            object.__setattr__(self, name, tuple(getattr(self, name)))
        lengths = {len(self.labels), len(self.target), len(self.achieved), len(self.remaining)}
        if len(lengths) != 1:
            raise ValueError(
                "Dataset series must have equal length: "
                f"labels={len(self.labels)} target={len(self.target)} "
                f"achieved={len(self.achieved)} remaining={len(self.remaining)}"
            )

    def __len__(self) -> int:
        return len(self.labels)

    @property
    def is_empty(self) -> bool:
        return len(self.labels) == 0

    def series(self, key: str) -> Tuple[float, ...]:
        if key not in SERIES_KEYS:
            raise KeyError(key)
        return getattr(self, key)

    def subset(self, departments: Iterable[str]) -> "Dataset":
        """Keep only the named departments, in dataset order."""
        wanted = set(departments)
        idx = [i for i, label in enumerate(self.labels) if label in wanted]
        return Dataset(
            labels=[self.labels[i] for i in idx],
            target=[self.target[i] for i in idx],
            achieved=[self.achieved[i] for i in idx],
            remaining=[self.remaining[i] for i in idx],
        )

    def to_frame(self) -> pd.DataFrame:
        frame = pd.DataFrame(
            {
                "department": list(self.labels),
                "target": pd.Series(self.target, dtype="float64"),
                "achieved": pd.Series(self.achieved, dtype="float64"),
                "remaining": pd.Series(self.remaining, dtype="float64"),
            }
        )
        frame["achievement_pct"] = [achievement_ratio(a, t) for a, t in zip(self.achieved, self.target)]
        frame["achievement_pct"] = frame["achievement_pct"].astype("float64")
        return frame


@dataclass(frozen=True)
class RowIssue:
    line_number: int
    raw: str
    reason: str
    field: Optional[str] = None


@dataclass(frozen=True)
class ParseResult:
    dataset: Dataset
    issues: Tuple[RowIssue, ...] = field(default_factory=tuple)

    @property
    def ok(self) -> bool:
        return not self.dataset.is_empty

    @property
    def skipped(self) -> int:
        return len(self.issues)


def default_dataset() -> Dataset:
    return Dataset(
        labels=DEFAULT_LABELS,
        target=DEFAULT_TARGET,
        achieved=DEFAULT_ACHIEVED,
        remaining=DEFAULT_REMAINING,
    )


# ---------------- Numbers ----------------
def strip_separators(text: str) -> str:
    for sep in THOUSANDS_SEPARATORS:
        text = text.replace(sep, "")
    return text


def parse_number(text: str) -> float:
    """Parse a numeric field like "11,677,377" or "1٬000" -> float.

    Raises ValueError for empty or non-numeric text.
    """
    cleaned = strip_separators(text).strip()
    if not cleaned:
        raise ValueError(f"empty numeric field: {text!r}")
    if "_" in cleaned:
        raise ValueError(f"digit grouping underscore in numeric field: {text!r}")
    return float(cleaned)


def parse_number_or_nan(text: str) -> float:
    """Lenient read: the leading number of the field, NaN when there is none.

    "100abc" -> 100.0, "1_000" -> 1.0, "n/a" -> nan.
    """
    match = _LEADING_NUMBER.match(strip_separators(text).lstrip())
    if match is None:
        return math.nan
    return float(match.group(0).replace("Infinity", "inf"))


def _is_missing(value: object) -> bool:
    if value is None:
        return True
    try:
        return not math.isfinite(float(value))  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return True


def round_half_up(value: object, ndigits: int = 0) -> Optional[float]:
    if _is_missing(value):
        return None
    q = Decimal(10) ** -ndigits
    d = Decimal(str(value))
    with localcontext() as ctx:
        # quantize needs every integer digit plus ndigits of precision
        ctx.prec = max(ctx.prec, d.adjusted() + ndigits + 2)
        return float(d.quantize(q, rounding=ROUND_HALF_UP))


def achievement_ratio(achieved: object, target: object) -> Optional[float]:
    """achieved / target * 100 rounded to one decimal; None when not computable."""
    if _is_missing(achieved) or _is_missing(target) or float(target) == 0:  # type: ignore[arg-type]
        return None
    return round_half_up(float(achieved) / float(target) * 100, 1)  # type: ignore[arg-type]


def to_arabic_numerals(text: str) -> str:
    return text.translate(_ARABIC_NUMERALS)


def format_number(value: object, numerals: str = "arab") -> str:
    """Format with ar-SA grouping: at most three fraction digits."""
    rounded = round_half_up(value, 3)
    if rounded is None:
        return "N/A"
    if rounded == 0:
        rounded = 0.0
    text = f"{rounded:,.3f}".rstrip("0").rstrip(".")
    if numerals == "latn":
        return text
    return to_arabic_numerals(text)


def format_percent(value: Optional[float]) -> str:
    if _is_missing(value):
        return "N/A"
    return f"{float(value):.1f}%"  # type: ignore[arg-type]


# ---------------- Ingestion ----------------
def _parse_row_values(columns: List[str], strict: bool) -> Tuple[Dict[str, float], Optional[str]]:
    values: Dict[str, float] = {}
    for key, raw in zip(SERIES_KEYS, columns[1:4]):
        if not strict:
            values[key] = parse_number_or_nan(raw)
            continue
        try:
            number = parse_number(raw)
        except ValueError:
            return values, key
        if not math.isfinite(number):
            return values, key
        values[key] = number
    return values, None


def parse_campaign_text(text: str, settings: Optional[IngestSettings] = None) -> ParseResult:
    settings = settings or IngestSettings()
    rows = text.split("\n")
    labels: List[str] = []
    series: Dict[str, List[float]] = {key: [] for key in SERIES_KEYS}
    issues: List[RowIssue] = []

    for line_number, line in enumerate(rows[settings.header_rows:], start=settings.header_rows + 1):
        columns = line.split(settings.delimiter)
        if len(columns) < settings.min_fields:
            if line.strip():
                issues.append(RowIssue(line_number=line_number, raw=line, reason="too_few_fields"))
            continue
        values, bad_field = _parse_row_values(columns, settings.strict_numbers)
        if bad_field is not None:
            issues.append(RowIssue(line_number=line_number, raw=line, reason="invalid_number", field=bad_field))
            continue
        labels.append(columns[0])
        for key in SERIES_KEYS:
            series[key].append(values[key])

    dataset = Dataset(labels=labels, **series)
    logger.info("Parsed %d department rows (%d skipped)", len(dataset), len(issues))
    if issues:
        logger.warning(
            "Skipped rows at lines %s",
            ", ".join(f"{i.line_number} ({i.reason})" for i in issues[:20]),
        )
    return ParseResult(dataset=dataset, issues=tuple(issues))


def decode_upload(raw: bytes) -> str:
    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        logger.info("Upload is not UTF-8; decoding as cp1256")
        return raw.decode("cp1256", errors="replace")


def load_campaign_file(path: Union[str, Path], settings: Optional[IngestSettings] = None) -> ParseResult:
    path = Path(path)
    logger.info("Loading campaign file %s", path.name)
    return parse_campaign_text(decode_upload(path.read_bytes()), settings)


def dataset_to_text(dataset: Dataset, title: str = CAMPAIGN_TITLE) -> str:
    """Serialize back to the upload format (title line, header line, rows).

    Fields are written raw, without CSV quoting, since the parser splits on the
    bare delimiter. Missing values are written as ``nan``.
    """
    lines = [title, HEADER_LINE]
    for i, label in enumerate(dataset.labels):
        numbers = [repr(float(dataset.series(key)[i])) for key in SERIES_KEYS]
        lines.append(";".join([label, *numbers]))
    return "\n".join(lines) + "\n"
