from __future__ import annotations

import io
import math
import re
from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path
from typing import Any

import pandas as pd

from ..errors import ParseError

"""CSV reader for survey exports.

The first non-blank line is the header row; every following line is a data row.
Header names are trimmed. Blank lines are skipped; a line of bare delimiters
(",,") is a real record whose cells are all empty and keeps its row number.

Reading happens in two steps (same split as before: raw frame -> normalized rows):
1. read_csv_frame: pandas reads every cell as text, no NA conversion
2. normalize_table: header extraction, de-duplication and optional dynamic typing
"""

__all__ = [
    "TableData",
    "coerce_scalar",
    "render_scalar",
    "read_csv_frame",
    "normalize_table",
    "parse_csv_text",
    "read_csv_file",
]

# Numeric grammar accepted by dynamic typing (sign, digits, optional exponent)
_FLOAT_RE = re.compile(r"^\s*-?(\d+\.?|\.\d+|\d+\.\d+)([eE][-+]?\d+)?\s*$")
_TRUE_LITERALS = frozenset({"true", "TRUE"})
_FALSE_LITERALS = frozenset({"false", "FALSE"})
# Magnitudes from here on lose integer precision as floats; keep them as text (ids, phone numbers)
MAX_SAFE_NUMBER = 2**53


@dataclass(frozen=True)
class TableData:
    columns: list[str]
    rows: list[dict[str, Any]]  # 列名 -> 値 (header order)

    @property
    def is_empty(self) -> bool:
        return not self.rows


def coerce_scalar(value: str) -> Any:
    """Convert a raw cell to bool / int / float / None where it looks like one.

    Booleans are only "true"/"TRUE"/"false"/"FALSE" ("True" stays text).
    Numbers must lie strictly inside +/-2**53; anything else stays a string.
    Integral numbers become ``int`` ("2.0" -> 2).
    """
    if value == "":
        return None
    if value in _TRUE_LITERALS:
        return True
    if value in _FALSE_LITERALS:
        return False
    if _FLOAT_RE.match(value):
        number = float(value)
        if -MAX_SAFE_NUMBER < number < MAX_SAFE_NUMBER:
            if number.is_integer():
                return int(number)
            return number
    return value


def _number_text(value: float) -> str:
    # Shortest round-trip digits (repr), laid out like JavaScript's Number#toString:
    # positional for exponents -7 < e < 21, otherwise "1.5e-7" / "1e+21"
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    text = repr(value)
    mantissa, sep, exp = text.partition("e")
    if not sep:
        return text[:-2] if text.endswith(".0") else text
    exponent = int(exp)
    if -7 < exponent < 21:
        return format(Decimal(text), "f")
    return f"{mantissa}e{'+' if exponent > 0 else '-'}{abs(exponent)}"


def render_scalar(value: Any) -> str:
    """Render a typed cell back to text the way the survey export tools do.

    >>> [render_scalar(v) for v in (None, True, 7, 2.5, 0.00001, 1.5e-07)]
    ['', 'true', '7', '2.5', '0.00001', '1.5e-7']
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return _number_text(value)
    return str(value)


def read_csv_frame(text: str) -> pd.DataFrame:
    """Read raw CSV text into a header-less DataFrame of strings.

    Raises:
        ParseError: the text is not well-formed delimited data
            (unterminated quote, more fields than the header row, ...)
    """
    if text.startswith("\ufeff"):
        text = text[1:]
    if not text.strip():
        return pd.DataFrame()
    try:
        return pd.read_csv(
            io.StringIO(text),
            header=None,
            dtype=str,
            keep_default_na=False,
            na_filter=False,
            skip_blank_lines=True,
        )
    except pd.errors.EmptyDataError:
        return pd.DataFrame()
    except pd.errors.ParserError as e:
        raise ParseError(str(e).strip()) from e


def _unique_columns(raw_columns: list[str]) -> list[str]:
    # 重複ヘッダは name_1, name_2 ... にリネーム
    seen: dict[str, int] = {}
    columns: list[str] = []
    taken = set(raw_columns)
    for name in raw_columns:
        if name not in seen:
            seen[name] = 0
            columns.append(name)
            continue
        count = seen[name]
        candidate = name
        while candidate in taken:
            count += 1
            candidate = f"{name}_{count}"
        seen[name] = count
        taken.add(candidate)
        columns.append(candidate)
    return columns


def _cell_text(val: Any) -> str:
    # Rows shorter than the header come back as NaN for the missing cells
    if not isinstance(val, str) and pd.isna(val):
        return ""
    return str(val)


def normalize_table(df: pd.DataFrame, *, dynamic_typing: bool = True) -> TableData:
    """Normalize a raw frame using its first row as the header.

    Steps:
    1. Empty frame -> empty table (no columns, no rows)
    2. Header from row 0, trimmed and made unique
    3. Remaining rows become records (pandas already dropped blank lines)
    4. Cells are typed with coerce_scalar when dynamic_typing is on,
       otherwise kept as strings ("" for empty)
    """
    if df.shape[0] == 0:
        return TableData(columns=[], rows=[])
    columns = _unique_columns([_cell_text(c).strip() for c in df.iloc[0].tolist()])
    rows: list[dict[str, Any]] = []
    for _, raw in df.iloc[1:].iterrows():
        cells = [_cell_text(v) for v in raw.tolist()]
        if dynamic_typing:
            values = [coerce_scalar(c) for c in cells]
        else:
            values = cells
        rows.append(dict(zip(columns, values, strict=False)))
    return TableData(columns=columns, rows=rows)


def parse_csv_text(text: str, *, dynamic_typing: bool = True) -> TableData:
    return normalize_table(read_csv_frame(text), dynamic_typing=dynamic_typing)


def read_csv_file(path: Path, *, dynamic_typing: bool = True) -> TableData:
    """Read a UTF-8 CSV file from disk.

    Raises:
        ParseError: the file is not valid UTF-8 or not well-formed CSV
    """
    raw = path.read_bytes()
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ParseError(f"input is not valid UTF-8: {e}") from e
    return parse_csv_text(text, dynamic_typing=dynamic_typing)
