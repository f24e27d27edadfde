from __future__ import annotations

import re
from typing import Any

import numpy as np

from .config import get_config
from .errors import InvalidRuntimeConversion, MalformedString
from .dtypes import ValueKind


_PRINTF_SPEC = re.compile(
    r"%(?P<flags>[-+ #0]*)(?P<width>\*|\d+)?(?:\.(?P<precision>\*|\d+))?"
    r"(?P<length>hh|h|ll|l|L|q|j|z|t)?(?P<conversion>[diouxXeEfFgGcsaA%])?"
)
_NINES = re.compile(r"9{3,}$")


def format_real(value: float) -> str:
    """Canonical short rendering of a real number.

    Renders with 16 significant digits; a run of trailing nines means the
    value sits just below a shorter decimal, so it is re-rendered with 15.
    Trailing zeros are stripped only from plain decimal notation.
    """
    value = float(value)
    if not np.isfinite(value):
        if np.isnan(value):
            return "nan"
        return "inf" if value > 0 else "-inf"

    text = "%.16g" % value
    mantissa = text.split("e")[0].replace("-", "").replace(".", "")
    if _NINES.search(mantissa):
        text = "%.15g" % value

    if "." in text and "e" not in text and "E" not in text:
        text = text.rstrip("0").rstrip(".")
    if text == "-0":
        text = "0"
    return text


def format_complex(value: complex, style: str | None = None) -> str:
    if style is None:
        style = get_config().csv_complex_style
    re_text = format_real(value.real)
    im_text = format_real(value.imag)
    if style == "pair":
        return f"{re_text},{im_text}"
    sign = "" if im_text.startswith("-") else "+"
    return f"{re_text}{sign}{im_text}j"


def format_scalar(value: Any) -> str:
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return format_real(value)
    if isinstance(value, complex):
        return format_complex(value, "suffix")
    return str(value)


def _c_format(fmt: str, value: Any) -> str:
    """Apply a printf-style format holding exactly one conversion."""
    pieces = []
    conversions = 0
    pos = 0
    for match in _PRINTF_SPEC.finditer(fmt):
        pieces.append(fmt[pos : match.start()])
        pos = match.end()
        conversion = match.group("conversion")
        if conversion is None:
            raise MalformedString(fmt, match.start())
        if conversion == "%":
            pieces.append("%%")
            continue
        if "*" in (match.group("width") or "") or "*" in (match.group("precision") or ""):
            raise MalformedString(fmt, match.start())
        conversions += 1
        if conversion in "aA":
            raise MalformedString(fmt, match.start())
        spec = match.group(0)
        if match.group("length"):
            spec = spec.replace(match.group("length"), "", 1)
        if conversion == "u":
            spec = spec[:-1] + "d"
        pieces.append(spec)
    pieces.append(fmt[pos:])
    if conversions != 1:
        raise MalformedString(fmt, 0)
    try:
        return "".join(pieces) % (value,)
    except (TypeError, ValueError, OverflowError) as exc:
        raise MalformedString(fmt, 0) from exc


def to_tuple_string(scalar: Any, format_tuple: Any = None):
    """Render a scalar to a string tuple, printf-style when a format is given."""
    from .tuples import Tuple
    from .variant import as_variant

    variant = as_variant(scalar)
    kind = variant.kind
    if kind not in (ValueKind.BOOLEAN, ValueKind.INTEGER, ValueKind.REAL, ValueKind.COMPLEX):
        raise InvalidRuntimeConversion(kind, ValueKind.REAL)

    if format_tuple is None:
        fmt = ""
    elif isinstance(format_tuple, str):
        fmt = format_tuple
    else:
        fmt = as_variant(format_tuple).to_tuple().to_string()

    if kind == ValueKind.COMPLEX:
        value = variant.value
        if value.imag != 0:
            return Tuple()
        variant = as_variant(value.real)
        kind = ValueKind.REAL

    value = variant.value
    if not fmt:
        if kind == ValueKind.BOOLEAN:
            return Tuple("true" if value else "false")
        if kind == ValueKind.INTEGER:
            return Tuple(str(value))
        return Tuple(format_real(value))
    if kind == ValueKind.BOOLEAN:
        value = int(value)
    return Tuple(_c_format(fmt, value))


def _edge_indices(length: int, edge_items: int) -> tuple[list[int], list[int], bool]:
    if length <= edge_items * 2:
        return list(range(length)), [], False
    head = list(range(edge_items))
    tail = list(range(length - edge_items, length))
    return head, tail, True


def _format_matrix_row(
    values: np.ndarray,
    row_index: int,
    col_head: list[int],
    col_tail: list[int],
    truncated: bool,
) -> str:
    entries = [format_scalar(values[row_index, col]) for col in col_head]
    if truncated:
        entries.append("...")
    entries.extend(format_scalar(values[row_index, col]) for col in col_tail)
    return " ".join(entries)


def matrix_str(matrix: Any) -> str:
    rows = matrix.number_rows()
    cols = matrix.number_columns()
    edge_items = get_config().edge_items

    info = [f"shape=({rows}, {cols})"]
    if matrix.is_sparse():
        info.append("sparse")
    header = f"{matrix.__class__.__name__}({', '.join(info)})"

    if rows == 0 or cols == 0:
        return header + "\n[]"

    values = matrix.to_numpy()
    row_head, row_tail, rows_truncated = _edge_indices(rows, edge_items)
    col_head, col_tail, cols_truncated = _edge_indices(cols, edge_items)

    lines = [header, "["]
    for row_index in row_head:
        lines.append(f" [{_format_matrix_row(values, row_index, col_head, col_tail, cols_truncated)}]")
    if rows_truncated:
        lines.append(" ...")
    for row_index in row_tail:
        lines.append(f" [{_format_matrix_row(values, row_index, col_head, col_tail, cols_truncated)}]")
    lines.append("]")
    return "\n".join(lines)
