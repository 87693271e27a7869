"""Display formatting for bound values.

Pure, stateless helpers. A value that cannot be read as a number is
returned unmodified instead of raising.
"""

from __future__ import annotations

import json
import math
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from costsync.models import FormatConfig, ValueKind

DEFAULT_FORMAT = FormatConfig()


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _parse_number(text: str) -> float | None:
    try:
        number = float(text.strip())
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def group_digits(
    value: int | float,
    config: FormatConfig = DEFAULT_FORMAT,
    min_decimals: int = 0,
    max_decimals: int = 0,
) -> str:
    """Render a number with thousands grouping and bounded decimals.

    Examples:
        >>> group_digits(1234567.891, max_decimals=2)
        '1,234,567.89'
        >>> group_digits(1234.5, FormatConfig(thousands_separator="."), 1, 2)
        '1.234,5'
    """
    quantum = Decimal(1).scaleb(-max_decimals)
    amount = Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP)
    if amount == 0:
        amount = abs(amount)
    text = f"{amount:,.{max_decimals}f}"

    if max_decimals > min_decimals:
        whole, _, fraction = text.partition(".")
        fraction = fraction.rstrip("0").ljust(min_decimals, "0")
        text = f"{whole}.{fraction}" if fraction else whole

    whole, dot, fraction = text.partition(".")
    whole = whole.replace(",", config.thousands_separator)
    return f"{whole}{config.decimal_separator}{fraction}" if dot else whole


def format_amount(value: Any, config: FormatConfig = DEFAULT_FORMAT) -> Any:
    """Currency amount with no decimals, e.g. ``$5,000``."""
    if not _is_number(value) or not math.isfinite(value):
        return value
    try:
        return f"{config.currency_symbol}{group_digits(value, config)}"
    except InvalidOperation:
        return value


def format_number(value: Any, config: FormatConfig = DEFAULT_FORMAT) -> Any:
    """Grouped number with up to two decimals."""
    if isinstance(value, str):
        number = _parse_number(value)
        if number is None:
            return value
        value = number
    if not _is_number(value) or not math.isfinite(value):
        return value
    try:
        return group_digits(value, config, max_decimals=2)
    except InvalidOperation:
        return value


def format_percentage(value: Any, config: FormatConfig = DEFAULT_FORMAT) -> Any:
    """Percentage; integral values drop decimals, others keep one or two.

    Strings already ending in ``%`` pass through trimmed.
    """

    def render(number: float) -> Any:
        has_decimals = abs(number) % 1 != 0
        try:
            return f"{group_digits(number, config, 1 if has_decimals else 0, 2)}%"
        except InvalidOperation:
            return value

    if _is_number(value):
        return render(value) if math.isfinite(value) else value

    if isinstance(value, str):
        trimmed = value.strip()
        if trimmed.endswith("%"):
            return trimmed
        number = _parse_number(trimmed)
        return render(number) if number is not None else trimmed

    return value


def display_text(value: Any) -> str:
    """Plain text rendering of a raw record value."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


def format_value(
    value: Any, kind: ValueKind | str, config: FormatConfig = DEFAULT_FORMAT
) -> str:
    """Format a raw value for display according to its value kind."""
    kind = ValueKind.parse(kind)
    if kind is ValueKind.AMOUNT:
        formatted = format_amount(value, config)
    elif kind is ValueKind.NUMBER:
        formatted = format_number(value, config)
    elif kind is ValueKind.PERCENTAGE:
        formatted = format_percentage(value, config)
    else:
        formatted = value
    return display_text(formatted)
