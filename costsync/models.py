"""CostSync data models.

A record is semi-structured JSON: only ``slides`` and ``configuration`` are
interpreted, everything else rides along untouched. Bindings are validated
with Pydantic since they come from markup attributes.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_THOUSANDS_SEPARATOR = ","
DEFAULT_CURRENCY_SYMBOL = "$"


class ValueKind(str, Enum):
    """How a bound value is formatted for display."""

    TEXT = "text"
    AMOUNT = "amount"
    NUMBER = "number"
    PERCENTAGE = "percentage"

    @classmethod
    def parse(cls, value: str | ValueKind | None) -> ValueKind:
        """Map a markup attribute to a kind; unknown or missing means text."""
        if isinstance(value, ValueKind):
            return value
        if not value:
            return cls.TEXT
        try:
            return cls(value.strip().lower())
        except ValueError:
            return cls.TEXT


@dataclass(frozen=True)
class FormatConfig:
    """Display formatting rules carried by the record's configuration."""

    thousands_separator: str = DEFAULT_THOUSANDS_SEPARATOR
    currency_symbol: str = DEFAULT_CURRENCY_SYMBOL

    @property
    def decimal_separator(self) -> str:
        return "," if self.thousands_separator == "." else "."

    @classmethod
    def from_configuration(cls, configuration: Any) -> FormatConfig:
        if not isinstance(configuration, dict):
            return cls()
        fmt = configuration.get("format")
        if not isinstance(fmt, dict):
            return cls()
        thousands = fmt.get("thousandsSeparator")
        symbol = fmt.get("currencySymbol")
        return cls(
            thousands_separator=thousands if isinstance(thousands, str) else DEFAULT_THOUSANDS_SEPARATOR,
            currency_symbol=symbol if isinstance(symbol, str) else DEFAULT_CURRENCY_SYMBOL,
        )


@dataclass
class Record:
    """The full cost dataset for one presentation.

    ``data`` is the parsed JSON document. The derivation step writes its
    results into it in place; nothing else mutates it.
    """

    data: dict[str, Any]
    origin: str = "remote"  # "remote" or "local"

    @property
    def slides(self) -> dict[str, Any]:
        slides = self.data.get("slides")
        return slides if isinstance(slides, dict) else {}

    @property
    def configuration(self) -> dict[str, Any]:
        configuration = self.data.get("configuration")
        return configuration if isinstance(configuration, dict) else {}

    @property
    def formulas(self) -> dict[str, Any]:
        formulas = self.data.get("formulas")
        return formulas if isinstance(formulas, dict) else {}

    @property
    def format_config(self) -> FormatConfig:
        return FormatConfig.from_configuration(self.configuration)

    def slide(self, slide_id: str) -> dict[str, Any] | None:
        """Return the payload of one slide, or None when absent."""
        payload = self.slides.get(slide_id)
        return payload if isinstance(payload, dict) else None


class Binding(BaseModel):
    """Declarative mapping of one record field onto one display target."""

    model_config = ConfigDict(frozen=True)

    target: str = Field(..., min_length=1)
    slide_id: str = Field(..., min_length=1)
    field_path: str = Field(..., min_length=1)
    kind: ValueKind = ValueKind.TEXT

    @field_validator("kind", mode="before")
    @classmethod
    def coerce_kind(cls, v: Any) -> ValueKind:
        return ValueKind.parse(v)

    @field_validator("field_path")
    @classmethod
    def strip_path(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("field_path must not be blank")
        return v

    @property
    def segments(self) -> list[str]:
        return self.field_path.split(".")
