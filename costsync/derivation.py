"""Recomputation of derived cost figures.

Derived fields are a pure function of the raw inputs in the same record:
running ``derive`` twice on unchanged inputs writes identical values.

Slide classes are recognised by shape, not by identifier:
- channel-distribution slide: has a ``distribution`` mapping of
  channel -> {investment, leads}
- service-bundle slide: has a ``services`` mapping with ``content``,
  ``adCreation`` and ``adManagement`` entries

Money aggregates are never rounded; only per-unit cost-per-lead figures
are rounded to 2 decimals.
"""

from __future__ import annotations

import math
import re
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from costsync.models import Record

_NON_NUMERIC = re.compile(r"[^0-9.,-]")
_CENTS = Decimal("0.01")

SERVICE_KEYS = ("content", "adCreation", "adManagement")


def to_number(value: Any) -> int | float:
    """Coerce a raw record value to a number.

    Strings are stripped of everything except digits, dot, comma and minus,
    commas are treated as thousands separators. Anything unparseable is 0.

    Examples:
        >>> to_number("$3,000")
        3000
        >>> to_number("abc")
        0
    """
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else 0
    if isinstance(value, str):
        cleaned = _NON_NUMERIC.sub("", value).replace(",", "")
        if not cleaned:
            return 0
        try:
            number = float(cleaned)
        except ValueError:
            return 0
        if not math.isfinite(number):
            return 0
        return int(number) if number.is_integer() else number
    return 0


def cost_per_lead(investment: int | float, leads: int | float) -> int | float:
    """Investment per lead rounded half up to 2 decimals; 0 when there are no leads."""
    if leads > 0:
        return float(Decimal(str(investment / leads)).quantize(_CENTS, rounding=ROUND_HALF_UP))
    return 0


def is_distribution_slide(slide: Any) -> bool:
    return isinstance(slide, dict) and isinstance(slide.get("distribution"), dict)


def is_service_slide(slide: Any) -> bool:
    return isinstance(slide, dict) and isinstance(slide.get("services"), dict)


def derive_distribution(slide: dict[str, Any]) -> None:
    """Write channel totals and cost-per-lead figures into a distribution slide."""
    channels = [c for c in slide["distribution"].values() if isinstance(c, dict)]

    total_investment = sum(to_number(c.get("investment")) for c in channels)
    total_leads = sum(to_number(c.get("leads")) for c in channels)

    slide["totalInvestment"] = total_investment
    slide["totalLeads"] = total_leads
    slide["costPerLead"] = cost_per_lead(total_investment, total_leads)

    for channel in channels:
        leads = to_number(channel.get("leads"))
        if leads > 0:
            channel["costPerLead"] = cost_per_lead(to_number(channel.get("investment")), leads)


def _service(services: dict[str, Any], name: str) -> dict[str, Any]:
    service = services.get(name)
    return service if isinstance(service, dict) else {}


def derive_services(
    slide: dict[str, Any], media_investment: int | float | None
) -> dict[str, Any]:
    """Write investment totals into a service-bundle slide.

    Args:
        slide: Service-bundle slide payload (mutated)
        media_investment: Total investment of the distribution slide, or
            None when the record has none

    Returns:
        The slide's merged ``totals`` mapping
    """
    services = slide["services"]
    content = _service(services, "content")
    ad_creation = _service(services, "adCreation")
    ad_management = _service(services, "adManagement")

    initial_investment = (
        to_number(content.get("oneTime"))
        + to_number(ad_creation.get("oneTime"))
        + to_number(ad_management.get("setupCost"))
    )
    monthly_services_total = sum(
        to_number(_service(services, name).get("monthly")) for name in SERVICE_KEYS
    )

    previous = slide.get("totals")
    totals = dict(previous) if isinstance(previous, dict) else {}

    if media_investment is None:
        media_investment = to_number(totals.get("mediaInvestment"))

    monthly_investment = monthly_services_total + media_investment

    totals.update(
        initialInvestment=initial_investment,
        monthlyServicesTotal=monthly_services_total,
        mediaInvestment=media_investment,
        monthlyInvestment=monthly_investment,
        firstPeriodInvestment=initial_investment + monthly_investment,
    )
    slide["totals"] = totals
    return totals


def derive(record: Record) -> Record:
    """Recompute every derived field of a record in place.

    Never fails: missing or malformed inputs count as zero.

    Args:
        record: Freshly loaded record

    Returns:
        The same record, with derived fields written
    """
    slides = record.slides

    media_investment = None
    for slide in slides.values():
        if is_distribution_slide(slide):
            derive_distribution(slide)
            if media_investment is None:
                media_investment = slide["totalInvestment"]

    for slide in slides.values():
        if is_service_slide(slide):
            derive_services(slide, media_investment)

    return record


def formula_summary(record: Record, formula_id: str) -> dict[str, Any] | None:
    """Summary figures for a formula declared in the record's ``formulas``.

    The formula id names a slide. Distribution slides yield overall and
    per-channel cost-per-lead; service slides yield monthly and first-period
    investment plus the ad management commission on media spend.

    Returns:
        Mapping of figures, or None when the formula is not declared or the
        slide is of neither class
    """
    if formula_id not in record.formulas:
        return None

    slide = record.slide(formula_id)
    if is_distribution_slide(slide):
        total_investment = to_number(slide.get("totalInvestment"))
        total_leads = to_number(slide.get("totalLeads"))
        channels = {}
        for name, channel in slide["distribution"].items():
            if not isinstance(channel, dict):
                continue
            leads = to_number(channel.get("leads"))
            investment = to_number(channel.get("investment"))
            channels[name] = investment / leads if leads > 0 else 0
        return {
            "costPerLead": total_investment / total_leads if total_leads > 0 else 0,
            "totalInvestment": total_investment,
            "channels": channels,
        }

    if is_service_slide(slide):
        totals = slide.get("totals") if isinstance(slide.get("totals"), dict) else {}
        commission = to_number(_service(slide["services"], "adManagement").get("commission"))
        return {
            "monthlyInvestment": to_number(totals.get("monthlyInvestment")),
            "firstPeriodInvestment": to_number(totals.get("firstPeriodInvestment")),
            "adCommission": to_number(totals.get("mediaInvestment")) * commission,
        }

    return None
