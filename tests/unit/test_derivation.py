"""Unit tests for derived cost figures.

Covers numeric coercion, channel distribution, service bundle totals,
idempotency and formula summaries.
"""

from __future__ import annotations

import copy

import pytest

from costsync.derivation import cost_per_lead, derive, formula_summary, to_number
from costsync.models import Record


class TestToNumber:
    """Test coercion of raw record values."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            (3000, 3000),
            (12.5, 12.5),
            ("3000", 3000),
            ("$3,000", 3000),
            ("MXN 1,234.50", 1234.5),
            ("-15", -15),
            ("abc", 0),
            ("", 0),
            ("-", 0),
            (None, 0),
            (True, 0),
            ([1, 2], 0),
            (float("nan"), 0),
        ],
    )
    def test_coercion(self, raw, expected):
        assert to_number(raw) == expected

    def test_integral_strings_become_ints(self):
        """Test '5000' stays integral so it renders without '.0'."""
        assert isinstance(to_number("5000"), int)


class TestCostPerLead:
    """Test per-unit cost rounding."""

    def test_rounds_to_two_decimals(self):
        assert cost_per_lead(5000, 90) == 55.56

    @pytest.mark.parametrize(
        "investment,leads,expected",
        [(25, 8, 3.13), (1, 8, 0.13), (5, 8, 0.63), (3000, 48, 62.5)],
    )
    def test_exact_ties_round_up(self, investment, leads, expected):
        """Test a cost exactly halfway between cents rounds up, not to even."""
        assert cost_per_lead(investment, leads) == expected

    def test_zero_leads_never_divides(self):
        assert cost_per_lead(5000, 0) == 0
        assert cost_per_lead(5000, -3) == 0


class TestDistributionSlide:
    """Test channel-distribution derivation."""

    def test_example_distribution(self, record: Record):
        derive(record)
        slide = record.slides["slide14"]

        assert slide["totalInvestment"] == 5000
        assert slide["totalLeads"] == 90
        assert slide["costPerLead"] == 55.56
        assert slide["distribution"]["facebook"]["costPerLead"] == 60.00
        assert slide["distribution"]["instagram"]["costPerLead"] == 50.00

    def test_string_inputs_are_cleaned(self):
        record = Record(
            data={
                "slides": {
                    "s": {
                        "distribution": {
                            "google": {"investment": "$1,500", "leads": "30 leads"},
                            "tiktok": {"investment": "n/a", "leads": "10"},
                        }
                    }
                }
            }
        )

        derive(record)
        slide = record.slides["s"]

        assert slide["totalInvestment"] == 1500
        assert slide["totalLeads"] == 40
        assert slide["costPerLead"] == 37.5
        assert slide["distribution"]["google"]["costPerLead"] == 50.0
        assert slide["distribution"]["tiktok"]["costPerLead"] == 0

    def test_no_leads_gives_zero_cost_per_lead(self):
        record = Record(
            data={"slides": {"s": {"distribution": {"fb": {"investment": 1000, "leads": 0}}}}}
        )

        derive(record)
        slide = record.slides["s"]

        assert slide["costPerLead"] == 0
        assert "costPerLead" not in slide["distribution"]["fb"]

    def test_non_mapping_channels_are_ignored(self):
        record = Record(
            data={
                "slides": {
                    "s": {"distribution": {"fb": {"investment": 100, "leads": 4}, "note": "x"}}
                }
            }
        )

        derive(record)

        assert record.slides["s"]["totalInvestment"] == 100
        assert record.slides["s"]["distribution"]["note"] == "x"


class TestServiceSlide:
    """Test service-bundle totals."""

    def test_example_services(self, record: Record):
        derive(record)
        totals = record.slides["slide19"]["totals"]

        assert totals["initialInvestment"] == 800
        assert totals["monthlyServicesTotal"] == 700
        assert totals["mediaInvestment"] == 5000
        assert totals["monthlyInvestment"] == 5700
        assert totals["firstPeriodInvestment"] == 6500

    def test_other_totals_keys_are_preserved(self, record: Record):
        derive(record)

        assert record.slides["slide19"]["totals"]["note"] == "VAT not included"

    def test_media_investment_falls_back_to_previous_value(self, record_data):
        del record_data["slides"]["slide14"]
        record_data["slides"]["slide19"]["totals"]["mediaInvestment"] = "4,000"
        record = Record(data=record_data)

        derive(record)
        totals = record.slides["slide19"]["totals"]

        assert totals["mediaInvestment"] == 4000
        assert totals["monthlyInvestment"] == 4700
        assert totals["firstPeriodInvestment"] == 5500

    def test_media_investment_defaults_to_zero(self):
        record = Record(data={"slides": {"s": {"services": {}}}})

        derive(record)

        assert record.slides["s"]["totals"] == {
            "initialInvestment": 0,
            "monthlyServicesTotal": 0,
            "mediaInvestment": 0,
            "monthlyInvestment": 0,
            "firstPeriodInvestment": 0,
        }

    def test_distribution_total_wins_over_previous_media_value(self, record_data):
        record_data["slides"]["slide19"]["totals"]["mediaInvestment"] = 1
        record = Record(data=record_data)

        derive(record)

        assert record.slides["slide19"]["totals"]["mediaInvestment"] == 5000

    def test_ad_creation_monthly_cost_counts(self, record_data):
        record_data["slides"]["slide19"]["services"]["adCreation"]["monthly"] = 50
        record = Record(data=record_data)

        derive(record)

        assert record.slides["slide19"]["totals"]["monthlyServicesTotal"] == 750


class TestDerive:
    """Test whole-record behaviour."""

    def test_idempotent(self, record: Record):
        derive(record)
        once = copy.deepcopy(record.data)

        derive(record)

        assert record.data == once

    def test_returns_same_record(self, record: Record):
        assert derive(record) is record

    def test_record_without_slides(self):
        record = Record(data={"configuration": {}})

        assert derive(record).data == {"configuration": {}}

    def test_unclassified_slides_untouched(self):
        record = Record(data={"slides": {"cover": {"title": "Hello"}}})

        derive(record)

        assert record.slides["cover"] == {"title": "Hello"}


class TestFormulaSummary:
    """Test formula summaries over derived slides."""

    def test_distribution_formula(self, record: Record):
        derive(record)

        summary = formula_summary(record, "slide14")

        assert summary["totalInvestment"] == 5000
        assert summary["costPerLead"] == pytest.approx(5000 / 90)
        assert summary["channels"] == {"facebook": 60.0, "instagram": 50.0}

    def test_services_formula(self, record: Record):
        derive(record)

        summary = formula_summary(record, "slide19")

        assert summary["monthlyInvestment"] == 5700
        assert summary["firstPeriodInvestment"] == 6500
        assert summary["adCommission"] == pytest.approx(500.0)

    def test_undeclared_formula(self, record: Record):
        derive(record)

        assert formula_summary(record, "slide99") is None
