"""Unit tests for binding resolution and rendering."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from costsync.derivation import derive
from costsync.models import Binding, Record, ValueKind
from costsync.rendering import BindingRenderer, Found, MemorySurface, Missing, resolve_path
from costsync.store import RecordStore


@pytest.fixture
def store(record: Record) -> RecordStore:
    store = RecordStore()
    store.commit(derive(record), "sig")
    return store


@pytest.fixture
def surface() -> MemorySurface:
    surface = MemorySurface()
    for name in ("cpl", "first", "title", "zero", "missing"):
        surface.add(name, "placeholder")
    return surface


class TestResolvePath:
    """Test explicit Found/Missing resolution."""

    def test_nested_value(self):
        assert resolve_path({"a": {"b": 3}}, ["a", "b"]) == Found(3)

    def test_falsy_values_are_found(self):
        assert resolve_path({"a": 0}, ["a"]) == Found(0)
        assert resolve_path({"a": ""}, ["a"]) == Found("")

    def test_null_leaf_is_found(self):
        assert resolve_path({"a": None}, ["a"]) == Found(None)

    def test_stops_at_first_absent_segment(self):
        assert resolve_path({"a": {"b": 3}}, ["a", "x", "b"]) == Missing("x")

    def test_cannot_index_into_scalar(self):
        assert resolve_path({"a": 5}, ["a", "b"]) == Missing("b")

    def test_list_positions(self):
        assert resolve_path({"a": [10, 20]}, ["a", "1"]) == Found(20)
        assert resolve_path({"a": [10, 20]}, ["a", "2"]) == Missing("2")


class TestBinding:
    """Test binding validation."""

    def test_unknown_kind_is_text(self):
        binding = Binding(target="t", slide_id="s", field_path="a.b", kind="fancy")

        assert binding.kind is ValueKind.TEXT
        assert binding.segments == ["a", "b"]

    def test_blank_path_rejected(self):
        with pytest.raises(ValidationError):
            Binding(target="t", slide_id="s", field_path="  ")


class TestBindingRenderer:
    """Test writing into display targets."""

    def test_renders_formatted_value(self, store, surface):
        renderer = BindingRenderer(store, surface)

        written = renderer.render(
            Binding(target="first", slide_id="slide19", field_path="totals.firstPeriodInvestment", kind="amount")
        )

        assert written is True
        assert surface.text("first") == "$6,500"

    def test_renders_by_binding_segments(self, store, surface):
        """Test the renderer walks the validated (stripped) path of the binding."""
        renderer = BindingRenderer(store, surface)
        binding = Binding(target="first", slide_id="slide19", field_path=" totals.mediaInvestment ")

        assert renderer.resolve("slide19", binding.segments) == Found(5000)
        assert renderer.render(binding) is True
        assert surface.text("first") == "5000"

    def test_top_level_field(self, store, surface):
        renderer = BindingRenderer(store, surface)

        renderer.render(Binding(target="cpl", slide_id="slide14", field_path="costPerLead", kind="number"))

        assert surface.text("cpl") == "55.56"

    def test_absent_path_leaves_target_untouched(self, store, surface):
        renderer = BindingRenderer(store, surface)

        written = renderer.render(
            Binding(target="missing", slide_id="slide19", field_path="totals.nope.deeper")
        )

        assert written is False
        assert surface.text("missing") == "placeholder"

    def test_unknown_slide_leaves_target_untouched(self, store, surface):
        renderer = BindingRenderer(store, surface)

        assert renderer.render(Binding(target="title", slide_id="slide99", field_path="title")) is False
        assert surface.text("title") == "placeholder"

    def test_null_value_leaves_target_untouched(self, store, surface):
        store.record.slides["slide19"]["subtitle"] = None
        renderer = BindingRenderer(store, surface)

        assert renderer.render(Binding(target="title", slide_id="slide19", field_path="subtitle")) is False
        assert surface.text("title") == "placeholder"

    def test_zero_is_rendered(self, store, surface):
        store.record.slides["slide19"]["discount"] = 0
        renderer = BindingRenderer(store, surface)

        renderer.render(Binding(target="zero", slide_id="slide19", field_path="discount", kind="amount"))

        assert surface.text("zero") == "$0"

    def test_unknown_target_is_skipped(self, store, surface):
        renderer = BindingRenderer(store, surface)

        assert renderer.render(Binding(target="nowhere", slide_id="slide19", field_path="title")) is False

    def test_render_all_counts_written_targets(self, store, surface):
        renderer = BindingRenderer(store, surface)
        bindings = [
            Binding(target="title", slide_id="slide19", field_path="title"),
            Binding(target="cpl", slide_id="slide14", field_path="costPerLead"),
            Binding(target="missing", slide_id="slide14", field_path="absent"),
        ]

        assert renderer.render_all(bindings) == 2
        assert surface.text("title") == "Investment"

    def test_nothing_rendered_before_load(self, surface):
        renderer = BindingRenderer(RecordStore(), surface)

        assert renderer.render_all([Binding(target="title", slide_id="s", field_path="t")]) == 0
        assert surface.text("title") == "placeholder"

    def test_record_format_configuration_is_used(self, store, surface):
        store.record.data["configuration"] = {
            "format": {"thousandsSeparator": ".", "currencySymbol": "€"}
        }
        renderer = BindingRenderer(store, surface)

        renderer.render_field("first", "slide19", "totals.firstPeriodInvestment", "amount")

        assert surface.text("first") == "€6.500"
