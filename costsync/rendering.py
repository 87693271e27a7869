"""Binding resolution and rendering into display targets.

The renderer never knows how targets are located: a display surface hands
out targets by reference, and a target only accepts new text.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, Protocol, Union

from costsync.formatting import format_value
from costsync.models import Binding, ValueKind
from costsync.store import RecordStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Found:
    """Path resolved to a value (which may be JSON null)."""

    value: Any


@dataclass(frozen=True)
class Missing:
    """Path resolution stopped at ``segment``."""

    segment: str | None = None


Resolution = Union[Found, Missing]


def resolve_path(payload: Any, segments: Iterable[str]) -> Resolution:
    """Walk dotted-path segments into a slide payload.

    Each segment indexes one level deeper (mapping key, or list position
    for digit segments). Resolution stops at the first absent segment.

    Examples:
        >>> resolve_path({"totals": {"a": 1}}, ["totals", "a"])
        Found(value=1)
        >>> resolve_path({"totals": {}}, ["totals", "a"])
        Missing(segment='a')
    """
    current = payload
    for segment in segments:
        if isinstance(current, dict) and segment in current:
            current = current[segment]
        elif isinstance(current, list) and segment.isdigit() and int(segment) < len(current):
            current = current[int(segment)]
        else:
            return Missing(segment)
    return Found(current)


class DisplayTarget(Protocol):
    def set_text(self, text: str) -> None: ...


class DisplaySurface(Protocol):
    def find(self, target: str) -> DisplayTarget | None: ...


@dataclass
class TextTarget:
    """Display target that just keeps its text."""

    text: str = ""

    def set_text(self, text: str) -> None:
        self.text = text


class MemorySurface:
    """Display surface backed by a dict of named text targets."""

    def __init__(self, targets: dict[str, TextTarget] | None = None):
        self.targets: dict[str, TextTarget] = dict(targets or {})

    def add(self, target: str, text: str = "") -> TextTarget:
        self.targets[target] = TextTarget(text)
        return self.targets[target]

    def find(self, target: str) -> TextTarget | None:
        return self.targets.get(target)

    def text(self, target: str) -> str | None:
        found = self.targets.get(target)
        return found.text if found else None


class BindingRenderer:
    """Writes formatted record values into bound display targets."""

    def __init__(self, store: RecordStore, surface: DisplaySurface):
        self.store = store
        self.surface = surface

    def resolve(self, slide_id: str, segments: Iterable[str]) -> Resolution:
        """Resolve field path segments against one slide of the current record."""
        if self.store.record is None:
            return Missing(None)
        slide = self.store.record.slide(slide_id)
        if slide is None:
            return Missing(slide_id)
        return resolve_path(slide, segments)

    def render(self, binding: Binding) -> bool:
        """Render one binding.

        Absent or null values leave the target's current content untouched.

        Returns:
            True if the target's text was written
        """
        resolution = self.resolve(binding.slide_id, binding.segments)
        if not isinstance(resolution, Found) or resolution.value is None:
            return False

        target = self.surface.find(binding.target)
        if target is None:
            return False

        target.set_text(
            format_value(resolution.value, binding.kind, self.store.record.format_config)
        )
        return True

    def render_all(self, bindings: Iterable[Binding]) -> int:
        """Render every binding; returns how many targets were written."""
        if not self.store.loaded:
            return 0
        bindings = list(bindings)
        written = sum(1 for binding in bindings if self.render(binding))
        logger.debug(f"Rendered {written}/{len(bindings)} bound targets")
        return written

    def render_field(
        self, target: str, slide_id: str, field_path: str, kind: ValueKind | str = ValueKind.TEXT
    ) -> bool:
        """Render an ad-hoc binding given as loose values."""
        return self.render(
            Binding(target=target, slide_id=slide_id, field_path=field_path, kind=kind)
        )
