"""HTML presentation as a display surface.

Bindings are declared on markup elements:

    <span id="cpl" data-cost-slide="slide14"
          data-cost-field="costPerLead" data-cost-kind="amount">-</span>

``data-cost-kind`` is optional and defaults to plain text.
"""

from __future__ import annotations

import logging
from pathlib import Path

from bs4 import BeautifulSoup, Tag
from pydantic import ValidationError

from costsync.models import Binding

logger = logging.getLogger(__name__)

SLIDE_ATTR = "data-cost-slide"
FIELD_ATTR = "data-cost-field"
KIND_ATTR = "data-cost-kind"


class HtmlTarget:
    """Wraps one element; writing replaces its text content."""

    def __init__(self, element: Tag):
        self.element = element

    @property
    def text(self) -> str:
        return self.element.get_text()

    def set_text(self, text: str) -> None:
        self.element.string = text


class HtmlSurface:
    """Parsed presentation markup whose bound elements can be rewritten."""

    def __init__(self, markup: str):
        self.soup = BeautifulSoup(markup, "html.parser")
        self._targets: dict[str, Tag] = {}

    @classmethod
    def from_file(cls, path: Path | str) -> HtmlSurface:
        return cls(Path(path).read_text(encoding="utf-8"))

    def discover_bindings(self) -> list[Binding]:
        """Collect bindings from every element carrying slide and field attributes.

        Elements without an ``id``, or repeating one already seen, are
        addressed by discovery position so each element is written on its own.
        """
        bindings = []
        self._targets.clear()
        for index, element in enumerate(self.soup.select(f"[{SLIDE_ATTR}][{FIELD_ATTR}]")):
            ref = element.get("id")
            if not ref or ref in self._targets:
                ref = f"cost-binding-{index}"
            try:
                binding = Binding(
                    target=ref,
                    slide_id=element.get(SLIDE_ATTR, ""),
                    field_path=element.get(FIELD_ATTR, ""),
                    kind=element.get(KIND_ATTR),
                )
            except ValidationError as e:
                logger.warning(f"Skipping malformed binding on <{element.name}>: {e}")
                continue
            self._targets[ref] = element
            bindings.append(binding)

        logger.debug(f"Discovered {len(bindings)} bindings")
        return bindings

    def find(self, target: str) -> HtmlTarget | None:
        # Tags with no children are falsy, so test against None
        element = self._targets.get(target)
        if element is None:
            element = self.soup.find(id=target)
        return HtmlTarget(element) if isinstance(element, Tag) else None

    def render(self) -> str:
        return str(self.soup)

    def write(self, path: Path | str) -> None:
        Path(path).write_text(self.render(), encoding="utf-8")
