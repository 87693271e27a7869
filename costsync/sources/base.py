"""Base class for cost record sources.

Defines the contract every source implements and the shared parsing step.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from typing import Any

from costsync.errors import ParseError
from costsync.models import Record

logger = logging.getLogger(__name__)


def parse_record(text: str, source_name: str = "source") -> dict[str, Any]:
    """Parse a record body.

    Only presence is checked: the document must be a JSON object.

    Raises:
        ParseError: If the body is not JSON or not an object
    """
    try:
        data = json.loads(text)
    except ValueError as e:
        raise ParseError(f"Malformed record from {source_name}: {e}") from e

    if not isinstance(data, dict):
        raise ParseError(
            f"Record from {source_name} must be a JSON object, got {type(data).__name__}"
        )
    return data


class BaseSource(ABC):
    """Abstract base class for record sources.

    Key principles:
    1. Each source reads exactly ONE location
    2. Sources classify their failures as LoadError subclasses
    3. Sources never derive or commit; they only produce raw records
    """

    def __init__(self, source_name: str):
        self.source_name = source_name
        self.logger = logging.getLogger(f"{__name__}.{source_name}")

    @abstractmethod
    async def fetch_text(self) -> str:
        """Fetch the raw record body.

        Raises:
            LoadError: Any classified failure while fetching
        """

    async def load(self) -> Record:
        """Fetch and parse one record.

        Returns:
            Record tagged with this source's name as origin

        Raises:
            LoadError: On fetch or parse failure
        """
        text = await self.fetch_text()
        data = parse_record(text, self.source_name)
        self.logger.debug(f"Loaded record from {self.source_name} ({len(text)} bytes)")
        return Record(data=data, origin=self.source_name)
