"""In-memory holder of the accepted record and its signature."""

from __future__ import annotations

import logging

from costsync.models import Record

logger = logging.getLogger(__name__)


class RecordStore:
    """Current record plus the signature it was accepted with.

    The signature always belongs to the record most recently committed,
    i.e. the one behind the currently rendered bindings. Records are only
    ever replaced wholesale, never deleted.
    """

    def __init__(self):
        self.record: Record | None = None
        self.signature: str | None = None
        self.commits = 0

    @property
    def loaded(self) -> bool:
        return self.record is not None

    def commit(self, record: Record, signature: str | None) -> None:
        """Accept a derived record as the current one."""
        self.record = record
        self.signature = signature
        self.commits += 1
        logger.debug(f"Committed record #{self.commits} from {record.origin}")
