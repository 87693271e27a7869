"""Source selection: remote first, retained local file as fallback."""

from __future__ import annotations

import logging

from costsync.errors import LoadError, NetworkError, ParseError
from costsync.models import Record
from costsync.sources.local import LocalFileSource
from costsync.sources.remote import RemoteSource

logger = logging.getLogger(__name__)


class SourceLoader:
    """Loads a raw record from the remote endpoint or the local fallback."""

    def __init__(self, remote: RemoteSource, local: LocalFileSource | None = None):
        self.remote = remote
        self.local = local or LocalFileSource()

    @property
    def has_file_handle(self) -> bool:
        return self.local.handle is not None

    @property
    def can_select_local(self) -> bool:
        return self.local.available

    async def load(self, force_local_picker: bool = False) -> Record:
        """Load one record.

        Args:
            force_local_picker: Skip the remote endpoint and prompt for a
                local file even if one is already held

        Returns:
            Freshly parsed, not yet derived Record

        Raises:
            LoadError: When neither path produced a record
        """
        if force_local_picker:
            return await self.local.load_selected(force_prompt=True)

        try:
            return await self.remote.load()
        except (NetworkError, ParseError) as e:
            if not self.has_file_handle:
                raise
            logger.warning(f"Remote load failed ({e}), reading retained local file")
            try:
                return await self.local.load_selected()
            except LoadError as fallback_error:
                logger.warning(f"Local fallback failed: {fallback_error}")
                raise fallback_error from e

    async def close(self) -> None:
        await self.remote.close()
