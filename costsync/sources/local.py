"""Local file fallback.

A picker is the capability to ask for one JSON file. Once a file has been
chosen its handle is kept, so later fallback reads do not prompt again.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path

import aiofiles

from costsync.errors import LoadError, UnsupportedEnvironment, UserCancelled
from costsync.models import Record
from costsync.sources.base import BaseSource

logger = logging.getLogger(__name__)

JSON_SUFFIXES = (".json",)


@dataclass(frozen=True)
class FileHandle:
    """A previously selected local record file."""

    path: Path

    async def read_text(self) -> str:
        async with aiofiles.open(self.path, "r", encoding="utf-8") as f:
            return await f.read()


FilePicker = Callable[[], Awaitable["FileHandle | None"]]


def _json_handle(path: Path) -> FileHandle | None:
    if path.suffix.lower() not in JSON_SUFFIXES:
        logger.warning(f"Ignoring {path}: only JSON record files can be selected")
        return None
    return FileHandle(path=path)


class PathPicker:
    """Picker that always offers the same configured file."""

    def __init__(self, path: Path | str):
        self.path = Path(path)

    async def __call__(self) -> FileHandle | None:
        return _json_handle(self.path)


class PromptPicker:
    """Picker that asks for a path on the terminal; blank input cancels."""

    def __init__(self, prompt: Callable[[str], str] | None = None):
        if prompt is None:
            from rich.prompt import Prompt

            def prompt(message: str) -> str:
                return Prompt.ask(message, default="")

        self._prompt = prompt

    async def __call__(self) -> FileHandle | None:
        answer = await asyncio.to_thread(self._prompt, "Cost record JSON file")
        answer = (answer or "").strip()
        if not answer:
            return None
        return _json_handle(Path(answer).expanduser())


class LocalFileSource(BaseSource):
    """Reads records from a user-selected file."""

    def __init__(self, picker: FilePicker | None = None):
        super().__init__("local")
        self.picker = picker
        self.handle: FileHandle | None = None

    @property
    def available(self) -> bool:
        return self.picker is not None

    async def select(self, force: bool = False) -> FileHandle:
        """Return the retained handle, prompting when none is held or forced.

        Raises:
            UnsupportedEnvironment: No picker is available
            UserCancelled: The picker returned no file
        """
        if self.picker is None:
            raise UnsupportedEnvironment("Local file selection is not available")

        if self.handle is None or force:
            handle = await self.picker()
            if handle is None:
                raise UserCancelled("No cost record file was selected")
            self.handle = handle
            self.logger.info(f"Selected local record file {handle.path}")

        return self.handle

    async def fetch_text(self) -> str:
        if self.handle is None:
            await self.select()
        try:
            return await self.handle.read_text()
        except (OSError, UnicodeDecodeError) as e:
            raise LoadError(f"Could not read {self.handle.path}: {e}") from e

    async def load_selected(self, force_prompt: bool = False) -> Record:
        """Select (or reuse) a file and load the record it holds."""
        await self.select(force=force_prompt)
        return await self.load()
