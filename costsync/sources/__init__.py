"""Record sources: remote endpoint and local file fallback."""

from costsync.sources.loader import SourceLoader
from costsync.sources.local import FileHandle, LocalFileSource, PathPicker, PromptPicker
from costsync.sources.remote import RemoteSource

__all__ = [
    "FileHandle",
    "LocalFileSource",
    "PathPicker",
    "PromptPicker",
    "RemoteSource",
    "SourceLoader",
]
