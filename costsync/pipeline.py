"""One refresh cycle: load -> derive -> compare -> (commit + render).

Cycle outcomes are reported as CycleResult values; background failures
never escape a cycle, the last accepted record simply stays on display.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum

from costsync.derivation import derive, is_service_slide
from costsync.errors import LoadError
from costsync.models import Binding, Record
from costsync.rendering import BindingRenderer
from costsync.signature import has_changed, signature
from costsync.sources.loader import SourceLoader
from costsync.store import RecordStore

logger = logging.getLogger(__name__)


class CycleStatus(str, Enum):
    """Outcome of a refresh cycle."""

    UPDATED = "UPDATED"
    UNCHANGED = "UNCHANGED"
    FAILED = "FAILED"
    SKIPPED = "SKIPPED"


@dataclass
class CycleResult:
    """Result of a refresh cycle."""

    status: CycleStatus
    origin: str | None = None
    signature: str | None = None
    rendered: int = 0
    message: str = ""
    error_details: dict | None = None
    duration_seconds: float = 0.0

    @property
    def changed(self) -> bool:
        return self.status is CycleStatus.UPDATED


class SyncPipeline:
    """Runs cycles against one store, loader and renderer."""

    def __init__(
        self,
        loader: SourceLoader,
        store: RecordStore,
        renderer: BindingRenderer,
        bindings: Iterable[Binding] = (),
    ):
        self.loader = loader
        self.store = store
        self.renderer = renderer
        self.bindings: list[Binding] = list(bindings)
        self.listeners: list[Callable[[CycleResult], None]] = []

    def accept(self, record: Record, force: bool = False) -> CycleResult:
        """Derive a loaded record and commit it if it changed.

        Args:
            record: Raw record straight from a source
            force: Commit even when the signature matches the current one

        Returns:
            UPDATED with the render count, or UNCHANGED
        """
        derive(record)
        new_signature = signature(record)

        if not force and not has_changed(new_signature, self.store.signature):
            return CycleResult(
                status=CycleStatus.UNCHANGED,
                origin=record.origin,
                signature=new_signature,
                message="Record unchanged",
            )

        self.store.commit(record, new_signature)
        rendered = self.renderer.render_all(self.bindings)

        for slide_id, slide in record.slides.items():
            if is_service_slide(slide):
                logger.debug(f"New totals for {slide_id}: {slide.get('totals')}")

        result = CycleResult(
            status=CycleStatus.UPDATED,
            origin=record.origin,
            signature=new_signature,
            rendered=rendered,
            message=f"Record updated from {record.origin}",
        )
        for listener in self.listeners:
            listener(result)
        return result

    async def run_cycle(self) -> CycleResult:
        """Execute one refresh cycle with error handling and timing."""
        start_time = time.time()

        if not self.store.loaded:
            return CycleResult(status=CycleStatus.SKIPPED, message="No record loaded yet")

        try:
            logger.debug("Checking for record changes")
            record = await self.loader.load(force_local_picker=False)
            result = self.accept(record)
            if result.changed:
                logger.info(result.message)

        except LoadError as e:
            result = CycleResult(
                status=CycleStatus.FAILED,
                message=f"Refresh failed: {e}",
                error_details={"error_type": type(e).__name__, "error_message": str(e)},
            )
            logger.warning(result.message)

        except Exception as e:
            result = CycleResult(
                status=CycleStatus.FAILED,
                message=f"Refresh failed unexpectedly: {e}",
                error_details={"error_type": type(e).__name__, "error_message": str(e)},
            )
            logger.error(result.message, exc_info=True)

        result.duration_seconds = time.time() - start_time
        return result
