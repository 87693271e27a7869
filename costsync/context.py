"""The CostSync context object.

Built once at startup by the host and owns the whole pipeline: record
store, source loader, renderer and refresh scheduler. There is no module
level instance; hosts pass this object to whatever needs it.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable, Mapping
from typing import Any

import httpx
import structlog

from costsync.config import AppConfig
from costsync.derivation import formula_summary
from costsync.errors import LoadError, UnsupportedEnvironment, UserCancelled
from costsync.formatting import format_amount
from costsync.models import Binding, Record, ValueKind
from costsync.pipeline import CycleResult, SyncPipeline
from costsync.rendering import BindingRenderer, DisplaySurface, Found
from costsync.scheduler import RefreshScheduler, Sleep
from costsync.sources.loader import SourceLoader
from costsync.sources.local import FilePicker, LocalFileSource, PathPicker
from costsync.sources.remote import RemoteSource
from costsync.store import RecordStore

logger = structlog.get_logger()

LOAD_HINT = (
    "Serve the presentation over http://localhost or call "
    "select_local_file() to pick the record file manually."
)


class CostSync:
    """Loads, derives, renders and keeps refreshing one cost record."""

    def __init__(
        self,
        config: AppConfig,
        surface: DisplaySurface,
        bindings: Iterable[Binding] = (),
        http_client: httpx.AsyncClient | None = None,
        picker: FilePicker | None = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self.config = config
        self.surface = surface

        if picker is None and config.source.local_file is not None:
            picker = PathPicker(config.source.local_file)

        remote = RemoteSource(
            config.source.url,
            data_version=config.source.data_version,
            timeout=config.source.timeout_seconds,
            client=http_client,
        )
        self.store = RecordStore()
        self.loader = SourceLoader(remote, LocalFileSource(picker))
        self.renderer = BindingRenderer(self.store, surface)
        self.pipeline = SyncPipeline(self.loader, self.store, self.renderer, bindings)
        self.scheduler = RefreshScheduler(self.pipeline, sleep=sleep)

    @property
    def loaded(self) -> bool:
        return self.store.loaded

    @property
    def record(self) -> Record | None:
        return self.store.record

    @property
    def bindings(self) -> list[Binding]:
        return self.pipeline.bindings

    @bindings.setter
    def bindings(self, bindings: Iterable[Binding]) -> None:
        self.pipeline.bindings = list(bindings)

    async def initialize(self) -> bool:
        """Initial load, render and auto-refresh start.

        Returns:
            True if a record was loaded; False lets the host decide whether
            to continue without data
        """
        try:
            record = await self.loader.load(force_local_picker=False)
        except LoadError as e:
            logger.error("cost_data_load_failed", error=str(e), hint=LOAD_HINT)
            return False

        result = self.pipeline.accept(record, force=True)
        logger.info("cost_data_loaded", origin=result.origin, rendered=result.rendered)
        self.start_auto_refresh()
        return True

    async def refresh(self) -> CycleResult | None:
        """Force an immediate check outside the schedule."""
        if not self.loaded:
            logger.warning("cost_refresh_before_load", hint="call initialize() first")
            return None
        return await self.scheduler.check_now()

    async def select_local_file(self) -> bool:
        """Prompt for a local record file and load it, bypassing the endpoint."""
        try:
            record = await self.loader.load(force_local_picker=True)
        except UnsupportedEnvironment:
            logger.warning("local_file_selection_unsupported")
            return False
        except UserCancelled:
            logger.warning("local_file_not_selected")
            return False
        except LoadError as e:
            logger.warning("local_file_load_failed", error=str(e))
            return False

        self.pipeline.accept(record, force=True)
        logger.info("cost_data_loaded_manually", path=str(self.loader.local.handle.path))
        self.start_auto_refresh()
        return True

    def start_auto_refresh(self) -> bool:
        if not self.config.refresh.enabled:
            return False
        return self.scheduler.start(
            interval_ms=self.config.refresh.interval_ms,
            initial_delay_ms=self.config.refresh.initial_delay_ms,
        )

    def stop_auto_refresh(self) -> None:
        self.scheduler.stop()

    def render_bindings(self) -> int:
        """Re-render every active binding from the current record."""
        return self.renderer.render_all(self.bindings)

    # Lookups

    def slide_data(self, slide_id: str) -> dict[str, Any] | None:
        return self.record.slide(slide_id) if self.record else None

    def metric(self, slide_id: str, name: str) -> Any:
        return self._lookup(slide_id, f"metrics.{name}")

    def service(self, slide_id: str, name: str) -> Any:
        return self._lookup(slide_id, f"services.{name}")

    def get(self, slide_id: str, field: str, kind: ValueKind | str = ValueKind.TEXT) -> Any:
        """Raw field value, formatted as currency for numeric amounts."""
        value = self._lookup(slide_id, field)
        if value is not None and ValueKind.parse(kind) is ValueKind.AMOUNT:
            return format_amount(value, self.record.format_config)
        return value

    def formula(self, formula_id: str) -> dict[str, Any] | None:
        return formula_summary(self.record, formula_id) if self.record else None

    def _lookup(self, slide_id: str, field_path: str) -> Any:
        resolution = self.renderer.resolve(slide_id, field_path.split("."))
        return resolution.value if isinstance(resolution, Found) else None

    # Imperative updates

    def update(
        self, target: str, slide_id: str, field: str, kind: ValueKind | str = ValueKind.TEXT
    ) -> bool:
        """Render one value into one target by reference."""
        if not self.loaded:
            logger.warning("cost_data_not_loaded")
            return False
        return self.renderer.render_field(target, slide_id, field, kind)

    def update_slide(self, slide_id: str, mappings: Iterable[Mapping[str, Any]]) -> int:
        """Render several ``{"target", "field", "kind"}`` mappings of one slide."""
        if not self.loaded:
            return 0
        return sum(
            1
            for mapping in mappings
            if self.renderer.render_field(
                mapping["target"], slide_id, mapping["field"], mapping.get("kind", ValueKind.TEXT)
            )
        )

    async def aclose(self) -> None:
        """Stop polling, let an in-flight cycle finish, close the HTTP client."""
        self.scheduler.stop()
        await self.scheduler.wait_idle()
        await self.loader.close()

    async def __aenter__(self) -> CostSync:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()
