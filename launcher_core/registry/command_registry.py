"""
CommandRegistry — public API of the command catalog.

    registry = CommandRegistry()
    commands = await registry.get_available_commands()
    ok       = await registry.execute_command("app-safari")
    registry.invalidate_cache()

A catalog request is served from the CommandCache while it is fresh.  On a
miss, application and settings discovery run concurrently; each result is
sorted by title and the fixed system commands are appended:

    [apps A→Z] + [settings panels A→Z] + [system commands]

Module-level ``get_available_commands`` / ``execute_command`` /
``invalidate_cache`` share one process-wide registry.
"""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Set

from launcher_core.config import Settings, settings as default_settings
from launcher_core.schemas import CommandCategory, CommandEntry

from .app_discovery import ApplicationDiscovery
from .bundle_metadata import BundleMetadataReader
from .command_cache import CommandCache
from .command_executor import QUIT_COMMAND_ID, CommandExecutor, SystemOpener
from .directory_scanner import DirectoryScanner
from .icon_extractor import IconExtractor, QuickLookIconResolver
from .settings_discovery import SettingsDiscovery

logger = logging.getLogger(__name__)

SYSTEM_COMMANDS: List[CommandEntry] = [
    CommandEntry(
        id=QUIT_COMMAND_ID,
        title="Quit Launcher",
        keywords=["exit", "close", "quit", "stop"],
        category=CommandCategory.SYSTEM,
    ),
]


def _sort_by_title(entries: List[CommandEntry]) -> List[CommandEntry]:
    return sorted(entries, key=lambda e: (e.title.casefold(), e.title))


class CommandRegistry:

    def __init__(
        self,
        config: Optional[Settings] = None,
        *,
        applications: Optional[ApplicationDiscovery] = None,
        settings_panels: Optional[SettingsDiscovery] = None,
        cache: Optional[CommandCache] = None,
        executor: Optional[CommandExecutor] = None,
        icons: Optional[IconExtractor] = None,
    ):
        cfg = config or default_settings
        timeout = cfg.tool_timeout_seconds

        if applications is None or settings_panels is None:
            scanner = DirectoryScanner()
            metadata = BundleMetadataReader(cfg.plutil_path, timeout=timeout)
            icons = icons or IconExtractor(
                metadata,
                sips_path=cfg.sips_path,
                icon_size=cfg.icon_size,
                min_icon_bytes=cfg.min_icon_bytes,
                timeout=timeout,
                temp_dir=cfg.icon_temp_dir,
                file_icon_resolver=QuickLookIconResolver(
                    cfg.qlmanage_path, timeout=timeout, temp_dir=cfg.icon_temp_dir,
                ),
            )
            if applications is None:
                applications = ApplicationDiscovery(
                    scanner, icons, cfg.application_dirs, batch_size=cfg.batch_size,
                )
            if settings_panels is None:
                settings_panels = SettingsDiscovery(
                    scanner, metadata, icons,
                    extension_dir=cfg.extension_dir,
                    preference_pane_dirs=cfg.preference_pane_dirs,
                    settings_app_paths=cfg.settings_app_paths,
                    batch_size=cfg.batch_size,
                )

        self._icons = icons
        self._applications = applications
        self._settings_panels = settings_panels
        self._cache = cache or CommandCache(cfg.cache_ttl_seconds)
        self._executor = executor or CommandExecutor(
            SystemOpener(cfg.open_path, timeout=timeout),
            settings_url_scheme=cfg.settings_url_scheme,
        )

    # ─────────────────────────────────────────────────────────────────────────
    #  Public API
    # ─────────────────────────────────────────────────────────────────────────
    async def get_available_commands(self) -> List[CommandEntry]:
        """The full catalog; rebuilt only when the cached one expired or was invalidated."""
        return await self._cache.get(self._build_catalog)

    async def get_command(self, command_id: str) -> Optional[CommandEntry]:
        commands = await self.get_available_commands()
        return next((c for c in commands if c.id == command_id), None)

    async def execute_command(self, command_id: str) -> bool:
        """Dispatch ``command_id``; False when unknown or every attempt failed."""
        command = await self.get_command(command_id)
        if command is None:
            logger.warning("[CommandRegistry] command not found: %s", command_id)
            return False

        logger.info("[CommandRegistry] executing %s (%s)", command.id, command.category.value)
        ok = await self._executor.execute(command)
        if not ok:
            logger.warning("[CommandRegistry] execution failed: %s", command_id)
        return ok

    def invalidate_cache(self) -> None:
        """Drop the catalog and every memoized icon; the next request rediscovers."""
        self._cache.invalidate()
        if self._icons is not None:
            self._icons.clear_cache()

    async def close(self) -> None:
        """Stop a catalog rebuild that is still running (application shutdown)."""
        await self._cache.close()

    def is_catalog_fresh(self) -> bool:
        return self._cache.is_fresh()

    # ─────────────────────────────────────────────────────────────────────────
    #  Catalog build
    # ─────────────────────────────────────────────────────────────────────────
    async def _build_catalog(self) -> List[CommandEntry]:
        logger.info("[CommandRegistry] discovering applications and settings …")
        apps, panels = await asyncio.gather(
            self._applications.discover(),
            self._settings_panels.discover(),
            return_exceptions=True,
        )
        if isinstance(apps, BaseException):
            logger.error("[CommandRegistry] application discovery failed: %s", apps)
            apps = []
        if isinstance(panels, BaseException):
            logger.error("[CommandRegistry] settings discovery failed: %s", panels)
            panels = []

        catalog: List[CommandEntry] = []
        ids: Set[str] = set()
        for entry in [*_sort_by_title(apps), *_sort_by_title(panels), *SYSTEM_COMMANDS]:
            if entry.id in ids:
                logger.debug("[CommandRegistry] dropping duplicate id %s (%s)", entry.id, entry.title)
                continue
            ids.add(entry.id)
            catalog.append(entry)

        logger.info("[CommandRegistry] discovered %d app(s), %d settings pane(s)",
                    len(apps), len(panels))
        if self._icons is not None:
            pruned = self._icons.prune_untouched()
            if pruned:
                logger.debug("[CommandRegistry] forgot %d icon(s) of removed bundles", pruned)
        return catalog


# ─────────────────────────────────────────────────────────────────────────────
#  Module-level singleton + bare functions
# ─────────────────────────────────────────────────────────────────────────────
_instance: Optional[CommandRegistry] = None


def get_registry() -> CommandRegistry:
    global _instance
    if _instance is None:
        _instance = CommandRegistry()
    return _instance


async def get_available_commands() -> List[CommandEntry]:
    return await get_registry().get_available_commands()


async def execute_command(command_id: str) -> bool:
    return await get_registry().execute_command(command_id)


def invalidate_cache() -> None:
    get_registry().invalidate_cache()
