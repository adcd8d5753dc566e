"""
SettingsDiscovery — System Settings panels from two sources.

  Source A  ExtensionKit ``.appex`` bundles (macOS Ventura+).  Their
            Info.plist carries a display name, a bundle identifier that
            the settings URL scheme accepts, and a per-panel icon.
  Source B  Legacy ``.prefPane`` bundles.  Only the file name is used;
            this source exists for completeness on older systems and for
            third-party panes.

Both sources share one Deduplicator and Source A runs first, so a panel
present in both keeps the extension-style entry.  Panels without an icon
of their own fall back to the System Settings app icon.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, FrozenSet, List, Optional, Sequence, Tuple

from launcher_core.schemas import CommandCategory, CommandEntry, make_command_id
from launcher_core.utils.async_utils import run_in_batches, run_in_executor

from .bundle_metadata import BundleMetadataReader
from .deduplicator import Deduplicator, normalize_key
from .directory_scanner import DirectoryScanner
from .icon_extractor import IconExtractor
from .name_normalizer import clean_pane_name, has_suffix_token

logger = logging.getLogger(__name__)

EXTENSION_SUFFIX = ".appex"
PREF_PANE_SUFFIX = ".prefPane"

SETTINGS_KEYWORDS: Tuple[str, ...] = ("system settings", "preferences")

# Lowercase substrings that mark a settings-role extension by file or display name
SETTINGS_NAME_HINTS: Tuple[str, ...] = ("settings", "preference", "pref")

# Settings extensions whose file names don't say so
KNOWN_SETTINGS_EXTENSIONS: FrozenSet[str] = frozenset({
    "Bluetooth.appex",
    "Appearance.appex",
    "PowerPreferences.appex",
    "Network.appex",
    "Screen Saver.appex",
    "Wallpaper.appex",
    "StartupDisk.appex",
    "Computer Name.appex",
    "CDs & DVDs Settings Extension.appex",
    "FamilySettings.appex",
    "ClassKitSettings.appex",
    "ClassroomSettings.appex",
    "CoverageSettings.appex",
    "DesktopSettings.appex",
})

_HELPER_NAME_MARKERS: Tuple[str, ...] = ("Intents", "Widget")
_HELPER_NAME_ENDINGS: Tuple[str, ...] = ("DeviceExpert",)
_HELPER_ID_MARKERS: Tuple[str, ...] = ("intents", "widget")

MIN_TITLE_LENGTH = 2


def _mentions_settings(name: str) -> bool:
    lowered = name.lower()
    return any(hint in lowered for hint in SETTINGS_NAME_HINTS)


def is_named_settings_extension(file_name: str) -> bool:
    return file_name in KNOWN_SETTINGS_EXTENSIONS or _mentions_settings(file_name)


def is_helper_extension(display_name: str, bundle_id: str) -> bool:
    """Intent handlers, widgets and device experts are not user-facing panels."""
    return (
        any(m in display_name for m in _HELPER_NAME_MARKERS)
        or display_name.endswith(_HELPER_NAME_ENDINGS)
        or any(m in bundle_id for m in _HELPER_ID_MARKERS)
    )


def _string_field(info: Dict[str, Any], *keys: str) -> str:
    for key in keys:
        value = info.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return ""


def _strip_suffix(file_name: str, suffix: str) -> str:
    return file_name[: -len(suffix)] if file_name.endswith(suffix) else file_name


class SettingsDiscovery:

    def __init__(
        self,
        scanner: DirectoryScanner,
        metadata: BundleMetadataReader,
        icons: IconExtractor,
        extension_dir: str,
        preference_pane_dirs: Sequence[str],
        settings_app_paths: Sequence[str],
        batch_size: int = 15,
    ):
        self._scanner = scanner
        self._metadata = metadata
        self._icons = icons
        self._extension_dir = extension_dir
        self._pane_dirs = list(preference_pane_dirs)
        self._settings_app_paths = list(settings_app_paths)
        self._batch_size = batch_size

    async def discover(self) -> List[CommandEntry]:
        shared_icon = await self._settings_app_icon()
        seen = Deduplicator()

        extensions = await self._discover_extensions(seen, shared_icon)
        panes = await self._discover_pref_panes(seen, shared_icon)

        logger.info("[SettingsDiscovery] %d extension panel(s), %d legacy pane(s)",
                    len(extensions), len(panes))
        return extensions + panes

    # ─────────────────────────────────────────────────────────────────────────
    #  Shared fallback icon
    # ─────────────────────────────────────────────────────────────────────────
    async def _settings_app_icon(self) -> Optional[str]:
        for path in self._settings_app_paths:
            if await run_in_executor(os.path.exists, path):
                return await self._icons.extract(path)
        return None

    # ─────────────────────────────────────────────────────────────────────────
    #  Source A: ExtensionKit .appex
    # ─────────────────────────────────────────────────────────────────────────
    async def _discover_extensions(self, seen: Deduplicator,
                                   shared_icon: Optional[str]) -> List[CommandEntry]:
        paths = await self._scanner.scan([self._extension_dir], EXTENSION_SUFFIX)

        # Extensions identified by file name go first; the rest can still
        # qualify through their display name.
        named = [p for p in paths if is_named_settings_extension(os.path.basename(p))]
        named_set = set(named)
        ordered = named + [p for p in paths if p not in named_set]

        async def _read(ext_path: str) -> Optional[Tuple[str, Dict[str, Any]]]:
            info = await self._metadata.read(ext_path)
            return (ext_path, info) if info else None

        manifests = await run_in_batches(ordered, _read, self._batch_size,
                                         label="SettingsDiscovery")

        # Claim in enumeration order, not in manifest-read completion order.
        accepted: List[Tuple[str, str, str]] = []
        for ext_path, info in manifests:
            panel = self._panel_from_manifest(ext_path, info, ext_path in named_set)
            if panel and seen.claim(panel[0]):
                accepted.append((ext_path, panel[0], panel[1]))

        async def _build(item: Tuple[str, str, str]) -> CommandEntry:
            ext_path, display_name, target = item
            icon = await self._icons.extract(ext_path) or shared_icon
            return self._make_entry(display_name, target, icon)

        return await run_in_batches(accepted, _build, self._batch_size,
                                    label="SettingsDiscovery")

    @staticmethod
    def _panel_from_manifest(ext_path: str, info: Dict[str, Any],
                             name_identified: bool) -> Optional[Tuple[str, str]]:
        """(display name, target) for a user-facing settings panel, else None."""
        display_name = _string_field(info, "CFBundleDisplayName", "CFBundleName")
        bundle_id = _string_field(info, "CFBundleIdentifier")
        if not display_name or is_helper_extension(display_name, bundle_id):
            return None
        if not name_identified and not _mentions_settings(display_name):
            return None

        if has_suffix_token(display_name):
            display_name = clean_pane_name(display_name)
        if len(display_name) < MIN_TITLE_LENGTH:
            return None

        target = bundle_id or _strip_suffix(os.path.basename(ext_path), EXTENSION_SUFFIX)
        return display_name, target

    # ─────────────────────────────────────────────────────────────────────────
    #  Source B: legacy .prefPane
    # ─────────────────────────────────────────────────────────────────────────
    async def _discover_pref_panes(self, seen: Deduplicator,
                                   shared_icon: Optional[str]) -> List[CommandEntry]:
        paths = await self._scanner.scan(self._pane_dirs, PREF_PANE_SUFFIX)

        async def _process(pane_path: str) -> Optional[CommandEntry]:
            raw_name = _strip_suffix(os.path.basename(pane_path), PREF_PANE_SUFFIX)
            display_name = clean_pane_name(raw_name)
            if len(display_name) < MIN_TITLE_LENGTH or not seen.claim(display_name):
                return None
            return self._make_entry(
                display_name,
                raw_name,
                await self._icons.extract(pane_path) or shared_icon,
            )

        return await run_in_batches(paths, _process, self._batch_size,
                                    label="SettingsDiscovery")

    @staticmethod
    def _make_entry(title: str, target: str, icon: Optional[str]) -> CommandEntry:
        key = normalize_key(title)
        return CommandEntry(
            id=make_command_id(CommandCategory.SETTINGS_PANEL, key),
            title=title,
            keywords=[*SETTINGS_KEYWORDS, key],
            icon=icon,
            category=CommandCategory.SETTINGS_PANEL,
            target=target,
        )
