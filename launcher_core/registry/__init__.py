"""
registry — macOS application & System Settings command catalog.

Quick start
───────────
    from launcher_core.registry import CommandRegistry

    registry = CommandRegistry()
    commands = await registry.get_available_commands()
    await registry.execute_command(commands[0].id)

Or use module-level functions:
    from launcher_core.registry import get_available_commands, execute_command, invalidate_cache
"""

from .command_registry import (
    SYSTEM_COMMANDS,
    CommandRegistry,
    execute_command,
    get_available_commands,
    get_registry,
    invalidate_cache,
)
from .app_discovery import ApplicationDiscovery
from .bundle_metadata import BundleMetadataReader
from .command_cache import CommandCache
from .command_executor import CommandExecutor, SystemOpener
from .deduplicator import Deduplicator
from .directory_scanner import DirectoryScanner
from .icon_extractor import IconExtractor, QuickLookIconResolver
from .name_normalizer import clean_pane_name
from .settings_discovery import SettingsDiscovery

__all__ = [
    "CommandRegistry",
    "get_registry",
    "get_available_commands",
    "execute_command",
    "invalidate_cache",
    "SYSTEM_COMMANDS",
    "ApplicationDiscovery",
    "BundleMetadataReader",
    "CommandCache",
    "CommandExecutor",
    "SystemOpener",
    "Deduplicator",
    "DirectoryScanner",
    "IconExtractor",
    "QuickLookIconResolver",
    "clean_pane_name",
    "SettingsDiscovery",
]
