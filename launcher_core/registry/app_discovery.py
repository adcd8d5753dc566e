"""
ApplicationDiscovery — installed ``.app`` bundles → application commands.
"""

from __future__ import annotations

import logging
import os
from typing import List, Optional, Sequence

from launcher_core.schemas import CommandCategory, CommandEntry, make_command_id
from launcher_core.utils.async_utils import run_in_batches

from .deduplicator import Deduplicator, normalize_key
from .directory_scanner import DirectoryScanner
from .icon_extractor import IconExtractor

logger = logging.getLogger(__name__)

APP_SUFFIX = ".app"


class ApplicationDiscovery:

    def __init__(
        self,
        scanner: DirectoryScanner,
        icons: IconExtractor,
        application_dirs: Sequence[str],
        batch_size: int = 15,
    ):
        self._scanner = scanner
        self._icons = icons
        self._dirs = list(application_dirs)
        self._batch_size = batch_size

    async def discover(self) -> List[CommandEntry]:
        """Scan every application directory; earlier directories win on name clashes."""
        paths = await self._scanner.scan(self._dirs, APP_SUFFIX)
        seen = Deduplicator()

        async def _process(app_path: str) -> Optional[CommandEntry]:
            name = os.path.basename(app_path)[: -len(APP_SUFFIX)]
            if not name.strip() or not seen.claim(name):
                return None

            key = normalize_key(name)
            return CommandEntry(
                id=make_command_id(CommandCategory.APPLICATION, key),
                title=name,
                keywords=[key],
                icon=await self._icons.extract(app_path),
                category=CommandCategory.APPLICATION,
                target=app_path,
            )

        results = await run_in_batches(paths, _process, self._batch_size, label="ApplicationDiscovery")
        logger.info("[ApplicationDiscovery] %d bundle(s) → %d app(s)", len(paths), len(results))
        return results
