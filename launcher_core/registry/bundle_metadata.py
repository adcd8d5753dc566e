"""
BundleMetadataReader — Info.plist → dict via ``plutil``.

    reader = BundleMetadataReader()
    info   = await reader.read("/Applications/Safari.app")
    # → {"CFBundleIdentifier": "com.apple.Safari", "CFBundleName": "Safari", ...}
    #   or None

Metadata is always optional: a missing manifest, a missing ``plutil``, a
non-zero exit or unparsable output all return ``None``.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, Optional

from launcher_core.utils.async_utils import run_in_executor
from launcher_core.utils.process_runner import DEFAULT_TIMEOUT, run_tool

logger = logging.getLogger(__name__)

MANIFEST_RELPATH = os.path.join("Contents", "Info.plist")
RESOURCES_RELPATH = os.path.join("Contents", "Resources")


def manifest_path(bundle_path: str) -> str:
    return os.path.join(bundle_path, MANIFEST_RELPATH)


def resources_dir(bundle_path: str) -> str:
    return os.path.join(bundle_path, RESOURCES_RELPATH)


class BundleMetadataReader:

    def __init__(self, plutil_path: str = "/usr/bin/plutil", timeout: float = DEFAULT_TIMEOUT):
        self._plutil = plutil_path
        self._timeout = timeout

    async def read(self, bundle_path: str) -> Optional[Dict[str, Any]]:
        plist = manifest_path(bundle_path)
        if not await run_in_executor(os.path.isfile, plist):
            return None

        result = await run_tool(
            [self._plutil, "-convert", "json", "-o", "-", plist],
            timeout=self._timeout,
        )
        if result is None or not result.ok:
            logger.debug("[BundleMetadataReader] conversion failed for %s", plist)
            return None

        try:
            info = json.loads(result.stdout.decode("utf-8", errors="replace"))
        except ValueError as e:
            logger.debug("[BundleMetadataReader] bad JSON for %s: %s", plist, e)
            return None

        return info if isinstance(info, dict) else None
