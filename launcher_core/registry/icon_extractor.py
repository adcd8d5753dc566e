"""
IconExtractor — best-effort bundle icon as a PNG data URL.

    extractor = IconExtractor(BundleMetadataReader())
    url       = await extractor.extract("/Applications/Safari.app")
    # → "data:image/png;base64,iVBORw0KGgo..." or None

Resolution chain (first hit wins)
─────────────────────────────────
  1. manifest     CFBundleIconFile / CFBundleIconName from Info.plist,
                  looked up in Contents/Resources with and without ".icns"
  2. resources    well-known names (icon.icns, AppIcon.icns, …), then any .icns
  3. file icon    the OS generic file-icon renderer (Quick Look thumbnail)

Each .icns candidate is converted to a PNG by ``sips`` into a temporary
file that is removed on every exit path.  Outputs smaller than
``min_icon_bytes`` or without a PNG signature count as failed conversions.

Found icons are cached in memory per bundle path together with the bundle
mtime, so the periodic catalog rebuild does not re-run ``sips`` for
unchanged bundles.  Misses are not cached: a bundle whose conversion failed
is tried again on the next rebuild.
"""

from __future__ import annotations

import base64
import logging
import os
import shutil
import tempfile
from typing import Awaitable, Callable, Dict, List, Optional, Protocol, Set, Tuple

from launcher_core.utils.async_utils import run_in_executor
from launcher_core.utils.process_runner import DEFAULT_TIMEOUT, run_tool

from .bundle_metadata import BundleMetadataReader, resources_dir

logger = logging.getLogger(__name__)

ICON_EXTENSION = ".icns"
PRIORITY_ICON_NAMES: Tuple[str, ...] = ("icon.icns", "AppIcon.icns", "SharedAppIcon.icns")
ICON_NAME_FIELDS: Tuple[str, ...] = ("CFBundleIconFile", "CFBundleIconName")

_PNG_SIGNATURE = b"\x89PNG"


def to_data_url(png: bytes) -> str:
    return "data:image/png;base64," + base64.b64encode(png).decode("ascii")


def _read_bytes(path: str) -> bytes:
    with open(path, "rb") as f:
        return f.read()


def _remove_quietly(path: str) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning("[IconExtractor] could not remove temp file %s: %s", path, e)


def _make_temp_png(temp_dir: Optional[str]) -> str:
    fd, path = tempfile.mkstemp(prefix="launcher-icon-", suffix=".png", dir=temp_dir)
    os.close(fd)
    return path


def _find_icon_file(resources: str, icon_name: str) -> Optional[str]:
    candidate = os.path.join(resources, icon_name)
    if not os.path.isfile(candidate) and not icon_name.endswith(ICON_EXTENSION):
        candidate = os.path.join(resources, icon_name + ICON_EXTENSION)
    return candidate if os.path.isfile(candidate) else None


def _mtime(path: str) -> Optional[int]:
    try:
        return os.stat(path).st_mtime_ns
    except OSError:
        return None


def _list_dir(path: str) -> List[str]:
    try:
        return sorted(os.listdir(path))
    except OSError:
        return []


class FileIconResolver(Protocol):
    async def resolve(self, bundle_path: str, size: int) -> Optional[bytes]: ...


class QuickLookIconResolver:
    """
    Generic file-icon lookup through ``qlmanage -t``.

    Quick Look writes ``<basename>.png`` into the output directory; the
    whole directory is temporary and is removed on every exit path.
    """

    def __init__(self, qlmanage_path: str = "/usr/bin/qlmanage",
                 timeout: float = DEFAULT_TIMEOUT, temp_dir: Optional[str] = None):
        self._qlmanage = qlmanage_path
        self._timeout = timeout
        self._temp_dir = temp_dir

    async def resolve(self, bundle_path: str, size: int) -> Optional[bytes]:
        out_dir = await run_in_executor(tempfile.mkdtemp, prefix="launcher-ql-", dir=self._temp_dir)
        try:
            result = await run_tool(
                [self._qlmanage, "-t", "-s", str(size), "-o", out_dir, bundle_path],
                timeout=self._timeout,
            )
            if result is None or not result.ok:
                return None
            produced = [f for f in await run_in_executor(_list_dir, out_dir) if f.endswith(".png")]
            if not produced:
                return None
            try:
                return await run_in_executor(_read_bytes, os.path.join(out_dir, produced[0]))
            except OSError as e:
                logger.debug("[QuickLookIconResolver] read failed for %s: %s", bundle_path, e)
                return None
        finally:
            await run_in_executor(shutil.rmtree, out_dir, ignore_errors=True)


class IconExtractor:

    def __init__(
        self,
        metadata_reader: BundleMetadataReader,
        *,
        sips_path: str = "/usr/bin/sips",
        icon_size: int = 64,
        min_icon_bytes: int = 100,
        timeout: float = DEFAULT_TIMEOUT,
        temp_dir: Optional[str] = None,
        file_icon_resolver: Optional[FileIconResolver] = None,
    ):
        self._metadata = metadata_reader
        self._sips = sips_path
        self._size = icon_size
        self._min_bytes = min_icon_bytes
        self._timeout = timeout
        self._temp_dir = temp_dir
        self._file_icons = file_icon_resolver
        # bundle path → (mtime when converted, data URL); only hits are stored
        self._cache: Dict[str, Tuple[Optional[int], str]] = {}
        self._touched: Set[str] = set()

        self._strategies: List[Tuple[str, Callable[[str], Awaitable[Optional[str]]]]] = [
            ("manifest", self._from_manifest),
            ("resources", self._from_resources),
            ("file-icon", self._from_file_icon),
        ]

    # ─────────────────────────────────────────────────────────────────────────
    #  Public
    # ─────────────────────────────────────────────────────────────────────────
    async def extract(self, bundle_path: str) -> Optional[str]:
        mtime = await run_in_executor(_mtime, bundle_path)
        self._touched.add(bundle_path)
        cached = self._cache.get(bundle_path)
        if cached is not None and cached[0] == mtime:
            return cached[1]

        icon: Optional[str] = None
        for name, strategy in self._strategies:
            try:
                icon = await strategy(bundle_path)
            except Exception as e:
                logger.debug("[IconExtractor] %s step failed for %s: %s", name, bundle_path, e)
                icon = None
            if icon:
                break

        if icon:
            self._cache[bundle_path] = (mtime, icon)
        else:
            self._cache.pop(bundle_path, None)
        return icon

    def clear_cache(self) -> None:
        """Forget memoized icons (e.g. after apps were updated in place)."""
        self._cache.clear()
        self._touched.clear()

    def prune_untouched(self) -> int:
        """Drop icons of bundles not looked up since the previous prune; returns how many."""
        stale = [path for path in self._cache if path not in self._touched]
        for path in stale:
            del self._cache[path]
        self._touched.clear()
        return len(stale)

    # ─────────────────────────────────────────────────────────────────────────
    #  Strategies
    # ─────────────────────────────────────────────────────────────────────────
    async def _from_manifest(self, bundle_path: str) -> Optional[str]:
        info = await self._metadata.read(bundle_path)
        if not info:
            return None
        icon_name = next((info[f] for f in ICON_NAME_FIELDS
                          if isinstance(info.get(f), str) and info[f]), None)
        if not icon_name:
            return None

        resources = resources_dir(bundle_path)
        candidate = await run_in_executor(_find_icon_file, resources, icon_name)
        if candidate is None:
            return None
        return await self.convert(candidate)

    async def _from_resources(self, bundle_path: str) -> Optional[str]:
        resources = resources_dir(bundle_path)
        files = await run_in_executor(_list_dir, resources)
        if not files:
            return None

        for name in PRIORITY_ICON_NAMES:
            if name in files:
                icon = await self.convert(os.path.join(resources, name))
                if icon:
                    return icon

        any_icns = next((f for f in files if f.endswith(ICON_EXTENSION)), None)
        if any_icns:
            return await self.convert(os.path.join(resources, any_icns))
        return None

    async def _from_file_icon(self, bundle_path: str) -> Optional[str]:
        if self._file_icons is None:
            return None
        png = await self._file_icons.resolve(bundle_path, self._size)
        if not png:
            return None
        return to_data_url(png)

    # ─────────────────────────────────────────────────────────────────────────
    #  Conversion
    # ─────────────────────────────────────────────────────────────────────────
    async def convert(self, icns_path: str) -> Optional[str]:
        """Rasterize ``icns_path`` to a ``icon_size`` square PNG data URL."""
        tmp_png = await run_in_executor(_make_temp_png, self._temp_dir)
        try:
            result = await run_tool(
                [self._sips, "-s", "format", "png",
                 "-z", str(self._size), str(self._size),
                 icns_path, "--out", tmp_png],
                timeout=self._timeout,
            )
            if result is None or not result.ok:
                return None
            data = await run_in_executor(_read_bytes, tmp_png)
            if len(data) < self._min_bytes or not data.startswith(_PNG_SIGNATURE):
                logger.debug("[IconExtractor] rejected %d-byte output for %s", len(data), icns_path)
                return None
            return to_data_url(data)
        except OSError as e:
            logger.debug("[IconExtractor] conversion read failed for %s: %s", icns_path, e)
            return None
        finally:
            await run_in_executor(_remove_quietly, tmp_png)

