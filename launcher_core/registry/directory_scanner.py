"""
DirectoryScanner — list bundle paths directly under a set of directories.
"""

from __future__ import annotations

import logging
import os
from typing import Iterable, List

from launcher_core.utils.async_utils import run_in_executor

logger = logging.getLogger(__name__)


def _list_children(directory: str, suffix: str) -> List[str]:
    try:
        with os.scandir(directory) as it:
            return [os.path.join(directory, e.name) for e in it if e.name.endswith(suffix)]
    except FileNotFoundError:
        return []
    except (PermissionError, NotADirectoryError) as e:
        logger.debug("[DirectoryScanner] skipping %s: %s", directory, e)
        return []
    except OSError as e:
        logger.debug("[DirectoryScanner] scan %s: %s", directory, e)
        return []


class DirectoryScanner:
    """
    Returns immediate children of each directory whose name ends with the
    bundle suffix (``.app``, ``.appex``, ``.prefPane``).

    Output follows the directory order given, then whatever order the
    filesystem enumerates in.  Missing or unreadable directories are skipped.
    """

    async def scan(self, directories: Iterable[str], suffix: str) -> List[str]:
        found: List[str] = []
        for directory in directories:
            if not directory:
                continue
            found.extend(await run_in_executor(_list_children, directory, suffix))
        return found
