"""
Bounded external-tool invocation.

Every helper binary the registry shells out to (``plutil``, ``sips``,
``qlmanage``, ``open``) goes through :func:`run_tool`.  A missing binary,
an OS error or a timeout all come back as ``None``; a finished process
comes back as a :class:`ToolResult` whatever its exit code.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, Sequence

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


@dataclass(frozen=True)
class ToolResult:
    returncode: int
    stdout: bytes
    stderr: bytes

    @property
    def ok(self) -> bool:
        return self.returncode == 0


async def run_tool(argv: Sequence[str], timeout: float = DEFAULT_TIMEOUT) -> Optional[ToolResult]:
    """Run ``argv`` without a shell and collect its output, killing it after ``timeout`` seconds."""
    try:
        proc = await asyncio.create_subprocess_exec(
            *argv,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except (FileNotFoundError, PermissionError) as e:
        logger.debug("[run_tool] %s unavailable: %s", argv[0], e)
        return None
    except OSError as e:
        logger.debug("[run_tool] could not start %s: %s", argv[0], e)
        return None

    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning("[run_tool] %s timed out after %.1fs", argv[0], timeout)
        return None
    finally:
        # timed out or cancelled: never leave the child running
        if proc.returncode is None:
            try:
                proc.kill()
            except ProcessLookupError:
                pass
            await proc.wait()

    return ToolResult(returncode=proc.returncode or 0, stdout=stdout or b"", stderr=stderr or b"")
