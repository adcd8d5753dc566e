"""
CommandExecutor — hands a catalog entry back to macOS.

    application     open <bundle path>
    settings-panel  ordered URL-scheme attempts, then the Settings app itself
    system          built-in action registered under the command id
    extension       open <target> when the extension supplied one

``execute`` never raises: every failure ends up as ``False`` and a log line.
"""

from __future__ import annotations

import asyncio
import logging
import os
import re
import signal
from typing import Awaitable, Callable, Dict, List, Optional, Tuple

from launcher_core.schemas import CommandCategory, CommandEntry
from launcher_core.utils.process_runner import DEFAULT_TIMEOUT, run_tool

logger = logging.getLogger(__name__)

QUIT_COMMAND_ID = "system-quit-launcher"

MODERN_SETTINGS_NAMESPACE = "com.apple.settings."
LEGACY_PANE_NAMESPACE = "com.apple.preference."
SETTINGS_APP_NAMES: Tuple[str, ...] = ("System Settings", "System Preferences")

_REVERSE_DNS = re.compile(r"^[A-Za-z0-9-]+(\.[A-Za-z0-9_-]+){2,}$")

SystemAction = Callable[[], object]


def looks_like_reverse_dns(identifier: str) -> bool:
    """``com.apple.Bluetooth-Settings.extension`` → True, ``Bluetooth`` → False."""
    return bool(_REVERSE_DNS.match(identifier))


class SystemOpener:
    """The OS default-open mechanism (``/usr/bin/open``)."""

    def __init__(self, open_path: str = "/usr/bin/open", timeout: float = DEFAULT_TIMEOUT):
        self._open = open_path
        self._timeout = timeout

    async def open(self, target: str) -> bool:
        return await self._run([self._open, target])

    async def open_application(self, name: str) -> bool:
        return await self._run([self._open, "-a", name])

    async def _run(self, argv: List[str]) -> bool:
        result = await run_tool(argv, timeout=self._timeout)
        if result is None:
            return False
        if not result.ok:
            logger.debug("[SystemOpener] %s exited %d: %s", argv, result.returncode,
                         result.stderr.decode("utf-8", errors="replace").strip())
        return result.ok


def terminate_host_process() -> bool:
    """Ask the hosting process to shut down once the current request is answered."""
    loop = asyncio.get_running_loop()
    loop.call_later(0.2, os.kill, os.getpid(), signal.SIGTERM)
    logger.info("[CommandExecutor] quit requested, terminating launcher")
    return True


class CommandExecutor:

    def __init__(
        self,
        opener: Optional[SystemOpener] = None,
        settings_url_scheme: str = "x-apple.systempreferences:",
        system_actions: Optional[Dict[str, SystemAction]] = None,
    ):
        self._opener = opener or SystemOpener()
        self._scheme = settings_url_scheme
        self._system_actions: Dict[str, SystemAction] = (
            dict(system_actions) if system_actions is not None
            else {QUIT_COMMAND_ID: terminate_host_process}
        )

    async def execute(self, entry: CommandEntry) -> bool:
        try:
            if entry.category == CommandCategory.SYSTEM:
                return await self._run_system_action(entry)
            if entry.category == CommandCategory.SETTINGS_PANEL:
                return await self.open_settings_pane(entry.target or "")
            if entry.target:
                ok = await self._opener.open(entry.target)
                if not ok:
                    logger.error("[CommandExecutor] could not open %s (%s)", entry.id, entry.target)
                return ok
            logger.error("[CommandExecutor] %s has no target to open", entry.id)
            return False
        except Exception as e:
            logger.error("[CommandExecutor] failed to execute %s: %s", entry.id, e, exc_info=True)
            return False

    def settings_pane_attempts(self, identifier: str) -> List[Tuple[str, Callable[[], Awaitable[bool]]]]:
        """The ordered fallback chain for one settings identifier."""
        attempts: List[Tuple[str, Callable[[], Awaitable[bool]]]] = []

        def _url(url: str) -> Tuple[str, Callable[[], Awaitable[bool]]]:
            return url, lambda: self._opener.open(url)

        def _app(name: str) -> Tuple[str, Callable[[], Awaitable[bool]]]:
            return f"app:{name}", lambda: self._opener.open_application(name)

        if identifier:
            if looks_like_reverse_dns(identifier):
                attempts.append(_url(f"{self._scheme}{identifier}"))
            attempts.append(_url(f"{self._scheme}{MODERN_SETTINGS_NAMESPACE}{identifier}"))
            attempts.append(_url(f"{self._scheme}{LEGACY_PANE_NAMESPACE}{identifier.lower()}"))
        attempts.extend(_app(name) for name in SETTINGS_APP_NAMES)
        return attempts

    async def open_settings_pane(self, identifier: str) -> bool:
        for label, attempt in self.settings_pane_attempts(identifier):
            try:
                if await attempt():
                    logger.debug("[CommandExecutor] opened settings via %s", label)
                    return True
            except Exception as e:
                logger.debug("[CommandExecutor] %s failed: %s", label, e)
        logger.error("[CommandExecutor] could not open settings pane '%s': all fallbacks failed",
                     identifier)
        return False

    async def _run_system_action(self, entry: CommandEntry) -> bool:
        action = self._system_actions.get(entry.id)
        if action is None:
            logger.error("[CommandExecutor] no built-in action for %s", entry.id)
            return False
        result = action()
        if asyncio.iscoroutine(result):
            result = await result
        return result is not False
