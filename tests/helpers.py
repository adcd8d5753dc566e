"""Fixtures shared by the registry tests: fake bundles and stand-in tools."""

import json
import os
import stat
from typing import Any, Dict, List, Optional

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 256

# plutil -convert json -o - <plist>   (test manifests are already JSON)
FAKE_PLUTIL = '#!/bin/sh\ncat "$5"\n'

# sips -s format png -z N N <src> --out <dst>
FAKE_SIPS = '#!/bin/sh\ncp "$7" "$9"\n'

FAILING_TOOL = "#!/bin/sh\nexit 1\n"

SLOW_TOOL = "#!/bin/sh\nexec sleep 5\n"


def write_script(directory: str, name: str, body: str) -> str:
    path = os.path.join(directory, name)
    with open(path, "w", encoding="utf-8") as f:
        f.write(body)
    os.chmod(path, os.stat(path).st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


def make_bundle(
    parent: str,
    file_name: str,
    info: Optional[Dict[str, Any]] = None,
    raw_manifest: Optional[str] = None,
    resources: Optional[Dict[str, bytes]] = None,
) -> str:
    """Create ``parent/file_name`` with an optional Info.plist and Resources files."""
    bundle = os.path.join(parent, file_name)
    contents = os.path.join(bundle, "Contents")
    os.makedirs(os.path.join(contents, "Resources"), exist_ok=True)
    if info is not None or raw_manifest is not None:
        with open(os.path.join(contents, "Info.plist"), "w", encoding="utf-8") as f:
            f.write(raw_manifest if raw_manifest is not None else json.dumps(info))
    for name, data in (resources or {}).items():
        with open(os.path.join(contents, "Resources", name), "wb") as f:
            f.write(data)
    return bundle


class FakeIcons:
    """IconExtractor stand-in: returns a fixed icon per bundle path."""

    def __init__(self, icons: Optional[Dict[str, str]] = None, default: Optional[str] = None):
        self.icons = icons or {}
        self.default = default
        self.calls: List[str] = []

    async def extract(self, bundle_path: str) -> Optional[str]:
        self.calls.append(bundle_path)
        return self.icons.get(bundle_path, self.default)


class FakeOpener:
    """SystemOpener stand-in recording every attempt."""

    def __init__(self, succeed_on: Optional[List[str]] = None):
        self.succeed_on = set(succeed_on or [])
        self.attempts: List[str] = []

    async def open(self, target: str) -> bool:
        self.attempts.append(target)
        return target in self.succeed_on

    async def open_application(self, name: str) -> bool:
        label = f"app:{name}"
        self.attempts.append(label)
        return label in self.succeed_on
