"""
Name normalizer — machine identifiers → display titles.

    clean_pane_name("DateAndTime")              → "Date & Time"
    clean_pane_name("DesktopScreenEffectsPref") → "Desktop & Screen Saver"
    clean_pane_name("HTMLParserSettings")       → "HTML Parser"

The rules run in table order:

    1. SUFFIXES      first match in table order is stripped, repeated
                     until no suffix matches
    2. WORD_RULES    regex substitutions (word splitting, "And" → "&")
    3. EXCEPTIONS    exact full-string replacements

Pure: no I/O, no state.
"""

from __future__ import annotations

import re
from typing import Dict, Pattern, Tuple

# Specific suffixes precede the generic ones they end with.
SUFFIXES: Tuple[str, ...] = (
    ".prefPane",
    "Pref",
    "SettingsExtension",
    "IntentsExtension",
    "Settings",
    "Extension",
    "Intents",
)

WORD_RULES: Tuple[Tuple[Pattern[str], str], ...] = (
    # "DateTime" → "Date Time"
    (re.compile(r"([a-z])([A-Z])"), r"\1 \2"),
    # "HTMLParser" → "HTML Parser"
    (re.compile(r"([A-Z]+)([A-Z][a-z])"), r"\1 \2"),
    (re.compile(r"\bAnd\b"), "&"),
)

EXCEPTIONS: Dict[str, str] = {
    "Print & Fax": "Printers & Fax",
    "Print & Scan": "Printers & Scanners",
    "Expose": "Mission Control",
    "Universal Access": "Accessibility",
    "Localization": "Language & Region",
    "Speech": "Siri & Dictation",
    "Discs": "Discs Handling",
    "Apple ID Pref Pane": "Apple ID",
    "Family Sharing Pref Pane": "Family Sharing",
    "Class Kit Preference Pane": "Classroom",
    "Desktop Screen Effects": "Desktop & Screen Saver",
    "Desktop & Screen Effects": "Desktop & Screen Saver",
    "Touch ID": "Touch ID & Password",
    "Digi Hub": "CDs & DVDs",
}


def strip_suffixes(raw: str) -> str:
    """Remove trailing suffix tokens until none is left ("X Settings Extension" → "X")."""
    s = raw.strip()
    stripped = True
    while stripped and s:
        stripped = False
        for suffix in SUFFIXES:
            if s.endswith(suffix):
                s = s[: -len(suffix)].rstrip()
                stripped = True
                break
    return s


def clean_pane_name(raw: str) -> str:
    """Turn a bundle or pane identifier into a human-readable title."""
    s = strip_suffixes(raw)
    for pattern, replacement in WORD_RULES:
        s = pattern.sub(replacement, s)
    s = " ".join(s.split())
    return EXCEPTIONS.get(s, s)


def has_suffix_token(name: str) -> bool:
    """True when ``name`` still carries a code-style token worth cleaning."""
    return "Extension" in name or "Settings" in name
