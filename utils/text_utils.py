"""
Text utilities for fabric, machine and client names.

Names come from operators typing into spreadsheets (mixed Arabic and
Latin, stray spaces, inconsistent case), so every comparison in the
scheduling core goes through normalize_name().
"""

import re
from typing import Optional


# Descriptive words stripped when deriving a fabric's short name
FABRIC_NAME_KEYWORDS = ("جاكار ", "خام", "ليكرا ", "بدون ")

_WHITESPACE = re.compile(r"\s+")
_FABRIC_CODE = re.compile(r"^\[(.*?)\]")
_EMPTY_PARENS = re.compile(r"\(\s*\)")


def normalize_name(name: Optional[str]) -> str:
    """
    Normalize a name for comparison.

    - "  Single Jersey  " → "single jersey"
    - "34   A" → "34 a"
    - None → ""

    Args:
        name: Raw name (may be None)

    Returns:
        Trimmed, whitespace-collapsed, lower-case string
    """
    if not name:
        return ""
    return _WHITESPACE.sub(" ", str(name)).strip().lower()


def same_name(a: Optional[str], b: Optional[str]) -> bool:
    """True if both names are non-empty and equal after normalization."""
    left = normalize_name(a)
    return bool(left) and left == normalize_name(b)


def parse_fabric_name(full_name: Optional[str]) -> tuple[str, str]:
    """
    Split a catalog fabric name into (code, short_name).

    "[SJ-12] جاكار ليكرا سيمنت" → ("SJ-12", "سيمنت")

    Args:
        full_name: Fabric name as stored in the catalog

    Returns:
        Tuple of (code, short_name); both empty for empty input
    """
    if not full_name:
        return "", ""

    code = ""
    short_name = full_name

    code_match = _FABRIC_CODE.match(full_name)
    if code_match:
        code = code_match.group(1)
        short_name = full_name[code_match.end():].strip()

    for keyword in FABRIC_NAME_KEYWORDS:
        short_name = short_name.replace(keyword, "").strip()

    short_name = _EMPTY_PARENS.sub("", short_name).strip()
    short_name = _WHITESPACE.sub(" ", short_name).strip()

    return code, short_name


def build_order_reference(client: Optional[str], fabric: Optional[str]) -> str:
    """
    Generate a traceable order reference from client and fabric.

    Format is CLIENT-INITIALS, e.g. ("OR", "Single Jersey Cotton") → "OR-SJC".
    Returns "" unless both parts are present.
    """
    client = (client or "").strip()
    fabric = (fabric or "").strip()
    if not client or not fabric:
        return ""

    initials = "".join(word[0] for word in re.split(r"[\s-]+", fabric) if word)
    return f"{client}-{initials}"
