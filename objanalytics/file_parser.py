"""Splitting of delimited text."""

from __future__ import annotations


def split(s: str, delim: str = ",", skip_empty: bool = False) -> list[str]:
    """Split ``s`` on ``delim`` the way line-oriented reading does.

    A trailing delimiter does not produce a final empty item, and an empty
    string yields no items. With ``skip_empty`` empty items are dropped.
    """
    if not s:
        return []
    parts = s.split(delim)
    if parts[-1] == "":
        parts.pop()
    if skip_empty:
        return [part for part in parts if part]
    return parts