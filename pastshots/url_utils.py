"""Shared page utilities — discover served pages and derive names and URLs."""

from __future__ import annotations

import glob
from pathlib import Path, PurePosixPath
from urllib.parse import quote

_WILDCARDS = "*?["


def discover_pages(pattern: str) -> list[str]:
    """Return the files matching a glob pattern, sorted, as posix paths."""
    matches = glob.glob(pattern, recursive=True)
    return sorted(Path(m).as_posix() for m in matches if Path(m).is_file())


def serving_root(pattern: str) -> str:
    """Directory prefix of ``pattern`` before its first wildcard."""
    cut = min((pattern.find(c) for c in _WILDCARDS if c in pattern), default=len(pattern))
    prefix = pattern[:cut]
    if "/" not in prefix:
        return ""
    return prefix[: prefix.rfind("/")]


def page_name(page: str) -> str:
    """Page file name with its extension stripped."""
    return PurePosixPath(page).stem


def relative_dir(page: str, root: str = "") -> str:
    """Directory of ``page`` relative to ``root`` ("" when directly under it)."""
    parent = PurePosixPath(page).parent
    if root:
        try:
            parent = parent.relative_to(PurePosixPath(root))
        except ValueError:
            pass
    rel = parent.as_posix()
    return "" if rel == "." else rel


def page_url(host: str, page: str) -> str:
    """Join a served page path onto the server host."""
    if not host.endswith("/"):
        host += "/"
    return host + quote(PurePosixPath(page).as_posix().lstrip("/"))
