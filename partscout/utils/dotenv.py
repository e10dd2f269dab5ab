"""Minimal .env loader for PartScout.

Values already present in os.environ always win; the file only fills gaps.
"""

from __future__ import annotations

import os
from pathlib import Path


def _find_project_root(start: Path) -> Path:
    cur = start
    while True:
        if (cur / "pyproject.toml").exists():
            return cur
        if cur.parent == cur:
            return start
        cur = cur.parent


def load_dotenv_if_present(*, dotenv_path: Path | None = None) -> bool:
    """Load `.env` into os.environ.

    Rules:
    - Blank lines and `#` comments are ignored.
    - An optional leading `export ` is accepted.
    - Matching single or double quotes around the value are stripped.
    - Existing os.environ entries are never overwritten.

    Returns:
        True if a dotenv file existed and was read, else False.
    """
    if dotenv_path is None:
        dotenv_path = _find_project_root(Path(__file__).resolve()) / ".env"

    if not dotenv_path.exists():
        return False

    try:
        lines = dotenv_path.read_text(encoding="utf-8").splitlines()
    except OSError:
        return False

    for raw_line in lines:
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("export "):
            line = line[len("export ") :].lstrip()
        key, sep, value = line.partition("=")
        key = key.strip()
        if not sep or not key or key in os.environ:
            continue
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
            value = value[1:-1]
        os.environ[key] = value

    return True
