"""`.env` loading for local runs and scripts.

`KANRI_ENV_FILE` names one explicit file; without it the repo root `.env`
and then `backend/.env` are read. Variables already present in the process
environment win unless `override=True`.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterator, Optional


ENV_FILE_ENV = "KANRI_ENV_FILE"

# backend/kanri/core/env.py -> repo root
_REPO_ROOT = Path(__file__).resolve().parents[3]


def parse_env_text(text: str) -> Iterator[tuple[str, str]]:
    """Yield `KEY=value` pairs; comments, blanks and junk lines are skipped."""
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        line = line.removeprefix("export ").lstrip()
        key, sep, value = line.partition("=")
        key, value = key.strip(), value.strip()
        if not sep or not key:
            continue
        if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
            value = value[1:-1]
        yield key, value


def env_file_candidates(explicit: Optional[str] = None) -> list[Path]:
    explicit = explicit if explicit is not None else os.environ.get(ENV_FILE_ENV)
    if explicit:
        return [Path(explicit)]
    return [_REPO_ROOT / ".env", _REPO_ROOT / "backend" / ".env"]


def load_env_if_present(*, override: bool = False) -> list[Path]:
    """Load `.env` files into `os.environ`; returns the files actually read."""
    loaded: list[Path] = []
    for path in env_file_candidates():
        try:
            text = path.read_text(encoding="utf-8")
        except (FileNotFoundError, IsADirectoryError):
            continue
        loaded.append(path)
        for key, value in parse_env_text(text):
            if override or key not in os.environ:
                os.environ[key] = value
    return loaded
