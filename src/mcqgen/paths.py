from __future__ import annotations

from pathlib import Path


def find_repo_root(start: Path | None = None) -> Path:
    """Find the repository root by walking up to a directory containing pyproject.toml.

    Keeps config lookup predictable when invoking `mcqgen` from subdirectories.
    """

    cur = (start or Path.cwd()).resolve()
    for p in [cur, *cur.parents]:
        if (p / "pyproject.toml").exists():
            return p
    # Fallback: current directory.
    return cur


def config_path(repo_root: Path) -> Path:
    return repo_root / "mcqgen.yaml"


def dotenv_path(repo_root: Path) -> Path:
    return repo_root / ".env"
