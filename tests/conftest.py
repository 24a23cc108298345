from __future__ import annotations

import sys
from pathlib import Path


def pytest_configure() -> None:
    # Ensure `import mcqgen` / `import mcqgen_api` work when running tests without installing the package.
    repo_root = Path(__file__).resolve().parents[1]
    for src_dir in (repo_root / "src", repo_root / "apps" / "mcq_api"):
        if src_dir.exists() and str(src_dir) not in sys.path:
            sys.path.insert(0, str(src_dir))
