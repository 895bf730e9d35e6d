"""Local runner for the rPPG vitals service with src/ layout.

Usage: uv run python run_app.py
"""

from __future__ import annotations

import sys
from pathlib import Path


def main() -> None:
    # Ensure src/ is on sys.path so `import rppg_vitals` resolves
    root = Path(__file__).resolve().parent
    src = root / "src"
    if src.exists():
        sys.path.insert(0, str(src))
    from rppg_vitals.service import main as service_main  # type: ignore

    service_main()


if __name__ == "__main__":
    main()
