"""Pytest bootstrap so ``import lazysync`` resolves to this checkout.

Test modules live in ``tests/unit/<area>/`` without package markers; the
repository root is put first on ``sys.path`` so an installed copy never
shadows the working tree.
"""

from __future__ import annotations

import sys
from pathlib import Path

REPO_ROOT = str(Path(__file__).resolve().parents[1])

if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)
