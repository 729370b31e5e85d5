"""Pytest configuration for the c2 test suite."""

import sys
from pathlib import Path

# Add backend directory to path so `import c2` / `import app` work uninstalled
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))
