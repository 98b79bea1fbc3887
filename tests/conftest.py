"""Pytest configuration for zkflat test suite."""

import sys
from pathlib import Path

# Add project root to path for zkflat imports
sys.path.insert(0, str(Path(__file__).parent.parent))
