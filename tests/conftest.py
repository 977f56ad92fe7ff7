"""
Pytest configuration for the gadget tests.

Shared circuits used across test modules live in tests/circuits.py.
"""

import sys
from pathlib import Path

# tests/ is inside the project root, so parent is the root
root_dir = Path(__file__).parent.parent
if str(root_dir) not in sys.path:
    sys.path.insert(0, str(root_dir))
