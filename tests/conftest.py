"""
Pytest configuration for fem-displacement tests.

Automatically adds src/ to sys.path so tests can import fem_displacement
without PYTHONPATH or an editable install.
"""

import sys
import os

repo_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
src_path = os.path.join(repo_root, 'src')

if src_path not in sys.path:
    sys.path.insert(0, src_path)
