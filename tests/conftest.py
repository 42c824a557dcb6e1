import sys
from pathlib import Path

import pytest

# Keep the repository free of Python bytecode and __pycache__ artifacts during tests.
sys.dont_write_bytecode = True

TESTS_ROOT = Path(__file__).resolve().parent
REPO_ROOT = TESTS_ROOT.parent
SRC_ROOT = REPO_ROOT / "src"

# Make src/ importable as 'typedfsm' and tests/ as 'helpers'
for p in (SRC_ROOT, TESTS_ROOT):
    if str(p) not in sys.path:
        sys.path.insert(0, str(p))


from typedfsm.core.state.handlers import registry as default_handler_registry


@pytest.fixture(autouse=True)
def _reset_default_handler_registry():
    """Isolate tests that register handlers in the global registry."""
    default_handler_registry.reset()
    yield
    default_handler_registry.reset()
