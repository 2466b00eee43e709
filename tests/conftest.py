import sys
from pathlib import Path

import pytest

# Allow `import marktree` without installing the package.
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

FIXTURES = ROOT / "tests" / "fixtures"


@pytest.fixture
def sample_bookmarks_bytes() -> bytes:
    return (FIXTURES / "sample_bookmarks.html").read_bytes()
