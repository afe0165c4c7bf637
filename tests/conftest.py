import os
import sys
from pathlib import Path

import pytest

os.environ.setdefault("MYSQL_FAKE", "1")

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


@pytest.fixture
def anyio_backend():
    return "asyncio"
