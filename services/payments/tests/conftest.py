import os
import sys
import tempfile
from pathlib import Path

import pytest

SERVICE_DIR = Path(__file__).resolve().parents[1]
if str(SERVICE_DIR) not in sys.path:
    sys.path.insert(0, str(SERVICE_DIR))

# repo.py builds its engine at import time.
os.environ["DATABASE_URL"] = "sqlite:///" + os.path.join(tempfile.mkdtemp(), "payments.sqlite3")


@pytest.fixture
def provider():
    from fastapi.testclient import TestClient
    from main import app

    with TestClient(app) as c:
        yield c
