import os
import tempfile

# Configuration is read at import time, so point it somewhere harmless first
os.environ["VIBE_WORKSPACE"] = tempfile.mkdtemp(prefix="vibe-workspace-")
os.environ["VIBE_EXPLAIN_DEBOUNCE"] = "0.05"
os.environ["GEMINI_API_KEY"] = ""

import pytest

from tests.fakes import FakeProvider


@pytest.fixture
def provider():
    return FakeProvider()
