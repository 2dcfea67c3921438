import os
import sys

import pytest


# Ensure the repository's src/ is on sys.path for `from chesscore...` imports
REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
SRC_PATH = os.path.join(REPO_ROOT, "src")
if SRC_PATH not in sys.path:
    sys.path.insert(0, SRC_PATH)


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    # Keep a developer's CHESSCORE_* environment out of the tests
    for key in list(os.environ):
        if key.startswith("CHESSCORE_"):
            monkeypatch.delenv(key, raising=False)
