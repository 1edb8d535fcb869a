"""Put src/python on sys.path and keep rule-filter state out of every test."""

from pathlib import Path
import sys

import pytest


REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_PYTHON = REPO_ROOT / "src" / "python"

if str(SRC_PYTHON) not in sys.path:
    sys.path.insert(0, str(SRC_PYTHON))


@pytest.fixture(autouse=True)
def no_rule_filter(monkeypatch):
    monkeypatch.delenv("DOCSCRUB_RULE_FILTER", raising=False)
