import asyncio
import os
import sys
from pathlib import Path
from typing import List, Optional

import pytest

# Ensure repo root on sys.path for imports from anywhere in tests tree.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# The module-level app in governance_app.main is built at import time.
os.environ.setdefault("LLM_API_KEY", "test-key")


class FakeModel:
    """Stands in for the model service: records prompts, replays fragments."""

    def __init__(self, fragments: Optional[List[str]] = None, error: Optional[Exception] = None,
                 open_error: Optional[Exception] = None):
        self.fragments = fragments or []
        self.error = error
        self.open_error = open_error
        self.prompts: List[str] = []

    async def __call__(self, prompt: str):
        self.prompts.append(prompt)
        if self.open_error is not None:
            raise self.open_error
        return self._stream()

    async def _stream(self):
        for fragment in self.fragments:
            await asyncio.sleep(0)
            yield fragment
        if self.error is not None:
            raise self.error


@pytest.fixture
def fake_model():
    return FakeModel


@pytest.fixture
def csv_bytes():
    rows = ["a,b"] + [f"{i},{i * 10}" for i in range(1, 7)]
    return ("\n".join(rows) + "\n").encode()
