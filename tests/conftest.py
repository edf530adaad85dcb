"""Shared fixtures: a scripted in-memory gateway and ready-made settings."""

import asyncio
from typing import List, Optional, Sequence

import pytest

from qca.config import load_settings
from qca.models import AnalysisDraft

FAKE_IMAGE = b"\xff\xd8\xff\xe0fake-jpeg"


def make_draft(title: str = "Grover Search over Ledger Records", next_topics: Optional[List[str]] = None) -> AnalysisDraft:
    return AnalysisDraft(
        title=title,
        table_of_contents=["Algorithm Breakdown", "Pseudocode Implementation"],
        narrative="Intro line.\n```python\nprint('oracle')\n```\nClosing line.",
        suggested_next_topics=next_topics if next_topics is not None else ["Amplitude Amplification", "Oracle Design"],
    )


class FakeGateway:
    """Scripted stand-in for GeminiClient; records every call it receives."""

    def __init__(self) -> None:
        self.analysis_calls: List[tuple] = []
        self.illustration_calls: List[str] = []
        self.analysis_error: Optional[Exception] = None
        self.illustration_error: Optional[Exception] = None
        self.analysis_gate: Optional[asyncio.Event] = None
        self.illustration_gate: Optional[asyncio.Event] = None
        self.image = FAKE_IMAGE

    async def generate_analysis(self, topic: str, previous_topics: Sequence[str]) -> AnalysisDraft:
        self.analysis_calls.append((topic, list(previous_topics)))
        if self.analysis_gate is not None:
            await self.analysis_gate.wait()
        if self.analysis_error is not None:
            raise self.analysis_error
        return make_draft(title=f"Analysis of {topic}")

    async def generate_illustration(self, narrative: str) -> bytes:
        self.illustration_calls.append(narrative)
        if self.illustration_gate is not None:
            await self.illustration_gate.wait()
        if self.illustration_error is not None:
            raise self.illustration_error
        return self.image


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def settings(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "test-key")
    for name in ("API_KEY", "GEMINI_MODEL", "IMAGEN_MODEL", "ANALYSIS_TEMPERATURE",
                 "ILLUSTRATION_EXCERPT_CHARS", "FRONTEND_DIR", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    return load_settings()

