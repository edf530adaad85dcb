from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class Severity(str, Enum):
    """Activity log severities shown in the log panel."""
    INFO = "info"
    ERROR = "error"
    SUCCESS = "success"


class AnalysisDraft(BaseModel):
    """Structured analysis returned by the text model, before an illustration exists."""
    title: str
    table_of_contents: List[str]
    narrative: str
    suggested_next_topics: List[str] = Field(default_factory=list)

    def to_record(self, topic: str) -> "AnalysisRecord":
        """Build the provisional record shown while the illustration is pending."""
        return AnalysisRecord(
            topic=topic,
            title=self.title,
            table_of_contents=list(self.table_of_contents),
            narrative=self.narrative,
            illustration_uri="",
            suggested_next_topics=list(self.suggested_next_topics),
        )


class AnalysisRecord(BaseModel):
    """One completed (or in-flight) analysis in the session history."""
    topic: str
    title: str
    table_of_contents: List[str]
    narrative: str
    illustration_uri: str = ""
    suggested_next_topics: Optional[List[str]] = None

    model_config = {"frozen": True}

    @property
    def is_provisional(self) -> bool:
        return self.illustration_uri == ""


class LogEntry(BaseModel):
    """Activity log line; never mutated once appended."""
    timestamp: datetime
    message: str
    severity: Severity = Severity.INFO

    model_config = {"frozen": True}


class SessionStatus(BaseModel):
    """Loading/error status of the single in-flight request."""
    is_busy: bool = False
    stage_label: str = ""
    last_error: Optional[str] = None

    model_config = {"frozen": True}


class SelectTopicRequest(BaseModel):
    """Request payload for topic selection."""
    topic: str = Field(min_length=1)


class TopicsResponse(BaseModel):
    """Curriculum listing for the topic sidebar."""
    topics: List[str]
    curriculum_locked: bool


class SessionSnapshot(BaseModel):
    """Everything the content panel needs to render."""
    started: bool
    status: SessionStatus
    history: List[AnalysisRecord]
    suggested_topics: List[str]


class SelectTopicResponse(SessionSnapshot):
    """Snapshot returned after a selection, with whether it was accepted."""
    accepted: bool
