"""Topic request state machine.

A selection moves IDLE -> AWAITING_ANALYSIS -> AWAITING_ILLUSTRATION -> IDLE,
or back to IDLE from either awaiting stage on failure. Only one request is in
flight at a time; selections made while busy are dropped.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Protocol, Sequence

from .errors import StageError
from .models import AnalysisDraft, Severity
from .session_store import SessionStore
from .utils import to_data_uri

logger = logging.getLogger("qca.orchestrator")

ANALYSIS_STAGE_LABEL = "Synthesizing quantum data..."
ILLUSTRATION_STAGE_LABEL = "Visualizing quantum circuits..."
UNKNOWN_ERROR_MESSAGE = "An unknown error occurred."


class Stage(str, Enum):
    IDLE = "idle"
    AWAITING_ANALYSIS = "awaiting_analysis"
    AWAITING_ILLUSTRATION = "awaiting_illustration"


class GenerationGateway(Protocol):
    async def generate_analysis(self, topic: str, previous_topics: Sequence[str]) -> AnalysisDraft:
        ...

    async def generate_illustration(self, narrative: str) -> bytes:
        ...


class TopicOrchestrator:
    """Runs one topic selection through analysis and illustration."""

    def __init__(self, gateway: GenerationGateway, store: SessionStore) -> None:
        self._gateway = gateway
        self._store = store
        self._stage = Stage.IDLE

    @property
    def stage(self) -> Stage:
        return self._stage

    @property
    def store(self) -> SessionStore:
        return self._store

    async def select_topic(self, topic: str) -> bool:
        """Purpose: Run the two-stage generation for a topic and commit the result.
        Inputs/Outputs: Input is the selected topic; returns False when the selection
            was dropped because another request is in flight, True otherwise.
        Side Effects / State: Updates history, status, and the activity log through the
            SessionStore; emits logger entries for each transition.
        Dependencies: GenerationGateway for both remote calls.
        Failure Modes: None propagate. Stage failures are logged, stored as last_error,
            and the provisional record is discarded.
        If Removed: Topic selections do nothing; the content panel never fills.
        Testing Notes: Use a fake gateway; check history, log, and status after each path.
        """
        if self._store.status.is_busy:
            logger.info("selection dropped while busy topic=%s", topic)
            return False

        self._store.mark_started()
        self._store.begin_request(ANALYSIS_STAGE_LABEL)
        self._stage = Stage.AWAITING_ANALYSIS
        self._store.append_log(f'Analysis initiated for: "{topic}"')
        logger.info("topic=%s stage=%s", topic, self._stage.value)

        try:
            draft = await self._gateway.generate_analysis(topic, self._store.previous_topics())
            self._store.append_provisional(draft.to_record(topic))
            self._store.append_log(
                f'Text analysis and topic generation successful for: "{topic}"', Severity.SUCCESS
            )
            self._store.set_stage_label(ILLUSTRATION_STAGE_LABEL)
            self._stage = Stage.AWAITING_ILLUSTRATION
            logger.info("topic=%s stage=%s", topic, self._stage.value)

            image_bytes = await self._gateway.generate_illustration(draft.narrative)
            self._store.finalize_last(to_data_uri(image_bytes))
            self._store.append_log(f'Image generation successful for topic: "{topic}"', Severity.SUCCESS)
            logger.info("topic=%s status=success", topic)
        except StageError as exc:
            self._abort(topic, str(exc) or UNKNOWN_ERROR_MESSAGE)
        except Exception as exc:
            logger.exception("unexpected failure topic=%s", topic)
            self._abort(topic, str(exc) or UNKNOWN_ERROR_MESSAGE)
        finally:
            # Runs on cancellation too, which bypasses _abort.
            if self._store.has_provisional():
                self._store.discard_provisional()
            self._store.end_request()
            self._stage = Stage.IDLE
        return True

    def _abort(self, topic: str, message: str) -> None:
        logger.error("topic=%s stage=%s error=%s", topic, self._stage.value, message)
        self._store.append_log(f"Error during generation: {message}", Severity.ERROR)
        self._store.fail_request(f"Failed to generate analysis. {message}")
