"""Remote generation gateway backed by Gemini (analysis) and Imagen (illustration).

Both operations are single-attempt coroutines. Malformed or empty model output
raises GenerationError; anything raised by the SDK or the network is wrapped in
TransportError so the orchestrator can report both the same way.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

import google.generativeai as genai
from google import genai as google_genai
from google.genai import types as genai_types

from .config import Settings, require_api_key
from .errors import GenerationError, TransportError
from .models import AnalysisDraft
from .prompt_loader import load_prompt, render_prompt
from .utils import safe_json_loads

logger = logging.getLogger("qca.gemini")

DEFAULT_SAFETY_SETTINGS = [
    {"category": "HARM_CATEGORY_HARASSMENT", "threshold": "BLOCK_NONE"},
    {"category": "HARM_CATEGORY_HATE_SPEECH", "threshold": "BLOCK_NONE"},
    {"category": "HARM_CATEGORY_SEXUALLY_EXPLICIT", "threshold": "BLOCK_NONE"},
    {"category": "HARM_CATEGORY_DANGEROUS_CONTENT", "threshold": "BLOCK_NONE"},
]

ANALYSIS_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "title": {
            "type": "STRING",
            "description": "A highly technical and specific title for the analysis report, suitable for a developer audience.",
        },
        "tableOfContents": {
            "type": "ARRAY",
            "items": {"type": "STRING"},
            "description": "A bulleted list of 3-5 key technical sections, like 'Algorithm Breakdown', "
            "'Pseudocode Implementation', 'Performance Considerations'.",
        },
        "story": {
            "type": "STRING",
            "description": "A deep technical analysis of the topic for developers. It must include algorithmic "
            "explanations, discussions of data structures, and pseudocode examples in Python or a similar format. "
            "The tone must be professional, authoritative, and educational.",
        },
        "nextTopics": {
            "type": "ARRAY",
            "items": {"type": "STRING"},
            "description": "A list of 5 unique, specific, and advanced technical topics that logically follow from "
            "the main analysis. These will be presented to the user as the next choices for research.",
        },
    },
    "required": ["title", "tableOfContents", "story", "nextTopics"],
}

REQUIRED_FIELDS = ("title", "tableOfContents", "story", "nextTopics")


class GeminiClient:
    """Two-operation gateway: structured analysis text, then an illustration."""

    def __init__(
        self,
        settings: Settings,
        text_model: Optional[Any] = None,
        image_client: Optional[Any] = None,
    ) -> None:
        """Purpose: Validate the credential and prepare both SDK clients.
        Inputs/Outputs: Input is Settings plus optional pre-built SDK objects; no return value.
        Side Effects / State: Configures the google-generativeai global API key when
            building the text model itself.
        Dependencies: Uses google.generativeai for text, google.genai for images.
        Failure Modes: Raises ConfigurationError if the key is missing or a placeholder,
            before any request is attempted.
        If Removed: No remote generation is possible and the app cannot start.
        Testing Notes: Pass fake text_model/image_client objects to avoid network calls.
        """
        # Fail fast on the credential, then build whichever clients were not injected.
        api_key = require_api_key(settings.gemini_api_key)
        self._settings = settings
        self._prompts_dir = settings.prompts_dir
        if text_model is None:
            genai.configure(api_key=api_key)
            text_model = genai.GenerativeModel(
                _normalize_model_name(settings.gemini_model),
                system_instruction=load_prompt(self._prompts_dir / "analysis_system.txt"),
            )
        if image_client is None:
            image_client = google_genai.Client(api_key=api_key)
        self._text_model = text_model
        self._image_client = image_client

    async def generate_analysis(self, topic: str, previous_topics: Sequence[str]) -> AnalysisDraft:
        """Purpose: Ask the text model for a structured analysis of a topic.
        Inputs/Outputs: Inputs are the topic and the topics already covered this session;
            output is an AnalysisDraft.
        Side Effects / State: One remote call; no local state.
        Dependencies: GenerativeModel.generate_content_async with a JSON response schema.
        Failure Modes: TransportError when the call fails; GenerationError when the reply
            is not JSON or lacks a required field.
        If Removed: Topic selections never produce an analysis.
        Testing Notes: Feed a fake model returning valid, truncated, and partial JSON.
        """
        prompt = render_prompt(
            self._prompts_dir / "analysis_request.txt",
            previous_topics=", ".join(previous_topics) or "None",
            topic=topic,
        )
        try:
            response = await self._text_model.generate_content_async(
                prompt,
                generation_config={
                    "temperature": self._settings.analysis_temperature,
                    "response_mime_type": "application/json",
                    "response_schema": ANALYSIS_SCHEMA,
                },
                safety_settings=DEFAULT_SAFETY_SETTINGS,
            )
        except Exception as exc:
            logger.warning("analysis call failed topic=%s error=%s", topic, exc)
            raise TransportError(f"Failed to generate analysis from AI. Details: {exc}") from exc

        try:
            # .text raises ValueError when the reply carries no candidate part.
            return parse_analysis_payload(response.text or "")
        except (ValueError, GenerationError) as exc:
            raise GenerationError(f"Failed to generate analysis from AI. Details: {exc}") from exc

    async def generate_illustration(self, narrative: str) -> bytes:
        """Generate one 16:9 JPEG from the opening of a narrative and return its bytes."""
        excerpt = narrative[: self._settings.illustration_excerpt_chars]
        prompt = render_prompt(self._prompts_dir / "illustration.txt", excerpt=excerpt)
        try:
            response = await self._image_client.aio.models.generate_images(
                model=_normalize_model_name(self._settings.imagen_model),
                prompt=prompt,
                config=genai_types.GenerateImagesConfig(
                    number_of_images=1,
                    output_mime_type="image/jpeg",
                    aspect_ratio="16:9",
                ),
            )
        except Exception as exc:
            logger.warning("illustration call failed error=%s", exc)
            raise TransportError(f"Failed to generate image from AI. Details: {exc}") from exc

        images = getattr(response, "generated_images", None) or []
        image_bytes = _first_image_bytes(images)
        if not image_bytes:
            raise GenerationError("Failed to generate image from AI. Details: AI did not return any images.")
        return image_bytes


def parse_analysis_payload(text: str) -> AnalysisDraft:
    """Purpose: Convert the model's JSON reply into an AnalysisDraft.
    Inputs/Outputs: Input is the raw reply text; output is an AnalysisDraft.
    Side Effects / State: None; pure function.
    Dependencies: Uses safe_json_loads for tolerant JSON extraction.
    Failure Modes: Raises GenerationError when the reply is not a JSON object, a required
        field is absent or empty, or a list field is not a list of strings.
    If Removed: Malformed replies reach the session store unchecked.
    Testing Notes: Cover fenced JSON, missing nextTopics, and non-list tableOfContents.
    """
    payload = safe_json_loads(text)
    if payload is None:
        raise GenerationError("AI response could not be parsed as JSON.")
    missing = [name for name in REQUIRED_FIELDS if not payload.get(name)]
    if missing:
        raise GenerationError(
            "AI response is missing required fields like 'title', 'story', 'tableOfContents', or 'nextTopics'. "
            f"Missing: {', '.join(missing)}"
        )
    table_of_contents = _string_list(payload["tableOfContents"], "tableOfContents")
    next_topics = _string_list(payload["nextTopics"], "nextTopics")
    return AnalysisDraft(
        title=str(payload["title"]),
        table_of_contents=table_of_contents,
        narrative=str(payload["story"]),
        suggested_next_topics=next_topics,
    )


def _string_list(value: Any, field_name: str) -> List[str]:
    if not isinstance(value, list):
        raise GenerationError(f"AI response field '{field_name}' must be a list.")
    return [str(item) for item in value]


def _first_image_bytes(images: Sequence[Any]) -> Optional[bytes]:
    if not images:
        return None
    image = getattr(images[0], "image", None)
    return getattr(image, "image_bytes", None) if image is not None else None


def _normalize_model_name(name: Optional[str]) -> str:
    """Strip a leading "models/" prefix and surrounding whitespace."""
    if not name:
        return ""
    cleaned = name.strip()
    if cleaned.startswith("models/"):
        return cleaned.split("/", 1)[1]
    return cleaned
