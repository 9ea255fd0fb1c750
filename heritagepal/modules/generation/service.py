"""Text generation client backed by pydantic-ai and the Gemini provider.

Imports for the Google provider are kept lazy so the app still boots (and
tests still import) when no API key is configured.
"""

from __future__ import annotations

from typing import Optional, Protocol

from pydantic_ai import Agent
from pydantic_ai.messages import ModelMessage, ModelResponse, TextPart
from pydantic_ai.models import Model
from pydantic_ai.models.function import AgentInfo, FunctionModel

from heritagepal.core.config import settings
from heritagepal.core.exceptions import GenerationError
from heritagepal.core.logging import get_logger


logger = get_logger(__name__)

MISSING_KEY_NOTICE = (
    "This is a mock response because no valid Gemini API key was provided. "
    "To use the real AI functionality, please obtain an API key from "
    "https://ai.google.dev/ and add it to your .env file as GOOGLE_GEMINI_API_KEY."
)


class TextGenerator(Protocol):
    async def generate(self, prompt: str) -> str: ...


def _build_google_model(model_name: str, api_key: str):
    """Build the Google Gemini model provider (lazy import)."""
    from pydantic_ai.models.google import GoogleModel
    from pydantic_ai.providers.google import GoogleProvider

    provider = GoogleProvider(api_key=api_key)
    return GoogleModel(model_name, provider=provider)


def _notice_model() -> FunctionModel:
    def respond(messages: list[ModelMessage], info: AgentInfo) -> ModelResponse:
        return ModelResponse(parts=[TextPart(MISSING_KEY_NOTICE)])

    return FunctionModel(respond, model_name="missing-api-key")


def build_default_model() -> Model:
    if not settings.gemini.is_configured:
        logger.warning(
            "GOOGLE_GEMINI_API_KEY is not set; generation will return a notice text"
        )
        return _notice_model()
    logger.info("Using Gemini model %s", settings.gemini.model_name)
    return _build_google_model(settings.gemini.model_name, settings.gemini.api_key or "")


class GenerationService:
    """Send one prompt, get plain text back.

    One instance is shared by all requests; the underlying agent holds no
    per-run state so concurrent ``generate`` calls are safe.
    """

    def __init__(self, model: Optional[Model] = None):
        self.agent: Agent[None, str] = Agent[None, str](
            model=model or build_default_model(),
            output_type=str,
        )

    async def generate(self, prompt: str) -> str:
        try:
            res = await self.agent.run(prompt)
        except Exception as e:
            logger.error("Generation call failed: %s", e)
            raise GenerationError(debug_info={"cause": repr(e)}) from e
        return res.output


__all__ = ["TextGenerator", "GenerationService", "MISSING_KEY_NOTICE", "build_default_model"]
