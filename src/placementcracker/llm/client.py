from __future__ import annotations

import logging

from openai import APIConnectionError, APIStatusError, APITimeoutError, OpenAIError

from placementcracker.config import Settings, get_settings
from placementcracker.errors import UpstreamFailure
from placementcracker.llm.prompts import ANSWER_SYSTEM_INSTRUCTION, COVER_LETTER_SYSTEM_INSTRUCTION
from placementcracker.llm.providers import LLMProvider, ProviderConfig
from placementcracker.types import Feature, ModelResponse

logger = logging.getLogger(__name__)

ANSWER_FALLBACK = "No answer generated."

SYSTEM_INSTRUCTIONS: dict[str, str] = {
    "cover_letter": COVER_LETTER_SYSTEM_INSTRUCTION,
    "answer": ANSWER_SYSTEM_INSTRUCTION,
}


class GenerationClient:
    """Single synchronous completion per call; no retries, no streaming."""

    def __init__(self, settings: Settings | None = None, provider: LLMProvider | None = None):
        self.settings = settings or get_settings()
        self._provider = provider

    def model_for(self, feature: Feature) -> str:
        if feature == "cover_letter":
            return self.settings.openai_model_cover_letter
        return self.settings.openai_model_answer

    def provider(self) -> LLMProvider:
        if self._provider is None:
            if not self.settings.openai_api_key:
                raise UpstreamFailure("Text generation is not configured.", kind="unconfigured")
            self._provider = LLMProvider(
                ProviderConfig(
                    name="openai",
                    base_url=self.settings.openai_base_url,
                    api_key=self.settings.openai_api_key,
                    timeout_sec=self.settings.openai_timeout_sec,
                )
            )
        return self._provider

    def generate(self, feature: Feature, prompt: str) -> ModelResponse:
        model = self.model_for(feature)
        try:
            response = self.provider().complete_text(
                model=model,
                prompt=prompt,
                instructions=SYSTEM_INSTRUCTIONS[feature],
            )
        except APITimeoutError as exc:
            logger.warning("Generation timed out feature=%s model=%s", feature, model)
            raise UpstreamFailure("The generation service timed out.", kind="timeout") from exc
        except APIConnectionError as exc:
            logger.warning("Generation connection error feature=%s model=%s error=%s", feature, model, exc)
            raise UpstreamFailure("Could not reach the generation service.", kind="network") from exc
        except APIStatusError as exc:
            logger.warning(
                "Generation rejected feature=%s model=%s status=%s", feature, model, exc.status_code
            )
            raise UpstreamFailure(
                f"The generation service returned status {exc.status_code}.", kind="status"
            ) from exc
        except OpenAIError as exc:
            logger.warning("Generation failed feature=%s model=%s error=%s", feature, model, exc)
            raise UpstreamFailure("The generation service failed.", kind="provider") from exc

        content = response.content.strip()
        if not content:
            if feature == "answer":
                logger.warning("Empty completion for answer; using fallback text")
                content = ANSWER_FALLBACK
            else:
                raise UpstreamFailure("The generation service returned no text.", kind="empty")

        return response.model_copy(update={"content": content})
