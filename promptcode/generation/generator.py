"""
Code generation client - turns (query, language) into source text via an
OpenAI compatible chat-completions endpoint.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from openai import AsyncOpenAI, OpenAIError
from structlog import get_logger

from promptcode.errors import GenerationError
from promptcode.generation.prompt import SYSTEM_PROMPT, build_prompt

if TYPE_CHECKING:
    from promptcode.config import GeminiConfig

logger = get_logger()


class CodeGenerator:
    """
    Wraps the generative model call.

    The returned text is trimmed but otherwise unprocessed; callers are
    responsible for stripping any formatting artifacts the model adds.
    """

    def __init__(
        self,
        config: "GeminiConfig",
        client: AsyncOpenAI | None = None,
    ):
        self._config = config
        self.client = client or AsyncOpenAI(
            api_key=config.api_key,
            base_url=config.base_url,
            timeout=config.timeout,
            max_retries=0,
        )
        self.model = config.model

        logger.info("CodeGenerator initialized", model=self.model, base_url=config.base_url)

    async def close(self) -> None:
        await self.client.close()

    async def generate(self, query: str, language: str) -> str:
        """
        Generate source code for *query* in *language*.

        Raises:
            GenerationError: network failure, timeout, non-2xx response or a
                response without text.
        """
        prompt = build_prompt(query, language)

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                temperature=self._config.temperature,
                top_p=self._config.top_p,
                max_tokens=self._config.max_tokens,
                timeout=self._config.timeout,
            )
        except OpenAIError as e:
            logger.error("Generation API error", language=language, error=str(e))
            raise GenerationError(f"Failed to generate code: {e}") from e

        text = _extract_text(response)
        if not text:
            logger.error("Generation API returned no text", language=language)
            raise GenerationError("Failed to generate code: Invalid response from generation API")

        return text.strip()


def _extract_text(response: Any) -> str | None:
    choices = getattr(response, "choices", None)
    if not choices:
        return None
    message = getattr(choices[0], "message", None)
    content = getattr(message, "content", None)
    if not isinstance(content, str) or not content.strip():
        return None
    return content
