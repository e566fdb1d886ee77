import asyncio
import logging

from pydantic import BaseModel

from tenq.core.config import get_settings
from tenq.core.deps import get_llm_client

logger = logging.getLogger("tenq.ai")

SYSTEM_PROMPT = (
    "You are an expert quiz question generator with exceptional factual accuracy. "
    "Always provide only verified, widely accepted facts. When in doubt, choose the "
    "most conservative, well-established fact."
)


class LLMResponse(BaseModel):
    text: str
    model: str = ""


class AIService:
    """Text in, text out. Retry and backoff belong to the caller."""

    def __init__(self, client=None, model: str | None = None):
        settings = get_settings()
        self.client = client or get_llm_client(settings)
        self.model = model or settings.llm_model

    async def generate_completion(
        self,
        prompt: str,
        system_prompt: str | None = SYSTEM_PROMPT,
        temperature: float = 0.7,
        max_tokens: int = 4000,
    ) -> LLMResponse:
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        logger.info("LLM request: model=%s prompt_chars=%d", self.model, len(prompt))
        # The SDK call is blocking; keep the event loop free while it runs
        response = await asyncio.to_thread(
            self.client.chat.completions.create,
            model=self.model,
            messages=messages,
            temperature=temperature,
            max_tokens=max_tokens,
        )

        text = response.choices[0].message.content or ""
        logger.info("LLM response: %d chars", len(text))
        return LLMResponse(text=text, model=self.model)


def get_ai_service() -> AIService:
    return AIService()
