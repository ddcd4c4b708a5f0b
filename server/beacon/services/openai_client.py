import logging

from beacon.services.llm_client import strip_code_fence

logger = logging.getLogger(__name__)


class OpenAIClient:
    """Wrapper for the OpenAI chat completions API."""

    provider = "openai"

    def __init__(self, api_key: str, model: str = ""):
        from openai import AsyncOpenAI

        self.client = AsyncOpenAI(api_key=api_key)
        self.model = model or "gpt-4o-mini"

    async def complete_json(
        self,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int = 4000,
        temperature: float = 0.7,
    ) -> str:
        completion = await self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            response_format={"type": "json_object"},
            temperature=temperature,
            max_tokens=max_tokens,
        )
        choice = completion.choices[0] if completion.choices else None
        text = (choice.message.content if choice else "") or ""
        logger.info(
            f"OpenAI response: finish_reason={choice.finish_reason if choice else None}, len={len(text)}"
        )
        return strip_code_fence(text)

    async def describe_image(self, data_uri: str, prompt: str, max_tokens: int = 150) -> str:
        completion = await self.client.chat.completions.create(
            model=self.model,
            messages=[
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": prompt},
                        {"type": "image_url", "image_url": {"url": data_uri, "detail": "low"}},
                    ],
                }
            ],
            max_tokens=max_tokens,
        )
        content = completion.choices[0].message.content if completion.choices else ""
        return (content or "").strip()
