import logging

from beacon.services.llm_client import split_data_uri, strip_code_fence

logger = logging.getLogger(__name__)


class ClaudeClient:
    """Wrapper for the Anthropic Claude API."""

    provider = "anthropic"

    def __init__(self, api_key: str, model: str = ""):
        from anthropic import AsyncAnthropic

        self.client = AsyncAnthropic(api_key=api_key)
        self.model = model or "claude-sonnet-4-20250514"

    async def complete_json(
        self,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int = 4000,
        temperature: float = 0.7,
    ) -> str:
        """Claude has no JSON mode; the prompt asks for a bare JSON object."""
        response = await self.client.messages.create(
            model=self.model,
            max_tokens=max_tokens,
            temperature=temperature,
            system=system_prompt + "\n\nRespond with the JSON object only, no prose.",
            messages=[{"role": "user", "content": user_prompt}],
        )
        text = "".join(block.text for block in response.content if getattr(block, "type", "") == "text")
        logger.info(f"Claude response: stop_reason={response.stop_reason}, len={len(text)}")
        return strip_code_fence(text)

    async def describe_image(self, data_uri: str, prompt: str, max_tokens: int = 150) -> str:
        mime_type, _ = split_data_uri(data_uri)
        payload = data_uri.partition(",")[2]
        response = await self.client.messages.create(
            model=self.model,
            max_tokens=max_tokens,
            messages=[
                {
                    "role": "user",
                    "content": [
                        {
                            "type": "image",
                            "source": {"type": "base64", "media_type": mime_type, "data": payload},
                        },
                        {"type": "text", "text": prompt},
                    ],
                }
            ],
        )
        return response.content[0].text.strip() if response.content else ""
