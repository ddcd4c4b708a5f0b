import base64
import logging
import re
from typing import Optional, Protocol

from beacon.config import settings

logger = logging.getLogger(__name__)

_CODE_FENCE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


def strip_code_fence(text: str) -> str:
    """Remove a surrounding ```json fence some models add despite JSON mode."""
    text = (text or "").strip()
    m = _CODE_FENCE.match(text)
    return m.group(1) if m else text


def split_data_uri(data_uri: str) -> tuple[str, bytes]:
    """Return (mime_type, raw bytes) for a ``data:<mime>;base64,...`` URI."""
    header, _, payload = data_uri.partition(",")
    mime_type = header[5:].split(";")[0] if header.startswith("data:") else "image/png"
    return mime_type or "image/png", base64.b64decode(payload)


class LLMClient(Protocol):
    provider: str
    model: str

    async def complete_json(
        self,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int = 4000,
        temperature: float = 0.7,
    ) -> str: ...

    async def describe_image(self, data_uri: str, prompt: str, max_tokens: int = 150) -> str: ...


class GeminiClient:
    """Wrapper for the Google Gemini API."""

    provider = "gemini"

    def __init__(self, api_key: str, model: str = ""):
        from google import genai

        self.client = genai.Client(api_key=api_key)
        self.model = model or "gemini-2.5-flash"

    async def complete_json(
        self,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int = 4000,
        temperature: float = 0.7,
    ) -> str:
        from google.genai import types

        response = await self.client.aio.models.generate_content(
            model=self.model,
            contents=user_prompt,
            config=types.GenerateContentConfig(
                system_instruction=system_prompt,
                response_mime_type="application/json",
                max_output_tokens=max_tokens,
                temperature=temperature,
            ),
        )

        text = (response.text or "").strip()
        finish = getattr(
            response.candidates[0], "finish_reason", None
        ) if response.candidates else None
        logger.info(f"Gemini response: finish_reason={finish}, len={len(text)}")
        return strip_code_fence(text)

    async def describe_image(self, data_uri: str, prompt: str, max_tokens: int = 150) -> str:
        from google.genai import types

        mime_type, raw = split_data_uri(data_uri)
        response = await self.client.aio.models.generate_content(
            model=self.model,
            contents=[types.Part.from_bytes(data=raw, mime_type=mime_type), prompt],
            config=types.GenerateContentConfig(
                max_output_tokens=max_tokens,
                temperature=0.3,
            ),
        )
        return (response.text or "").strip()


def get_llm_client(provider: Optional[str] = None) -> Optional[LLMClient]:
    """Build a client for the configured provider.

    Falls back to any other provider that has a key. Returns None when no key
    is configured at all.
    """
    keys = {
        "openai": settings.openai_api_key,
        "anthropic": settings.anthropic_api_key,
        "gemini": settings.gemini_api_key,
    }
    preferred = (provider or settings.llm_provider or "openai").lower()
    order = [preferred] + [p for p in keys if p != preferred]

    for name in order:
        key = keys.get(name)
        if not key:
            continue
        if name != preferred:
            logger.info(f"No key for provider '{preferred}', using '{name}'")
        model = settings.llm_model if name == preferred else ""
        if name == "openai":
            from beacon.services.openai_client import OpenAIClient

            return OpenAIClient(key, model)
        if name == "anthropic":
            from beacon.services.claude_client import ClaudeClient

            return ClaudeClient(key, model)
        return GeminiClient(key, model)

    logger.debug("No LLM provider key configured")
    return None
