# ============================================================================

import asyncio
import logging
from typing import Any, Dict, Protocol, runtime_checkable

import openai
import requests
from openai import AsyncOpenAI

from intelligent_query.config import Settings
from intelligent_query.exceptions import ModelUnavailable

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are an intelligent document analysis system for insurance and policy documents. "
    "Answer only from the provided context and always reply with a single valid JSON object."
)

GEMINI_ENDPOINT = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"


@runtime_checkable
class TextGenerator(Protocol):
    """Text generation capability used by the answer synthesizer"""

    async def generate(self, prompt: str) -> str:
        """Return the model's raw text for a prompt, or raise ModelUnavailable"""
        ...


class OpenAIGenerator:
    """OpenAI chat completion backend"""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4",
        max_tokens: int = 2048,
        temperature: float = 0.3,
        timeout: float = 60.0,
        max_retries: int = 0
    ):
        if not api_key:
            logger.error("❌ OPENAI_API_KEY not found in environment")
            raise ValueError("OpenAI API key is required")

        # Retries are handled here so they stay opt-in
        self.client = AsyncOpenAI(api_key=api_key, timeout=timeout, max_retries=0)
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.max_retries = max_retries

        logger.info(f"✅ OpenAI generator initialized ({model})")

    async def generate(self, prompt: str) -> str:
        response = await self._make_llm_request(prompt)

        try:
            content = response.choices[0].message.content
        except (AttributeError, IndexError, TypeError) as e:
            raise ModelUnavailable(f"Invalid OpenAI response structure: {e}") from e

        if not content or not content.strip():
            raise ModelUnavailable("OpenAI returned an empty completion")
        return content.strip()

    async def _make_llm_request(self, prompt: str) -> Any:
        """Make request to OpenAI API, retrying only when configured to"""
        base_delay = 1
        attempts = self.max_retries + 1

        for attempt in range(attempts):
            try:
                return await self.client.chat.completions.create(
                    model=self.model,
                    messages=[
                        {"role": "system", "content": SYSTEM_PROMPT},
                        {"role": "user", "content": prompt}
                    ],
                    max_tokens=self.max_tokens,
                    temperature=self.temperature
                )

            except openai.OpenAIError as e:
                if attempt < attempts - 1:
                    delay = base_delay * (2 ** attempt)
                    logger.warning(f"⚠️ Request failed (attempt {attempt + 1}), retrying in {delay}s: {e}")
                    await asyncio.sleep(delay)
                    continue
                raise ModelUnavailable(f"OpenAI request failed: {e}") from e

        raise ModelUnavailable("All retry attempts failed")


class GeminiGenerator:
    """Gemini generateContent REST backend"""

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-1.5-flash",
        max_tokens: int = 2048,
        temperature: float = 0.3,
        timeout: float = 60.0,
        max_retries: int = 0
    ):
        if not api_key:
            logger.error("❌ GEMINI_API_KEY not found in environment")
            raise ValueError("Gemini API key is required")

        self.api_key = api_key
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout = timeout
        self.max_retries = max_retries

        logger.info(f"✅ Gemini generator initialized ({model})")

    async def generate(self, prompt: str) -> str:
        loop = asyncio.get_running_loop()
        attempts = self.max_retries + 1

        for attempt in range(attempts):
            try:
                data = await loop.run_in_executor(None, self._post, prompt)
                return self._extract_text(data)
            except ModelUnavailable as e:
                if attempt < attempts - 1:
                    delay = 2 ** attempt
                    logger.warning(f"⚠️ Gemini request failed (attempt {attempt + 1}), retrying in {delay}s: {e}")
                    await asyncio.sleep(delay)
                    continue
                raise

        raise ModelUnavailable("All retry attempts failed")

    def _post(self, prompt: str) -> Dict[str, Any]:
        body = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": self.temperature,
                "topK": 40,
                "topP": 0.95,
                "maxOutputTokens": self.max_tokens,
            }
        }
        try:
            response = requests.post(
                GEMINI_ENDPOINT.format(model=self.model),
                params={"key": self.api_key},
                json=body,
                timeout=self.timeout
            )
        except requests.RequestException as e:
            raise ModelUnavailable(f"Gemini request failed: {e}") from e

        if not response.ok:
            raise ModelUnavailable(f"Gemini API error: {response.status_code}")

        try:
            return response.json()
        except ValueError as e:
            raise ModelUnavailable(f"Gemini returned a non-JSON payload: {e}") from e

    @staticmethod
    def _extract_text(data: Dict[str, Any]) -> str:
        try:
            text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError) as e:
            raise ModelUnavailable("Invalid Gemini API response structure") from e

        if not isinstance(text, str) or not text.strip():
            raise ModelUnavailable("Gemini returned an empty completion")
        return text


def create_generator(settings: Settings) -> TextGenerator:
    """Build the configured text generation backend"""
    common = dict(
        max_tokens=settings.llm_max_tokens,
        temperature=settings.llm_temperature,
        timeout=settings.llm_timeout_seconds,
        max_retries=settings.llm_max_retries
    )
    if settings.llm_provider == "gemini":
        return GeminiGenerator(api_key=settings.gemini_api_key, model=settings.gemini_model, **common)
    return OpenAIGenerator(api_key=settings.openai_api_key, model=settings.openai_model, **common)

# ============================================================================
