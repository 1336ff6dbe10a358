"""OpenAI Chat Completions client for nutrition estimates."""

from dataclasses import dataclass

import openai
from openai import AsyncOpenAI

from nutrition_ai.services.analysis import NutritionAIClient
from nutrition_ai.services.retry import default_is_retryable


def is_retryable_openai_error(error: BaseException) -> bool:
    """Return True for OpenAI connection, rate-limit and server errors."""
    if isinstance(
        error,
        openai.APIConnectionError | openai.RateLimitError | openai.InternalServerError,
    ):
        return True
    return default_is_retryable(error)


@dataclass
class OpenAINutritionClient(NutritionAIClient):
    """Nutrition client backed by OpenAI Chat Completions."""

    client: AsyncOpenAI

    @classmethod
    def create(cls, api_key: str) -> "OpenAINutritionClient":
        """Create an OpenAI nutrition client."""
        # Retries are handled by the caller's retry options.
        return cls(client=AsyncOpenAI(api_key=api_key, max_retries=0))

    async def complete(
        self,
        *,
        model: str,
        system_prompt: str,
        user_prompt: str,
        image_url: str | None,
    ) -> str:
        """Send the prompt (and optional image) and return the message text."""
        user_content: list[dict[str, object]] = [{"type": "text", "text": user_prompt}]
        if image_url:
            user_content.append({"type": "image_url", "image_url": {"url": image_url}})

        response = await self.client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_content},
            ],
            response_format={"type": "json_object"},
        )
        if not response.choices:
            raise RuntimeError("OpenAI returned no choices")
        return response.choices[0].message.content or "{}"

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.client.close()
