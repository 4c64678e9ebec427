"""OpenAI-compatible chat completions client."""

from dataclasses import dataclass

import openai
from openai import AsyncOpenAI

from cafe_finder.errors import CreditsExhaustedError, ProviderError, RateLimitedError
from cafe_finder.services.mood import ChatClient

_PAYMENT_REQUIRED = 402


@dataclass
class OpenAIChatClient(ChatClient):
    """Chat client backed by the OpenAI SDK."""

    client: AsyncOpenAI

    @classmethod
    def create(cls, api_key: str, base_url: str | None = None) -> "OpenAIChatClient":
        """Create a chat client, optionally against a compatible gateway."""
        return cls(client=AsyncOpenAI(api_key=api_key, base_url=base_url))

    async def complete(
        self,
        *,
        model: str,
        system_prompt: str,
        user_prompt: str,
        temperature: float,
    ) -> str:
        """Return the text of the first completion choice."""
        try:
            response = await self.client.chat.completions.create(
                model=model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=temperature,
            )
        except openai.RateLimitError as exc:
            raise RateLimitedError from exc
        except openai.APIStatusError as exc:
            if exc.status_code == _PAYMENT_REQUIRED:
                raise CreditsExhaustedError from exc
            raise ProviderError(f"AI request failed ({exc.status_code})") from exc
        except openai.APIConnectionError as exc:
            raise ProviderError("AI service unreachable") from exc
        return response.choices[0].message.content or ""

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.client.close()
