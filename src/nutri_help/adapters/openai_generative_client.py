"""OpenAI Responses API client for structured and free-text generation."""

from dataclasses import dataclass

from openai import AsyncOpenAI, OpenAIError

from nutri_help.services.gateway import (
    GenerativeClient,
    InlineImage,
    ResponseShape,
    ServiceError,
)


@dataclass
class OpenAIGenerativeClient(GenerativeClient):
    """Generative client backed by OpenAI Responses API."""

    client: AsyncOpenAI

    @classmethod
    def create(
        cls, api_key: str, base_url: str | None = None
    ) -> "OpenAIGenerativeClient":
        """Create an OpenAI generative client."""
        return cls(client=AsyncOpenAI(api_key=api_key, base_url=base_url))

    async def generate(  # noqa: PLR0913
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        prompt: str,
        image: InlineImage | None = None,
        shape: ResponseShape | None = None,
        instructions: str | None = None,
    ) -> str:
        """Call OpenAI Responses API and return the reply text."""
        content: list[dict[str, object]] = []
        if image is not None:
            content.append(
                {"type": "input_image", "image_url": image.to_data_url()}
            )
        content.append({"type": "input_text", "text": prompt})
        request_payload: dict[str, object] = {
            "model": model,
            "input": [{"role": "user", "content": content}],
            "store": store,
        }
        if shape is not None:
            request_payload["text"] = {
                "format": {
                    "type": "json_schema",
                    "name": shape.name,
                    "strict": True,
                    "schema": shape.schema,
                }
            }
        if instructions:
            request_payload["instructions"] = instructions
        if reasoning_effort:
            request_payload["reasoning"] = {"effort": reasoning_effort}

        try:
            response = await self.client.responses.create(**request_payload)
        except OpenAIError as exc:
            raise ServiceError(f"OpenAI request failed: {exc}") from exc
        return response.output_text or ""

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.client.close()

