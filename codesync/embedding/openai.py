# codesync/embedding/openai.py
"""
OpenAI-compatible embedding provider.

Any server that implements POST /embeddings with the OpenAI request and
response shape works (OpenAI, Azure-style gateways, local servers).
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx

from codesync.config.schema import EmbeddingSettings
from codesync.core.http import APIError, create_async_api_client, handle_api_error, raise_for_status
from codesync.logging.logger import get_logger
from codesync.logging.tags import EMBEDDING

logger = get_logger(__name__)

EMBEDDINGS_ENDPOINT = "/embeddings"


class OpenAIEmbeddingProvider:
    """
    Async client for /embeddings.

    Args:
        model: Model name sent with every request
        dimensions: Requested output dimension (models that support it honor it)
        client: Pre-built httpx.AsyncClient; built from base_url/api_key when omitted
    """

    provider_name = "openai"

    def __init__(
        self,
        model: str,
        base_url: str = "https://api.openai.com/v1",
        api_key: Optional[str] = None,
        dimensions: Optional[int] = None,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.model = model
        self.dimensions = dimensions
        self._client = client or create_async_api_client(
            base_url=base_url,
            api_key=api_key,
            timeout=timeout,
        )
        logger.info(
            f"{EMBEDDING} OpenAI-compatible provider: model={model}, url={base_url}, "
            f"api_key={'***' if api_key else '<none>'}"
        )

    @classmethod
    def from_settings(cls, settings: EmbeddingSettings, **kwargs: Any) -> "OpenAIEmbeddingProvider":
        return cls(
            model=settings.model,
            base_url=settings.base_url,
            api_key=settings.api_key(),
            dimensions=settings.dimension,
            timeout=settings.timeout,
            **kwargs,
        )

    async def embed(self, texts: List[str]) -> List[List[float]]:
        if not texts:
            return []

        payload: Dict[str, Any] = {"model": self.model, "input": texts}
        if self.dimensions is not None:
            payload["dimensions"] = self.dimensions

        try:
            response = await self._client.post(EMBEDDINGS_ENDPOINT, json=payload)
        except httpx.HTTPError as exc:
            raise handle_api_error(exc, provider=self.provider_name, endpoint=EMBEDDINGS_ENDPOINT) from exc

        raise_for_status(response, provider=self.provider_name, endpoint=EMBEDDINGS_ENDPOINT)

        data = response.json().get("data")
        if not isinstance(data, list) or len(data) != len(texts):
            raise APIError(
                message=f"{self.provider_name} returned a malformed embeddings response",
                status_code=response.status_code,
                provider=self.provider_name,
                endpoint=EMBEDDINGS_ENDPOINT,
                details=f"expected {len(texts)} vectors",
            )

        ordered = sorted(data, key=lambda item: item.get("index", 0))
        return [item["embedding"] for item in ordered]

    async def aclose(self) -> None:
        await self._client.aclose()


__all__ = ["OpenAIEmbeddingProvider"]
