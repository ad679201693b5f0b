"""
Groq client wrapper for the generative text service.

One request, one response: no streaming and no automatic retries. A failed
call is reported and the caller decides whether to ask again.
"""

import logging
from typing import Optional

import httpx
import groq
from groq import AsyncGroq

from studyhelper.core.config import settings
from studyhelper.core.exceptions import ConfigurationError, ContractViolation, TransportError
from studyhelper.schemas.quiz import GenerationRequest

logger = logging.getLogger(__name__)


class GenerativeClient:
    """
    Async client for Groq chat completions.
    
    The SDK client is created lazily so that a missing credential surfaces as
    a ConfigurationError on the first call, before any network I/O.
    """
    
    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        if api_key is None and settings.GROQ_API_KEY is not None:
            api_key = settings.GROQ_API_KEY.get_secret_value()
        self._api_key = api_key
        self.base_url = base_url if base_url is not None else settings.GROQ_BASE_URL
        self.timeout = timeout if timeout is not None else settings.GROQ_TIMEOUT
        self._http_client = http_client
        self._client: Optional[AsyncGroq] = None
    
    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)
    
    def _get_client(self) -> AsyncGroq:
        if not self._api_key:
            raise ConfigurationError("Groq API key not configured (set GROQ_API_KEY)")
        
        if self._client is None:
            kwargs = {"api_key": self._api_key, "max_retries": 0}
            if self.base_url:
                kwargs["base_url"] = self.base_url
            if self.timeout is not None:
                kwargs["timeout"] = self.timeout
            if self._http_client is not None:
                kwargs["http_client"] = self._http_client
            self._client = AsyncGroq(**kwargs)
            logger.info("✅ Groq client initialized")
        
        return self._client
    
    async def complete(self, request: GenerationRequest) -> str:
        """Send ``request`` and return the raw response text."""
        client = self._get_client()
        
        logger.info(
            f"Calling Groq: model={request.model}, temperature={request.temperature}, "
            f"max_tokens={request.max_tokens}, prompt={len(request.prompt)} chars"
        )
        
        try:
            response = await client.chat.completions.create(
                model=request.model,
                messages=[{"role": "user", "content": request.prompt}],
                temperature=request.temperature,
                max_tokens=request.max_tokens,
            )
        except groq.APITimeoutError as e:
            logger.error(f"Groq request timed out: {e}")
            raise TransportError("Generative service did not respond in time") from e
        except groq.APIConnectionError as e:
            logger.error(f"Groq connection error: {e}")
            raise TransportError(f"Could not reach generative service: {e}") from e
        except groq.APIStatusError as e:
            logger.error(f"Groq API error: HTTP {e.status_code}")
            raise TransportError(
                f"Generative service returned HTTP {e.status_code}"
            ) from e
        
        content = None
        if response.choices:
            content = response.choices[0].message.content
        
        if not content or not content.strip():
            logger.error("Groq response contained no content")
            raise ContractViolation("No content in generative service response", raw_text=content)
        
        logger.debug(f"Groq response: {len(content)} chars")
        return content
    
    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None
