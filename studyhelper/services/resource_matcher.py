"""Picks study resources relevant to the selected task."""

import logging
from typing import Any, Dict, Iterable, List, Optional, Protocol

import httpx
from pydantic import ValidationError

from studyhelper.core.config import settings
from studyhelper.core.constants import RESOURCE_FALLBACK_LIMIT
from studyhelper.schemas.resource import Resource
from studyhelper.schemas.task import Task

logger = logging.getLogger(__name__)


class ResourceProvider(Protocol):
    async def get_resources(self) -> List[Dict[str, Any]]:
        ...


class HttpResourceProvider:
    """Resource provider backed by an HTTP API (``GET {base}/resources``)."""
    
    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or settings.RESOURCE_PROVIDER_URL or "").rstrip("/")
        self.timeout = timeout if timeout is not None else settings.PROVIDER_TIMEOUT
        self._transport = transport
    
    async def get_resources(self) -> List[Dict[str, Any]]:
        if not self.base_url:
            raise RuntimeError("RESOURCE_PROVIDER_URL is not configured")
        
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.get(f"{self.base_url}/resources")
            response.raise_for_status()
            payload = response.json()
        
        if isinstance(payload, dict):
            payload = payload.get("resources")
        if not isinstance(payload, list):
            raise ValueError("Unexpected resource payload")
        return payload


def parse_resources(records: Iterable[Any]) -> List[Resource]:
    """Validate raw records, skipping the ones that are not resources."""
    resources = []
    for record in records:
        if isinstance(record, Resource):
            resources.append(record)
            continue
        try:
            resources.append(Resource.model_validate(record))
        except ValidationError as e:
            logger.warning(f"Skipping malformed resource record: {e.error_count()} error(s)")
    return resources


def is_relevant(resource: Resource, keyword: str) -> bool:
    """Substring match on title/description/topic, exact match on tags (case-insensitive)."""
    keyword = keyword.lower()
    for text in (resource.title, resource.description, resource.topic):
        if text and keyword in text.lower():
            return True
    return any(tag.lower() == keyword for tag in resource.tags)


def match_resources(task: Task, resources: List[Resource]) -> List[Resource]:
    """
    Resources relevant to ``task``.
    
    All matches are returned in input order. With no match, the first few
    resources of the (recency ordered) input are returned instead.
    """
    matches = [r for r in resources if is_relevant(r, task.title)]
    if matches:
        return matches
    return list(resources[:RESOURCE_FALLBACK_LIMIT])
