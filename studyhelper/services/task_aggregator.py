"""
Task aggregation across enrollment groups.

Each group's tasks are fetched concurrently from the task provider. A group
whose fetch fails is logged and skipped; the rest of the aggregation carries
on.
"""

import asyncio
import logging
import math
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Protocol, Sequence

import httpx
from pydantic import ValidationError

from studyhelper.core.config import settings
from studyhelper.core.constants import CLASS_REPRESENTATIVE_ROLE
from studyhelper.core.exceptions import PartialSourceFailure
from studyhelper.schemas.task import AggregationResult, Task, UserProfile

logger = logging.getLogger(__name__)

ONE_DAY = timedelta(days=1)

# Numeric epochs above this are taken to be milliseconds
EPOCH_MILLIS_THRESHOLD = 1e11


class TaskProvider(Protocol):
    async def get_tasks_for_group(self, group_id: str) -> List[Dict[str, Any]]:
        ...


class HttpTaskProvider:
    """Task provider backed by an HTTP API (``GET {base}/groups/{id}/tasks``)."""
    
    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or settings.TASK_PROVIDER_URL or "").rstrip("/")
        self.timeout = timeout if timeout is not None else settings.PROVIDER_TIMEOUT
        self._transport = transport
    
    async def get_tasks_for_group(self, group_id: str) -> List[Dict[str, Any]]:
        if not self.base_url:
            raise RuntimeError("TASK_PROVIDER_URL is not configured")
        
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.get(f"{self.base_url}/groups/{group_id}/tasks")
            response.raise_for_status()
            payload = response.json()
        
        # Accept a bare list or an envelope
        if isinstance(payload, dict):
            payload = payload.get("tasks", payload.get("activities"))
        if not isinstance(payload, list):
            raise ValueError(f"Unexpected task payload for group {group_id}")
        return payload


def parse_due_at(value: Any) -> datetime:
    """
    Normalize a due timestamp to an aware UTC datetime.
    
    Accepts ISO-8601 strings (naive values are UTC), numeric epochs in seconds
    or milliseconds, and datetimes.
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid due timestamp: {value!r}")
    
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, (int, float)):
        seconds = value / 1000 if abs(value) > EPOCH_MILLIS_THRESHOLD else value
        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError, ValueError) as e:
            raise ValueError(f"Due timestamp out of range: {value!r}") from e
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        dt = datetime.fromisoformat(text)
    else:
        raise ValueError(f"Invalid due timestamp: {value!r}")
    
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def days_left(due_at: datetime, now: datetime) -> int:
    """Whole days remaining, rounded up and never negative."""
    return max(0, math.ceil((due_at - now) / ONE_DAY))


def resolve_group_ids(profile: UserProfile) -> List[str]:
    """Class representatives see the groups they manage, everyone else their enrollments."""
    if profile.role == CLASS_REPRESENTATIVE_ROLE:
        return list(profile.managed_groups)
    return list(profile.enrolled_groups)


class TaskAggregator:
    """Collects upcoming tasks from every group a student belongs to."""
    
    def __init__(self, provider: TaskProvider):
        self.provider = provider
    
    async def aggregate(
        self, group_ids: Sequence[str], now: Optional[datetime] = None
    ) -> AggregationResult:
        """
        Return every task due strictly after ``now``, ordered by due date.
        
        An empty ``group_ids`` is reported as ``no_eligible_groups`` rather
        than as an empty task list.
        """
        if not group_ids:
            logger.info("No eligible groups to aggregate tasks from")
            return AggregationResult(no_eligible_groups=True)
        
        now = parse_due_at(now) if now is not None else datetime.now(timezone.utc)
        
        outcomes = await asyncio.gather(
            *(self._fetch_group(group_id) for group_id in group_ids),
            return_exceptions=True,
        )
        
        tasks: List[Task] = []
        failed: List[str] = []
        for group_id, outcome in zip(group_ids, outcomes):
            if isinstance(outcome, PartialSourceFailure):
                failed.append(group_id)
                continue
            if isinstance(outcome, BaseException):
                raise outcome
            tasks.extend(self._upcoming(group_id, outcome, now))
        
        tasks.sort(key=lambda t: t.due_at)
        
        logger.info(
            f"📋 Aggregated {len(tasks)} upcoming tasks from "
            f"{len(group_ids) - len(failed)}/{len(group_ids)} groups"
        )
        return AggregationResult(tasks=tasks, failed_groups=failed)
    
    async def _fetch_group(self, group_id: str) -> List[Dict[str, Any]]:
        try:
            return await self.provider.get_tasks_for_group(group_id)
        except Exception as e:
            logger.error(
                f"Error fetching tasks for group {group_id}: {e}",
                extra={"group_id": group_id},
            )
            raise PartialSourceFailure(str(e), group_id=group_id) from e
    
    def _upcoming(
        self, group_id: str, records: List[Dict[str, Any]], now: datetime
    ) -> List[Task]:
        upcoming = []
        for record in records or []:
            if not isinstance(record, dict):
                continue
            try:
                due_at = parse_due_at(record.get("dueAt", record.get("due_at", record.get("dueDate"))))
                if due_at <= now:
                    continue
                upcoming.append(
                    Task(
                        id=record["id"],
                        title=record["title"],
                        description=record.get("description", ""),
                        due_at=due_at,
                        group_id=group_id,
                        days_left=days_left(due_at, now),
                    )
                )
            except (KeyError, ValueError, ValidationError) as e:
                logger.warning(
                    f"Skipping malformed task record in group {group_id}: {e}",
                    extra={"group_id": group_id},
                )
        return upcoming
