"""Submission collaborator used at the async boundary of the workflow."""
import asyncio
import logging
from typing import Any, Dict, List, Protocol

from utils.helpers import generate_intake_id

logger = logging.getLogger(__name__)


class SubmissionService(Protocol):
    """Receives the order payload; results carry at least ``success`` and ``message``."""

    async def submit(self, payload: Dict[str, Any]) -> Dict[str, Any]: ...

    async def save_draft(self, payload: Dict[str, Any]) -> Dict[str, Any]: ...


class InMemorySubmissionService:
    """Keeps submitted payloads in memory. ``fail``/``raise_error`` simulate backend errors."""

    def __init__(self, fail: bool = False, raise_error: bool = False):
        self.fail = fail
        self.raise_error = raise_error
        self.submitted: List[Dict[str, Any]] = []
        self.drafts: List[Dict[str, Any]] = []

    async def _store(self, bucket: List[Dict[str, Any]], payload: Dict[str, Any], kind: str) -> Dict[str, Any]:
        await asyncio.sleep(0)
        if self.raise_error:
            raise ConnectionError(f"{kind} backend unavailable")
        if self.fail:
            return {"success": False, "message": f"{kind} rejected by backend"}
        order_id = payload.get("order_id") or generate_intake_id()
        bucket.append({**payload, "order_id": order_id})
        logger.info(f"{kind} stored as {order_id}")
        return {"success": True, "order_id": order_id, "message": f"{kind} stored"}

    async def submit(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self._store(self.submitted, payload, "Order")

    async def save_draft(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self._store(self.drafts, payload, "Draft")
