"""
Persistence side of a finished drag.

The drag controller hands a PartialDateUpdate to a CommitDispatcher, which
runs the gateway call as an asyncio task and reports the outcome through a
notify callback. Nothing waits on the task: a failed commit is reported and
otherwise ignored, there is no retry and no rollback.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Mapping, Protocol

import httpx

from .parse_items import dump_items, load_items
from .timeline_models import PartialDateUpdate, ScheduledItem

logger = logging.getLogger(__name__)


class CommitError(Exception):
    """Raised by a gateway when an update could not be persisted."""


class CommitGateway(Protocol):
    async def update_partial_dates(self, update: PartialDateUpdate) -> None:
        """Persist the present fields of update; raise on failure."""


@dataclass(frozen=True)
class CommitResult:
    update: PartialDateUpdate
    success: bool
    error: str | None = None


Notifier = Callable[[CommitResult], None]


def log_notifier(result: CommitResult) -> None:
    """Default out-of-band channel: the log."""
    if result.success:
        logger.info("Dates updated for %s: %s", result.update.item_id, result.update.to_payload())
    else:
        logger.error("Failed to update dates for %s: %s", result.update.item_id, result.error)


class CommitDispatcher:
    """Fire-and-forget runner for gateway calls."""

    def __init__(
        self,
        gateway: CommitGateway,
        notify: Notifier | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self.gateway = gateway
        self.notify = notify or log_notifier
        self._loop = loop
        self._pending: set[asyncio.Task[CommitResult]] = set()

    @property
    def pending(self) -> int:
        return len(self._pending)

    def submit(self, update: PartialDateUpdate) -> asyncio.Task[CommitResult]:
        """Schedule the commit on the event loop and return immediately."""

        loop = self._loop or asyncio.get_running_loop()
        task = loop.create_task(self._run(update))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def drain(self) -> list[CommitResult]:
        """Wait for outstanding commits. Only for shutdown and tests."""
        if not self._pending:
            return []
        return list(await asyncio.gather(*self._pending))

    async def _run(self, update: PartialDateUpdate) -> CommitResult:
        try:
            await self.gateway.update_partial_dates(update)
        except Exception as exc:  # reported through notify, never raised into the pointer handlers
            result = CommitResult(update=update, success=False, error=str(exc) or type(exc).__name__)
        else:
            result = CommitResult(update=update, success=True)
        try:
            self.notify(result)
        except Exception:
            logger.exception("Commit notifier failed for %s", update.item_id)
        return result


class InMemoryCommitGateway:
    """Keeps items in a dict; useful for tests and offline sessions."""

    def __init__(self, items: Iterable[ScheduledItem] = ()) -> None:
        self.items: dict[str, ScheduledItem] = {item.id: item for item in items}
        self.received: list[PartialDateUpdate] = []

    async def update_partial_dates(self, update: PartialDateUpdate) -> None:
        self.received.append(update)
        item = self.items.get(update.item_id)
        if item is None:
            raise CommitError(f"item '{update.item_id}' not found")
        update.apply_to(item)


class YamlCommitGateway:
    """Writes updates back into an items YAML file."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    async def update_partial_dates(self, update: PartialDateUpdate) -> None:
        items = load_items(str(self.path))
        for item in items:
            if item.id == update.item_id:
                update.apply_to(item)
                break
        else:
            raise CommitError(f"item '{update.item_id}' not found in {self.path}")
        dump_items(items, str(self.path))
        logger.debug("Wrote %s to %s", update.to_payload(), self.path)


class HttpCommitGateway:
    """
    PATCHes the REST backend at {base_url}/api/projects/{id}.

    The backend validates name and status on every PATCH, so when the item is
    known its name, and its status and meta["client_id"] when set, are sent
    alongside the dates. Anything unknown locally is omitted rather than sent
    as null, as are date fields the drag did not touch.
    """

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        items: Mapping[str, ScheduledItem] | None = None,
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.items = dict(items or {})
        self._client = client
        self.timeout = timeout

    def build_payload(self, update: PartialDateUpdate) -> dict[str, object]:
        payload: dict[str, object] = {}
        item = self.items.get(update.item_id)
        if item is not None:
            payload["name"] = item.name
            meta = item.meta or {}
            if "client_id" in meta:
                payload["client_id"] = meta["client_id"]
            if item.status is not None:
                payload["status"] = item.status
        payload.update(update.to_payload())
        return payload

    async def update_partial_dates(self, update: PartialDateUpdate) -> None:
        url = f"{self.base_url}/api/projects/{update.item_id}"
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        payload = self.build_payload(update)

        try:
            if self._client is not None:
                response = await self._client.patch(url, json=payload, headers=headers, timeout=self.timeout)
            else:
                async with httpx.AsyncClient() as client:
                    response = await client.patch(url, json=payload, headers=headers, timeout=self.timeout)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise CommitError(f"backend rejected update for {update.item_id}: HTTP {exc.response.status_code}") from exc
        except httpx.RequestError as exc:
            raise CommitError(f"request for {update.item_id} failed: {exc}") from exc
