# codesync/webhook/ingestor.py
"""
Webhook ingestion.

WebhookIngestor.handle() decides what a delivery means and returns a
WebhookDecision; it never runs the pipeline itself. An accepted push carries
a `task` coroutine factory that the HTTP layer schedules after responding.

Decisions:
    bad/missing signature           -> 401, nothing else happens
    no event header, bad JSON       -> 400
    ping                            -> 200 pong
    other event types               -> 200 ignored
    push to a non-default branch    -> 200 ignored
    push for an unknown repository  -> 200 ignored
    repository already syncing      -> 200 skipped
    otherwise                       -> 202 accepted, one sync scheduled
"""

from __future__ import annotations

import json
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional

from codesync.core.exceptions import SyncInProgressError, ValidationError
from codesync.logging.logger import get_logger
from codesync.logging.tags import WEBHOOK
from codesync.progress.registry import SyncJob
from codesync.repository.base import RepositoryClient, RepositoryRef
from codesync.state.schema import RepositorySyncRecord, WebhookEventLog, WebhookEventStatus
from codesync.state.store import SyncStateStore
from codesync.sync.models import SyncRequest
from codesync.sync.orchestrator import SyncOrchestrator
from codesync.webhook.signature import SIGNATURE_HEADER, verify_signature

logger = get_logger(__name__)

EVENT_HEADER = "X-GitHub-Event"
DELIVERY_HEADER = "X-GitHub-Delivery"
BRANCH_PREFIX = "refs/heads/"

RepositoryFactory = Callable[[RepositoryRef], RepositoryClient]


@dataclass
class WebhookDecision:
    status_code: int
    body: Dict[str, Any]
    task: Optional[Callable[[], Awaitable[None]]] = field(default=None, repr=False)

    @property
    def accepted(self) -> bool:
        return self.task is not None


@dataclass
class PushEvent:
    full_name: str
    default_branch: Optional[str]
    ref: str
    before: Optional[str]
    after: Optional[str]
    commits: int
    deleted: bool = False

    @property
    def branch(self) -> Optional[str]:
        if not self.ref.startswith(BRANCH_PREFIX):
            return None
        return self.ref[len(BRANCH_PREFIX) :]

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "PushEvent":
        """
        Raises:
            ValidationError: repository.full_name or ref is missing
        """
        repository = payload.get("repository") or {}
        full_name = repository.get("full_name")
        if not full_name:
            owner = (repository.get("owner") or {}).get("login") or (repository.get("owner") or {}).get("name")
            name = repository.get("name")
            full_name = f"{owner}/{name}" if owner and name else None
        ref = payload.get("ref")
        if not full_name or not ref:
            raise ValidationError("Push payload needs repository.full_name and ref")
        return cls(
            full_name=full_name,
            default_branch=repository.get("default_branch"),
            ref=ref,
            before=payload.get("before"),
            after=payload.get("after"),
            commits=len(payload.get("commits") or []),
            deleted=bool(payload.get("deleted", False)),
        )


def _parse_json(body: bytes) -> Optional[Dict[str, Any]]:
    try:
        data = json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, ValueError):
        return None
    return data if isinstance(data, dict) else None


class WebhookIngestor:
    """
    Args:
        orchestrator: Runs the accepted syncs
        state_store: Sync records (registration, per-repository secret) and the event log
        repository_factory: Builds a repository client for an accepted push
        secret: Fallback secret for repositories without their own
    """

    def __init__(
        self,
        *,
        orchestrator: SyncOrchestrator,
        state_store: SyncStateStore,
        repository_factory: RepositoryFactory,
        secret: Optional[str] = None,
    ) -> None:
        self.orchestrator = orchestrator
        self.state_store = state_store
        self.repository_factory = repository_factory
        self.secret = secret

    async def _record_for(self, payload: Optional[Mapping[str, Any]]) -> Optional[RepositorySyncRecord]:
        if payload is None:
            return None
        full_name = (payload.get("repository") or {}).get("full_name")
        if not full_name:
            return None
        try:
            ref = RepositoryRef.parse(full_name)
        except ValueError:
            return None
        return await self.state_store.get_sync_record(ref.codebase_id)

    async def handle(self, headers: Mapping[str, str], body: bytes) -> WebhookDecision:
        """
        Decide what to do with one delivery.

        Raises:
            InvalidSignatureError: Signature missing or wrong (HTTP 401)
            ValidationError: Missing event header or unusable payload (HTTP 400)
        """
        lowered = {k.lower(): v for k, v in headers.items()}
        event_type = lowered.get(EVENT_HEADER.lower())
        delivery_id = lowered.get(DELIVERY_HEADER.lower())

        payload = _parse_json(body)
        record = await self._record_for(payload)
        secret = (record.webhook_secret if record is not None else None) or self.secret
        verify_signature(body, lowered.get(SIGNATURE_HEADER.lower()), secret)

        if not event_type:
            raise ValidationError(f"Missing {EVENT_HEADER} header")
        if payload is None:
            raise ValidationError("Webhook body is not a JSON object")

        if event_type == "ping":
            logger.info(f"{WEBHOOK} Ping received (delivery={delivery_id})")
            return WebhookDecision(200, {"status": "pong"})

        if event_type != "push":
            logger.debug(f"{WEBHOOK} Ignoring '{event_type}' event")
            return WebhookDecision(200, {"status": "ignored", "reason": f"event '{event_type}' not handled"})

        push = PushEvent.from_payload(payload)
        return await self._handle_push(push, record, delivery_id)

    async def _handle_push(
        self,
        push: PushEvent,
        record: Optional[RepositorySyncRecord],
        delivery_id: Optional[str],
    ) -> WebhookDecision:
        if record is None:
            logger.info(f"{WEBHOOK} Push for unregistered repository {push.full_name}, ignoring")
            return WebhookDecision(200, {"status": "ignored", "reason": "repository not registered"})

        target_branch = record.branch or push.default_branch
        if push.deleted or push.branch is None or push.branch != target_branch:
            logger.info(f"{WEBHOOK} Push to {push.ref} of {push.full_name} is not {target_branch}, ignoring")
            return WebhookDecision(
                200, {"status": "ignored", "reason": f"push to {push.ref} is not the default branch"}
            )

        codebase_id = record.codebase_id
        if self.orchestrator.is_syncing(codebase_id):
            logger.info(f"{WEBHOOK} {codebase_id} is already syncing, skipping push")
            return WebhookDecision(200, {"status": "skipped", "reason": "sync already in progress"})

        ref = RepositoryRef.parse(push.full_name, branch=push.branch)
        repository = self.repository_factory(ref)
        request = SyncRequest(
            codebase_id=codebase_id,
            repository=repository,
            full_name=push.full_name,
            owner=ref.owner,
            name=ref.name,
            branch=push.branch,
            trigger="webhook",
        )
        try:
            job = self.orchestrator.start(request)
        except SyncInProgressError:
            await repository.aclose()
            return WebhookDecision(200, {"status": "skipped", "reason": "sync already in progress"})

        event = WebhookEventLog(
            id=delivery_id or uuid.uuid4().hex,
            codebase_id=codebase_id,
            event_type="push",
            delivery_id=delivery_id,
            branch=push.branch,
            commits=push.commits,
            job_id=job.id,
        )
        try:
            await self.state_store.log_webhook_event(event)
        except Exception as e:
            self.orchestrator.abandon(request, job, e)
            await repository.aclose()
            raise
        logger.info(
            f"{WEBHOOK} Accepted push to {push.full_name}@{push.branch} "
            f"({push.commits} commits), job={job.id}"
        )

        async def task() -> None:
            await self._run(request, job, event)

        return WebhookDecision(202, {"status": "accepted", "job_id": job.id}, task=task)

    async def _run(self, request: SyncRequest, job: SyncJob, event: WebhookEventLog) -> None:
        started = time.perf_counter()
        try:
            result = await self.orchestrator.execute(request, job)
        except Exception as e:
            event.status = WebhookEventStatus.FAILED
            event.error = f"{type(e).__name__}: {e}"
            logger.error(f"{WEBHOOK} Sync for delivery {event.id} failed: {event.error}")
        else:
            event.status = WebhookEventStatus.COMPLETED
            event.changes_detected = result.changes_detected
            event.files_reindexed = result.files_reindexed
            if result.errors:
                event.error = f"{len(result.errors)} files failed"
        finally:
            await request.repository.aclose()

        event.processing_seconds = round(time.perf_counter() - started, 3)
        await self.state_store.log_webhook_event(event)


__all__ = ["PushEvent", "WebhookDecision", "WebhookIngestor"]
