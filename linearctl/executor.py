"""Apply an UpdatePlan to each issue of a working set, one issue at a time."""

import asyncio
import logging
from collections.abc import Callable

from linearctl.api.base import RemoteClient
from linearctl.errors import UpdateRejectedError
from linearctl.models import BatchFailure, BatchResult, Issue
from linearctl.payload import PlannedRelation, UpdatePlan
from linearctl.retry import RetryConfig, Sleep, run_with_retries

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[Issue, bool], None]


class BatchExecutor:
    """Sequential per-issue updates with retry and backoff.

    Issues are processed in order and never concurrently: Linear rate-limits
    writes, and a strict order keeps retries and progress reporting unambiguous.
    A failure is recorded against its issue and the batch moves on.
    """

    def __init__(
        self,
        client: RemoteClient,
        retry: RetryConfig | None = None,
        sleep: Sleep = asyncio.sleep,
        on_progress: ProgressCallback | None = None,
    ) -> None:
        self._client = client
        self._retry = retry or RetryConfig()
        self._sleep = sleep
        self._on_progress = on_progress

    async def execute(self, issues: list[Issue], plan: UpdatePlan) -> BatchResult:
        result = BatchResult()

        for issue in issues:
            try:
                await self.apply(issue, plan)
            except Exception as exc:
                logger.debug("Giving up on %s: %s", issue.identifier, exc)
                result.failed.append(BatchFailure(id=issue.identifier, error=str(exc) or type(exc).__name__))
                succeeded = False
            else:
                result.succeeded.append(issue.identifier)
                succeeded = True

            if self._on_progress:
                self._on_progress(issue, succeeded)

        return result

    async def apply(self, issue: Issue, plan: UpdatePlan) -> None:
        """Update one issue, then create its planned relations. Raises after retries are exhausted."""
        current_label_ids = None
        if plan.needs_current_labels:
            labels = await self._client.get_issue_labels(issue.id)
            current_label_ids = [label.id for label in labels]

        if "stateId" in plan.fields and plan.is_duplicate_target(issue.id):
            logger.warning("%s is the duplicate target, leaving its state unchanged", issue.identifier)

        payload = plan.payload_for(current_label_ids, issue_id=issue.id)
        if payload:
            await self.update_with_retry(issue, payload)

        for relation in plan.relations:
            if relation.related_id == issue.id:
                logger.warning("Skipping %s relation from %s to itself", relation.type, issue.identifier)
                continue
            await self._relate_with_retry(issue, relation)

    async def update_with_retry(self, issue: Issue, payload: dict) -> None:
        async def attempt() -> None:
            if not await self._client.update_issue(issue.id, payload):
                raise UpdateRejectedError("Update failed")

        await run_with_retries(attempt, cfg=self._retry, sleep=self._sleep, label=f"Update {issue.identifier}")

    async def _relate_with_retry(self, issue: Issue, relation: PlannedRelation) -> None:
        async def attempt() -> None:
            if not await self._client.create_issue_relation(issue.id, relation.related_id, relation.type):
                raise UpdateRejectedError(f"Could not create {relation.type} relation to {relation.related_key}")

        await run_with_retries(
            attempt, cfg=self._retry, sleep=self._sleep, label=f"Relate {issue.identifier} → {relation.related_key}"
        )
