"""Execution engine for plan submission."""

from __future__ import annotations

from typing import Callable, Optional

import structlog

from colormesh.core.errors import ValidationError
from colormesh.orchestration.registry import ResourceRegistry, SubmissionContext
from colormesh.orchestration.results import ResultCollector

logger = structlog.get_logger()

StepCallback = Callable[[int, int, str], None]


class ExecutionEngine:
    """Submits plan resources one at a time in topological order."""

    def __init__(self, registry: ResourceRegistry) -> None:
        self._registry = registry

    def execute(
        self,
        ctx: SubmissionContext,
        collector: ResultCollector,
        on_step: Optional[StepCallback] = None,
        offset: int = 0,
        total: int | None = None,
    ) -> None:
        """
        Submit every resource of ``ctx.plan``.

        Halts at the first provider failure and raises ProvisioningFailure
        carrying the resources created so far. Nothing is rolled back.

        ``offset`` and ``total`` let progress continue from steps reported
        earlier in the same run.
        """
        order = ctx.plan.order()
        kinds = {ctx.plan.get(rid).kind for rid in order}
        missing = sorted(k.value for k in kinds - set(self._registry.list()))
        if missing:
            raise ValidationError(f"No handler registered for: {', '.join(missing)}")

        total_steps = total if total is not None else offset + len(order)
        for step, resource_id in enumerate(order, offset + 1):
            resource = ctx.plan.get(resource_id)
            self._check_parents(ctx, resource_id)

            handler = self._registry.get(resource.kind)
            if on_step is not None:
                on_step(step, total_steps, resource_id)
            logger.debug("submitting_resource", step=step, total=total_steps, resource_id=resource_id)

            try:
                handle = handler.submit(ctx, resource)  # type: ignore[union-attr]
            except Exception as e:
                logger.error(
                    "resource_failed",
                    resource_id=resource_id,
                    kind=handler.display_name,  # type: ignore[union-attr]
                    error=str(e),
                    created=collector.created,
                )
                raise collector.failure(resource_id, e) from e

            ctx.handles[resource_id] = handle
            collector.record(resource_id, handle)
            logger.info("resource_created", resource_id=resource_id, identifier=handle.identifier)

    def _check_parents(self, ctx: SubmissionContext, resource_id: str) -> None:
        pending = [p for p in ctx.plan.dependencies_of(resource_id) if p not in ctx.handles]
        if pending:
            raise ValidationError(
                f"{resource_id} submitted before its dependencies",
                details={"pending": pending},
            )

