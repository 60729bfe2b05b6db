"""Ordered actions with compensations for multi-service writes.

The identity provider and the document store share no transaction. A flow
that writes to both registers each write as a step with the action that
undoes it; when a later step fails, the completed steps are undone in
reverse order and the original failure propagates to the caller.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

import structlog

logger = structlog.get_logger()

Action = Callable[[], Awaitable[Any]]


@dataclass
class SagaStep:
    name: str
    action: Action
    compensation: Action | None = None


@dataclass
class Saga:
    name: str
    steps: list[SagaStep] = field(default_factory=list)

    def step(self, name: str, action: Action, compensation: Action | None = None) -> Saga:
        self.steps.append(SagaStep(name, action, compensation))
        return self

    async def run(self) -> list[Any]:
        """Run every step in order and return their results."""
        completed: list[SagaStep] = []
        results: list[Any] = []
        for step in self.steps:
            try:
                results.append(await step.action())
            except Exception as exc:
                logger.warning("saga_step_failed", saga=self.name, step=step.name, error=str(exc))
                await self._compensate(completed)
                raise
            completed.append(step)
        return results

    async def _compensate(self, completed: list[SagaStep]) -> None:
        for step in reversed(completed):
            if step.compensation is None:
                continue
            try:
                await step.compensation()
            except Exception as exc:  # noqa: BLE001
                # Keep undoing the remaining steps; the original failure is re-raised by run()
                logger.error("saga_compensation_failed", saga=self.name, step=step.name, error=str(exc))
            else:
                logger.info("saga_step_compensated", saga=self.name, step=step.name)
