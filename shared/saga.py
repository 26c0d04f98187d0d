import asyncio
from typing import Any, Awaitable, Callable

import structlog
from shared.observability import pos_saga_compensation_total

logger = structlog.get_logger(__name__)

Step = Callable[[dict[str, Any]], Awaitable[None]]


class SagaStepTimeout(Exception):
    def __init__(self, step_name: str, timeout: float):
        self.step_name = step_name
        super().__init__(f"step '{step_name}' exceeded {timeout}s")


class SagaStep:
    def __init__(self, name: str, action: Step, compensation: Step | None = None):
        self.name = name
        self.action = action
        self.compensation = compensation


class SagaOrchestrator:
    def __init__(self, name: str, step_timeout: float | None = None):
        self.name = name
        self.step_timeout = step_timeout
        self.steps: list[SagaStep] = []

    def add_step(self, name: str, action: Step, compensation: Step | None = None):
        """Builder pattern to add a step and its rollback compensation."""
        self.steps.append(SagaStep(name, action, compensation))
        return self

    async def execute(self, ctx: dict[str, Any]) -> bool:
        """Run steps in order. On any failure, compensate completed steps and re-raise."""
        executed_steps = []
        step = None
        try:
            for step in self.steps:
                await self._run(step, ctx)
                executed_steps.append(step)
            return True
        except Exception as e:
            logger.error("saga.failed", saga=self.name, step=step.name if step else None, error=str(e))
            await self._rollback(executed_steps, ctx)
            raise

    async def _run(self, step: SagaStep, ctx: dict[str, Any]):
        if self.step_timeout is None:
            await step.action(ctx)
            return
        try:
            await asyncio.wait_for(step.action(ctx), timeout=self.step_timeout)
        except asyncio.TimeoutError as e:
            raise SagaStepTimeout(step.name, self.step_timeout) from e

    async def _rollback(self, executed_steps: list[SagaStep], ctx: dict[str, Any]):
        """Compensations run in reverse order; one failing must not block the rest."""
        for step in reversed(executed_steps):
            if not step.compensation:
                continue
            try:
                await step.compensation(ctx)
                logger.info("saga.compensated", saga=self.name, step=step.name)
                pos_saga_compensation_total.labels(saga=self.name, step_name=step.name).inc()
            except Exception as ce:
                logger.critical(
                    "saga.compensation_failed",
                    saga=self.name,
                    step=step.name,
                    error=str(ce),
                    note="manual intervention may be required",
                )
