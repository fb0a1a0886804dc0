"""Ordered actions with reverse-order compensation.

Identity and tenant rows live behind different commit boundaries, so a
multi-step flow cannot rely on one transaction. Each completed step registers
how to undo itself; when a later step raises, the registered compensations
run newest-first and the original error propagates.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from cart_trace.core.errors import RollbackFailure

logger = logging.getLogger(__name__)

T = TypeVar("T")

Compensation = Callable[[], Awaitable[Any]]


class Saga:
    """Async context manager that undoes completed steps on failure.

    Usage::

        async with Saga("create-client-user") as saga:
            identity = await saga.step(create_identity, lambda i: delete_identity(i.id))
            await saga.step(create_profile)
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._compensations: list[tuple[str, Compensation]] = []
        self.rollback_failures: list[RollbackFailure] = []

    async def __aenter__(self) -> Saga:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        if exc is not None:
            await self.compensate()
        return False

    async def step(
        self,
        action: Callable[[], Awaitable[T]],
        compensation: Callable[[T], Awaitable[Any]] | None = None,
        label: str | None = None,
    ) -> T:
        """Run ``action``; on success remember ``compensation(result)``."""
        result = await action()
        if compensation is not None:
            step_label = label or getattr(action, "__name__", "step")
            self._compensations.append(
                (step_label, _bind(compensation, result))
            )
        return result

    async def compensate(self) -> None:
        """Undo completed steps, newest first. Failures are logged, never raised."""
        while self._compensations:
            label, undo = self._compensations.pop()
            logger.warning("%s: compensating %s", self.name, label)
            try:
                await undo()
            except Exception as exc:
                logger.exception("%s: compensation for %s failed", self.name, label)
                self.rollback_failures.append(
                    RollbackFailure(f"Failed to undo {label}: {exc}")
                )


def _bind(compensation: Callable[[T], Awaitable[Any]], result: T) -> Compensation:
    async def undo() -> Any:
        return await compensation(result)

    return undo
