"""
Step Executor

Runs named units of work at most once per pipeline run.

Semantics:
    - First execution of a step name: run the work, persist the result, return it
    - Any later execution of the same name in the same run (same process, or
      a resumed run against a durable store): return the persisted result
      without running the work again
    - A failure inside the work is not persisted; the step stays retryable
    - No built-in backoff; retry policy belongs to the caller

Step names must be deterministic for a given run (e.g. "analyze-action-3"),
otherwise a resumed run cannot find its earlier results.

Typed results:
    Results are persisted as JSON-compatible data. Pass result_type (anything
    pydantic.TypeAdapter accepts) to dump on save and re-validate on replay:

    >>> plan = await steps.run("validate-planning-response", _validate, result_type=Plan)

Cancellation:
    The work runs in a shielded task. If the awaiting caller is cancelled,
    the in-flight work still completes and its result is still persisted.
    Once cancel_event is set, no further step is started.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from functools import lru_cache
from typing import Any, TypeVar

from pydantic import TypeAdapter

from ontology_agent.errors import RunCancelledError
from ontology_agent.storage.base import StepRecord, StepStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


@lru_cache(maxsize=128)
def _adapter_for(result_type: Any) -> TypeAdapter[Any]:
    return TypeAdapter(result_type)


class StepExecutor:
    """
    Per-run durable step runner.

    Args:
        store: Where step results are persisted
        run_id: Durable run identifier
        cancel_event: Once set, starting a new step raises RunCancelledError
    """

    def __init__(
        self,
        store: StepStore,
        run_id: str,
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> None:
        self.store = store
        self.run_id = run_id
        self._cancel_event = cancel_event
        self._executed: list[str] = []
        self._replayed: list[str] = []
        self._in_flight: set[asyncio.Task[Any]] = set()

    @property
    def executed_steps(self) -> list[str]:
        """Step names whose work ran in this executor."""
        return list(self._executed)

    @property
    def replayed_steps(self) -> list[str]:
        """Step names served from the store."""
        return list(self._replayed)

    @property
    def cancelled(self) -> bool:
        return self._cancel_event is not None and self._cancel_event.is_set()

    async def run(
        self,
        step_name: str,
        fn: Callable[[], Awaitable[T]],
        result_type: Any = None,
    ) -> T:
        """
        Execute fn once for this (run_id, step_name).

        Args:
            step_name: Deterministic step name
            fn: Zero-argument coroutine function doing the work
            result_type: Type used to persist and re-validate the result
                (None = JSON-compatible value, stored as is)

        Returns:
            The fresh or replayed result

        Raises:
            RunCancelledError: cancel_event was set before the step started
            Exception: Whatever fn raised (nothing is persisted)
        """
        adapter = _adapter_for(Any if result_type is None else result_type)

        record = await self.store.load(self.run_id, step_name)
        if record is not None:
            logger.debug(f"[{self.run_id}] replaying step {step_name}")
            self._replayed.append(step_name)
            return adapter.validate_python(record.value)

        if self.cancelled:
            raise RunCancelledError(
                f"Run {self.run_id} was cancelled before step {step_name} started"
            )

        task = asyncio.ensure_future(self._execute(step_name, fn, adapter))
        self._in_flight.add(task)
        task.add_done_callback(self._on_task_done)
        return await asyncio.shield(task)

    async def _execute(
        self,
        step_name: str,
        fn: Callable[[], Awaitable[T]],
        adapter: TypeAdapter[Any],
    ) -> T:
        result = await fn()
        value = adapter.dump_python(result, mode="json", by_alias=True)

        saved = await self.store.save(self.run_id, step_name, value)
        self._executed.append(step_name)
        if saved:
            return result

        # Another writer won the race; its result is the one replays will see
        existing = await self.store.load(self.run_id, step_name)
        if existing is None:
            return result
        return adapter.validate_python(existing.value)

    def _on_task_done(self, task: asyncio.Task[Any]) -> None:
        self._in_flight.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            # Retrieved here so an abandoned (caller-cancelled) step still logs
            logger.debug(f"[{self.run_id}] step failed: {exc!r}")

    async def drain(self) -> None:
        """Wait for steps whose callers were cancelled to finish persisting."""
        if self._in_flight:
            await asyncio.gather(*self._in_flight, return_exceptions=True)

    async def completed_steps(self) -> list[StepRecord]:
        """Persisted records of this run, in completion order."""
        return await self.store.completed_steps(self.run_id)
