# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cmscale/workflow/engine.py
from __future__ import annotations

import logging
import time
from typing import Callable, Dict, Optional

from cmscale.errors import InvalidUsage
from cmscale.observers.dispatcher import EventBus
from cmscale.observers.events import (
    StepFailed,
    StepSkipped,
    StepStarted,
    StepSucceeded,
    WorkflowCompleted,
    WorkflowStarted,
    new_ctx,
)
from cmscale.utils.serialize import format_duration
from .state import OperationKind, StateStore, Step, WorkflowState, steps_for

log = logging.getLogger("cmscale")


class WorkflowEngine:
    """
    Runs an operation's fixed step list, persisting the step in flight.

    The state store is written immediately before each step starts, so a
    crash or failure always leaves the interrupted step on disk. Resume
    re-runs that step from the top.
    """

    def __init__(
        self,
        *,
        handlers: Dict[Step, Callable[[], None]],
        store: StateStore,
        bus: Optional[EventBus] = None,
        run_ctx: Optional[dict] = None,
        mode: str = "run",
        clock: Callable[[], float] = time.monotonic,
    ):
        self.handlers = handlers
        self.store = store
        self.bus = bus or EventBus()
        self.run_ctx = run_ctx or new_ctx(cluster="-", operation="-")
        self.mode = mode
        self._clock = clock

    def _emit(self, event_cls, **fields) -> None:
        self.bus.emit(event_cls(**self.run_ctx, **fields))

    def _start_index(self, kind: OperationKind, state: WorkflowState) -> int:
        plan = steps_for(kind)
        if state.is_none:
            return 0
        if state.is_done:
            return len(plan)
        if state.step not in plan:
            raise InvalidUsage(
                f"Persisted step '{state.step.value}' is not part of {kind.value}; "
                "remove the state file or run the matching action"
            )
        return plan.index(state.step)

    def run(self, kind: OperationKind, state: WorkflowState) -> WorkflowState:
        plan = steps_for(kind)
        start = self._start_index(kind, state)
        t_run = self._clock()

        self._emit(
            WorkflowStarted,
            mode=self.mode,
            steps=[s.value for s in plan],
            resume_from=None if state.is_none else str(state),
        )
        if state.is_done:
            log.info(f"Previous {kind.value} run already completed; nothing to resume.")

        for step in plan[:start]:
            log.info(f"Skipping completed step [{step.value}]")
            self._emit(StepSkipped, step=step.value)

        for ordinal, step in enumerate(plan[start:], start=start + 1):
            current = WorkflowState.at(step)
            self.store.save(current)
            self._emit(StepStarted, step=step.value, ordinal=ordinal)
            log.info(f"Step [{step.value}] started ({ordinal}/{len(plan)})")

            t0 = self._clock()
            try:
                self.handlers[step]()
            except Exception as exc:
                log.error(f"Step [{step.value}] failed: {exc}")
                self._emit(
                    StepFailed,
                    step=step.value,
                    error_type=exc.__class__.__name__,
                    error=str(exc),
                )
                raise

            elapsed = self._clock() - t0
            log.info(f"Step [{step.value}] took {format_duration(elapsed)}.")
            self._emit(StepSucceeded, step=step.value, duration_s=round(elapsed, 3))
            current = WorkflowState.none()

        current = WorkflowState.done()
        self.store.save(current)
        log.info(f"{kind.value} completed successfully.")
        self._emit(WorkflowCompleted, duration_s=round(self._clock() - t_run, 3))
        return current
