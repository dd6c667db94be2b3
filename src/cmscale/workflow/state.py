# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cmscale/workflow/state.py

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, Optional, Protocol, Tuple

from cmscale.errors import InvalidUsage

log = logging.getLogger("cmscale")

DONE_MARKER = "done"


class OperationKind(str, Enum):
    SCALE_UP = "scaleup"
    SCALE_DOWN = "scaledown"


class Step(str, Enum):
    INSTALL_HOSTS = "install_hosts"
    REGISTER_IN_CLUSTER = "register_in_cluster"
    VERIFY_COMMISSION = "verify_commission"
    WAIT_FOR_PARCELS = "wait_for_parcels"
    APPLY_HOST_TEMPLATE = "apply_host_template"
    VERIFY_TAGS = "verify_tags"
    APPLY_STALE_CONFIGS = "apply_stale_configs"
    REMOVE_HOSTS = "remove_hosts"


STEP_PLANS: Dict[OperationKind, Tuple[Step, ...]] = {
    OperationKind.SCALE_UP: (
        Step.INSTALL_HOSTS,
        Step.REGISTER_IN_CLUSTER,
        Step.VERIFY_COMMISSION,
        Step.WAIT_FOR_PARCELS,
        Step.APPLY_HOST_TEMPLATE,
        Step.VERIFY_TAGS,
        Step.APPLY_STALE_CONFIGS,
    ),
    OperationKind.SCALE_DOWN: (
        Step.REMOVE_HOSTS,
        Step.APPLY_STALE_CONFIGS,
    ),
}


def steps_for(kind: OperationKind) -> Tuple[Step, ...]:
    return STEP_PLANS[kind]


class StateKind(str, Enum):
    NONE = "NONE"
    AT = "AT"
    DONE = "DONE"


@dataclass(frozen=True)
class WorkflowState:
    """
    Where a workflow stands: not started, a step in flight, or finished.

    Serialized to the state file as "", the step name, or "done".
    """

    kind: StateKind = StateKind.NONE
    step: Optional[Step] = None

    @classmethod
    def none(cls) -> "WorkflowState":
        return cls()

    @classmethod
    def at(cls, step: Step) -> "WorkflowState":
        return cls(kind=StateKind.AT, step=step)

    @classmethod
    def done(cls) -> "WorkflowState":
        return cls(kind=StateKind.DONE)

    @property
    def is_none(self) -> bool:
        return self.kind is StateKind.NONE

    @property
    def is_done(self) -> bool:
        return self.kind is StateKind.DONE

    def serialize(self) -> str:
        if self.kind is StateKind.AT:
            return self.step.value
        if self.kind is StateKind.DONE:
            return DONE_MARKER
        return ""

    @classmethod
    def parse(cls, text: str) -> "WorkflowState":
        value = text.strip()
        if not value:
            return cls.none()
        if value == DONE_MARKER:
            return cls.done()
        try:
            return cls.at(Step(value))
        except ValueError:
            raise InvalidUsage(f"Unknown step '{value}' in persisted state") from None

    def __str__(self) -> str:
        return self.serialize() or "<none>"


class StateStore(Protocol):
    def load(self) -> WorkflowState: ...

    def save(self, state: WorkflowState) -> None: ...

    def clear(self) -> None: ...


class FileStateStore:
    """Single-value state file; the only thing a run persists."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def load(self) -> WorkflowState:
        if not self.path.is_file():
            return WorkflowState.none()
        return WorkflowState.parse(self.path.read_text())

    def save(self, state: WorkflowState) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(state.serialize() + "\n")
        log.debug(f"state file {self.path} <- {state}")

    def clear(self) -> None:
        if self.path.exists():
            self.path.unlink()
            log.debug(f"state file {self.path} removed")


class MemoryStateStore:
    """Store used for simulations so the on-disk resume marker is untouched."""

    def __init__(self, initial: Optional[WorkflowState] = None):
        self.state = initial or WorkflowState.none()
        self.history: list[WorkflowState] = []

    def load(self) -> WorkflowState:
        return self.state

    def save(self, state: WorkflowState) -> None:
        self.state = state
        self.history.append(state)

    def clear(self) -> None:
        self.state = WorkflowState.none()
