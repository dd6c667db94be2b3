# src/cmscale/observers/events.py

from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import List, Dict, Any, Optional
from datetime import datetime, timezone
import uuid


# ---------------------------------------------------------------------
# Base context and helper
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class BaseEvent:
    ts: str           # ISO timestamp
    run_id: str       # correlates all events in a single scale invocation
    cluster: str      # target cluster name
    operation: str    # scaleup / scaledown

    def dict(self) -> Dict[str, Any]:
        return asdict(self)


def new_ctx(cluster: str, operation: str, run_id: Optional[str] = None) -> Dict[str, Any]:
    return {
        "ts": datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z"),
        "run_id": run_id or str(uuid.uuid4()),
        "cluster": cluster,
        "operation": operation,
    }


# ---------------------------------------------------------------------
# Operation lifecycle
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class PlanPresented(BaseEvent):
    hosts: List[str]

@dataclass(frozen=True)
class WorkflowStarted(BaseEvent):
    mode: str
    steps: List[str]
    resume_from: Optional[str] = None

@dataclass(frozen=True)
class WorkflowCompleted(BaseEvent):
    duration_s: float


# ---------------------------------------------------------------------
# Step lifecycle
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class StepSkipped(BaseEvent):
    step: str

@dataclass(frozen=True)
class StepStarted(BaseEvent):
    step: str
    ordinal: int

@dataclass(frozen=True)
class StepSucceeded(BaseEvent):
    step: str
    duration_s: float

@dataclass(frozen=True)
class StepFailed(BaseEvent):
    step: str
    error_type: str
    error: str
