# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cmscale/workflow/controller.py
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Tuple

from cmscale.cm.dispatch import Dispatcher, dispatcher_for
from cmscale.cm.gateway import ApiGateway
from cmscale.cm.poller import CommandPoller
from cmscale.config.models import CMConfig
from cmscale.errors import InvalidUsage, MissingInput
from cmscale.observers.dispatcher import EventBus
from cmscale.observers.events import PlanPresented, new_ctx
from cmscale.utils.execution import ExecutionContext, Mode
from .engine import WorkflowEngine
from .state import MemoryStateStore, OperationKind, StateStore, WorkflowState
from .steps import ScaleSteps

log = logging.getLogger("cmscale")


class AuthMode(str, Enum):
    PASSWORD = "password"
    KEY = "key"


def _parse_choice(enum_cls, value: Optional[str], what: str):
    choices = [e.value for e in enum_cls]
    if value is None:
        raise InvalidUsage(f"Missing {what}; expected one of: {', '.join(choices)}")
    try:
        return enum_cls(value.strip().lower())
    except ValueError:
        raise InvalidUsage(
            f"Invalid {what} '{value}'; expected one of: {', '.join(choices)}"
        ) from None


def parse_action(value: Optional[str]) -> OperationKind:
    return _parse_choice(OperationKind, value, "action")


def parse_mode(value: Optional[str]) -> Mode:
    return _parse_choice(Mode, value or Mode.RUN.value, "mode")


def parse_auth_mode(value: Optional[str]) -> AuthMode:
    return _parse_choice(AuthMode, value or AuthMode.PASSWORD.value, "auth mode")


def parse_resume(value: Optional[str]) -> bool:
    text = (value or "false").strip().lower()
    if text not in ("true", "false"):
        raise InvalidUsage(f"Invalid resume flag '{value}'; expected true or false")
    return text == "true"


@dataclass(frozen=True)
class Operation:
    kind: OperationKind
    hosts: Tuple[str, ...]
    mode: Mode = Mode.RUN
    resume: bool = False
    auth_mode: AuthMode = AuthMode.PASSWORD

    def __post_init__(self):
        if not self.hosts:
            raise MissingInput("An operation needs at least one target host")


class OperationController:
    """
    Entry point for one scale invocation.

    Picks the step list for the requested action, decides where to start
    (fresh or from the persisted marker), runs the workflow, and removes
    the state file once the operation is done.
    """

    def __init__(
        self,
        *,
        config: CMConfig,
        store: StateStore,
        dispatcher: Optional[Dispatcher] = None,
        observers: Optional[List] = None,
        run_id: Optional[str] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = config
        self.store = store
        self.dispatcher = dispatcher
        self.observers = observers or []
        self.run_id = run_id
        self._sleep = sleep

    def _initial_state(self, op: Operation) -> WorkflowState:
        if not op.resume:
            return WorkflowState.none()
        state = self.store.load()
        if state.is_none:
            log.info("Resume requested but no saved state found; starting fresh.")
        else:
            log.info(f"Resuming from step: {state}")
        return state

    def execute(self, op: Operation) -> WorkflowState:
        log.info(
            f"Mode: {op.mode.value} | Action: {op.kind.value} | "
            f"Auth Mode: {op.auth_mode.value} | Hosts: {len(op.hosts)}"
        )
        bus = EventBus(self.observers)
        run_ctx = new_ctx(
            cluster=self.config.cluster_name,
            operation=op.kind.value,
            run_id=self.run_id,
        )

        if op.mode is Mode.PLAN:
            log.info("[PLAN] The following hosts will be processed:")
            for host in op.hosts:
                log.info(f"[PLAN]   {host}")
            bus.emit(PlanPresented(hosts=list(op.hosts), **run_ctx))
            return WorkflowState.none()

        state = self._initial_state(op)
        ctx = ExecutionContext(mode=op.mode)
        store: StateStore = self.store if op.mode is Mode.RUN else MemoryStateStore(state)

        gateway = ApiGateway(self.config, self.dispatcher or dispatcher_for(ctx, self.config))
        try:
            poller = CommandPoller(
                gateway,
                ctx,
                interval=self.config.poll_interval,
                max_attempts=self.config.poll_attempts,
                sleep=self._sleep,
            )
            steps = ScaleSteps(
                config=self.config,
                gateway=gateway,
                poller=poller,
                hosts=op.hosts,
                sleep=self._sleep,
            )
            engine = WorkflowEngine(
                handlers=steps.handlers(),
                store=store,
                bus=bus,
                run_ctx=run_ctx,
                mode=op.mode.value,
            )
            final = engine.run(op.kind, state)
        finally:
            gateway.close()

        if final.is_done:
            store.clear()
        return final

