# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cmscale/cm/poller.py
from __future__ import annotations

import logging
import time
from typing import Callable

from cmscale.errors import CommandFailed, CommandTimeout, RemoteCallMalformed
from cmscale.utils.execution import ExecutionContext
from .gateway import ApiGateway
from .models import CommandResult, CommandStatus

log = logging.getLogger("cmscale")


class CommandPoller:
    """
    Blocks until a Cloudera Manager async command reaches a terminal state.

    ``success: true`` returns, ``success: false`` raises CommandFailed and
    anything else keeps polling until ``max_attempts`` is used up, which
    raises CommandTimeout.
    """

    def __init__(
        self,
        gateway: ApiGateway,
        ctx: ExecutionContext,
        *,
        interval: float = 10,
        max_attempts: int = 30,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.gateway = gateway
        self.ctx = ctx
        self.interval = interval
        self.max_attempts = max_attempts
        self._sleep = sleep

    def wait(self, command_id: str) -> CommandResult:
        if self.ctx.dry_run:
            log.info(f"[DRY-RUN] skipping status polling for command {command_id}")
            return CommandResult(id=command_id, status=CommandStatus.SUCCEEDED)

        for attempt in range(1, self.max_attempts + 1):
            response = self.gateway.get(f"/commands/{command_id}")
            try:
                payload = response.json()
            except RemoteCallMalformed as exc:
                log.warning(f"Command {command_id}: unreadable status ({exc}), retrying")
                payload = None

            status = CommandStatus.from_payload(payload)
            message = ""
            if isinstance(payload, dict):
                message = str(payload.get("resultMessage") or "")

            if status is CommandStatus.SUCCEEDED:
                log.info(f"[SUCCESS] Command {command_id}: {message}")
                return CommandResult(id=command_id, status=status, message=message)
            if status is CommandStatus.FAILED:
                raise CommandFailed(command_id, message)

            log.debug(f"Command {command_id} pending (attempt {attempt}/{self.max_attempts})")
            if attempt < self.max_attempts:
                self._sleep(self.interval)

        raise CommandTimeout(f"Command {command_id} timed out.")
