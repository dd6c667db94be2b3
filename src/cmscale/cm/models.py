# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cmscale/cm/models.py

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from cmscale.errors import RemoteCallMalformed


@dataclass(frozen=True)
class ApiResponse:
    method: str
    url: str
    body: str = ""
    status_code: Optional[int] = None
    simulated: bool = False

    def json(self) -> Any:
        if not self.body.strip():
            raise RemoteCallMalformed(f"Empty response from {self.method} {self.url}")
        try:
            return json.loads(self.body)
        except ValueError as exc:
            raise RemoteCallMalformed(
                f"Invalid JSON from {self.method} {self.url}: {self.body[:200]}"
            ) from exc

    def items(self) -> List[Dict[str, Any]]:
        data = self.json()
        items = data.get("items") if isinstance(data, dict) else None
        if not isinstance(items, list):
            raise RemoteCallMalformed(f"No 'items' list in response from {self.url}")
        return items

    def command_id(self) -> str:
        data = self.json()
        cmd_id = data.get("id") if isinstance(data, dict) else None
        if cmd_id in (None, ""):
            raise RemoteCallMalformed(
                f"Failed to retrieve command ID from {self.url}: {self.body}"
            )
        return str(cmd_id)


class CommandStatus(str, Enum):
    """Tri-state view of the remote ``success`` field."""

    PENDING = "PENDING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"

    @classmethod
    def from_payload(cls, payload: Any) -> "CommandStatus":
        success = payload.get("success") if isinstance(payload, dict) else None
        if success is True:
            return cls.SUCCEEDED
        if success is False:
            return cls.FAILED
        return cls.PENDING


@dataclass(frozen=True)
class CommandResult:
    id: str
    status: CommandStatus
    message: str = ""
