# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cmscale/cm/dispatch.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional, Protocol

import requests

from cmscale.config.models import CMConfig
from cmscale.errors import RemoteCallFailed
from cmscale.utils.execution import ExecutionContext
from cmscale.utils.serialize import pretty_json
from .models import ApiResponse

log = logging.getLogger("cmscale")


class Dispatcher(Protocol):
    def send(self, method: str, url: str, body: Optional[Any] = None) -> ApiResponse: ...

    def close(self) -> None: ...


class HttpDispatcher:
    """
    Talks to Cloudera Manager over HTTP(S) with basic auth.

    Status codes are not interpreted; callers read the body.
    """

    def __init__(self, config: CMConfig, session: Optional[requests.Session] = None):
        self.config = config
        self.session = session or requests.Session()
        self.session.auth = (config.cm_user, config.cm_pass)

    def send(self, method: str, url: str, body: Optional[Any] = None) -> ApiResponse:
        log.debug(f"[cm] {method} {url}")
        kwargs: dict = {"verify": self.config.cm_verify_tls, "timeout": self.config.cm_timeout}
        if method != "GET":
            kwargs["json"] = body
            kwargs["headers"] = {"Content-Type": "application/json"}
        try:
            r = self.session.request(method, url, **kwargs)
        except requests.RequestException as exc:
            raise RemoteCallFailed(f"{method} {url} failed: {exc}") from exc

        log.debug(f"[cm] response: status={r.status_code}, body={r.text[:500]}")
        return ApiResponse(method=method, url=url, body=r.text, status_code=r.status_code)

    def close(self) -> None:
        self.session.close()


@dataclass
class RecordedCall:
    method: str
    url: str
    body: Optional[Any] = None


@dataclass
class RecordingDispatcher:
    """Dry-run/plan dispatcher: logs and records the call, never sends it."""

    calls: List[RecordedCall] = field(default_factory=list)

    def send(self, method: str, url: str, body: Optional[Any] = None) -> ApiResponse:
        self.calls.append(RecordedCall(method=method, url=url, body=body))
        log.info(f"[DRY-RUN] {method} {url}")
        if body is not None:
            log.info(pretty_json(body))
        return ApiResponse(method=method, url=url, simulated=True)

    def close(self) -> None:
        pass


def dispatcher_for(ctx: ExecutionContext, config: CMConfig) -> Dispatcher:
    if ctx.dry_run:
        return RecordingDispatcher()
    return HttpDispatcher(config)
