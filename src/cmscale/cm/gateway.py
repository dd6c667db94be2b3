# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cmscale/cm/gateway.py
from __future__ import annotations

from typing import Any, Optional, Tuple

from cmscale.config.models import CMConfig
from .dispatch import Dispatcher
from .models import ApiResponse

# Evaluated in order; first matching prefix wins.
API_VERSIONS: Tuple[Tuple[Tuple[str, ...], int], ...] = (
    (("/cm/",), 31),
    (("/hosts/", "/commands/"), 56),
    (("/clusters/",), 56),
)
DEFAULT_API_VERSION = 41


def versioned_path(path: str) -> str:
    """
    Prefix a Cloudera Manager endpoint with the API version it is served on.

    >>> versioned_path("/clusters/c1/hosts")
    '/api/v56/clusters/c1/hosts'
    >>> versioned_path("/hosts")
    '/api/v41/hosts'
    """
    for prefixes, version in API_VERSIONS:
        if path.startswith(prefixes):
            return f"/api/v{version}{path}"
    return f"/api/v{DEFAULT_API_VERSION}{path}"


class ApiGateway:
    def __init__(self, config: CMConfig, dispatcher: Dispatcher):
        self.config = config
        self.dispatcher = dispatcher

    def url_for(self, path: str) -> str:
        return f"{self.config.base_url}{versioned_path(path)}"

    def call(self, method: str, path: str, body: Optional[Any] = None) -> ApiResponse:
        return self.dispatcher.send(method.upper(), self.url_for(path), body)

    def get(self, path: str) -> ApiResponse:
        return self.call("GET", path)

    def post(self, path: str, body: Optional[Any] = None) -> ApiResponse:
        return self.call("POST", path, body)

    def close(self) -> None:
        self.dispatcher.close()
