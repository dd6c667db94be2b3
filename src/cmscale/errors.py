# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cmscale/errors.py
from __future__ import annotations

from typing import Iterable, Tuple


class ScaleError(RuntimeError):
    """Base class for every failure that ends a scale run."""


class ConfigNotFound(ScaleError):
    """Raised when the configuration file does not exist."""


class ConfigInvalid(ScaleError):
    """Raised when the configuration file exists but does not validate."""


class MissingInput(ScaleError):
    """Raised when the host list is absent or empty."""


class InvalidUsage(ScaleError):
    """Raised for bad command-line values or a mismatched resume marker."""


class RemoteCallFailed(ScaleError):
    """Raised when the control plane could not be reached at all."""


class RemoteCallMalformed(ScaleError):
    """Raised when a required response is empty or not what we expect."""


class CommandFailed(ScaleError):
    """Raised when the control plane reports an async command as failed."""

    def __init__(self, command_id: str, message: str):
        self.command_id = command_id
        self.message = message
        super().__init__(f"Command {command_id} failed: {message}")


class CommandTimeout(ScaleError):
    """Raised when a bounded wait runs out of attempts."""


class VerificationFailed(ScaleError):
    """Raised when target hosts do not meet a post-condition."""

    def __init__(self, reason: str, hosts: Iterable[str]):
        self.hosts: Tuple[str, ...] = tuple(hosts)
        self.reason = reason
        super().__init__(f"{reason}: {', '.join(self.hosts)}")
