# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cmscale/hosts/loader.py
from __future__ import annotations

import logging
from pathlib import Path
from typing import List

from cmscale.errors import MissingInput

log = logging.getLogger("cmscale")


def load_hosts(path: str | Path) -> List[str]:
    """
    Read target hostnames, one per line, keeping file order.

    Hostname syntax is not checked here; the control plane rejects what it
    cannot resolve.
    """
    path = Path(path)
    if not path.is_file():
        raise MissingInput(f"Host file {path} not found.")

    hosts = [line.strip() for line in path.read_text().splitlines()]
    hosts = [h for h in hosts if h]
    if not hosts:
        raise MissingInput(f"Host file {path} contains no hosts.")

    log.debug(f"hosts from {path}: {hosts}")
    return hosts
