# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

from dataclasses import dataclass
from enum import Enum


class Mode(str, Enum):
    RUN = "run"
    DRY_RUN = "dry-run"
    PLAN = "plan"


@dataclass(frozen=True)
class ExecutionContext:
    """
    controls how remote calls are executed
    """

    mode: Mode = Mode.RUN

    @property
    def dry_run(self) -> bool:
        return self.mode in (Mode.DRY_RUN, Mode.PLAN)
