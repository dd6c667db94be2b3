# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cmscale/config/models.py

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class CMConfig(BaseModel):
    """Connection, authentication and tuning values for one scale run."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    # Cloudera Manager endpoint
    cm_host: str
    cm_port: int = 7180
    cm_protocol: Literal["http", "https"] = "http"
    cm_user: str
    cm_pass: str = Field(repr=False)
    cm_repo_url: str = ""
    cm_verify_tls: bool = True
    cm_timeout: float = 30.0

    # Cluster targets
    cluster_name: str
    host_template: str
    host_tag: str

    # SSH credentials handed to the host installer
    ssh_user: str
    ssh_pass: str = Field(default="", repr=False)
    ssh_key: str = Field(default="", repr=False)
    ssh_key_passphrase: str = Field(default="", repr=False)
    ssh_port: int = 22

    # Bounded waits
    poll_interval: float = 10.0
    poll_attempts: int = Field(default=30, ge=1)
    parcel_interval: float = 10.0
    parcel_attempts: int = Field(default=60, ge=1)

    @property
    def base_url(self) -> str:
        return f"{self.cm_protocol}://{self.cm_host}:{self.cm_port}"
