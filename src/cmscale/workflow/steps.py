# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cmscale/workflow/steps.py
from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, List, Sequence

from cmscale.cm.gateway import ApiGateway
from cmscale.cm.models import ApiResponse
from cmscale.cm.poller import CommandPoller
from cmscale.config.models import CMConfig
from cmscale.errors import CommandTimeout, RemoteCallMalformed, VerificationFailed
from .state import Step

log = logging.getLogger("cmscale")

COMMISSIONED = "COMMISSIONED"
PARCEL_ACTIVATED = "ACTIVATED"
TEMPLATE_TAG_NAME = "_cldr_cm_host_template_name"


class ScaleSteps:
    """
    Implementation of every workflow step against Cloudera Manager.

    Each method is safe to re-run from the top; the engine decides which
    ones run and in what order.
    """

    def __init__(
        self,
        *,
        config: CMConfig,
        gateway: ApiGateway,
        poller: CommandPoller,
        hosts: Sequence[str],
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = config
        self.gateway = gateway
        self.poller = poller
        self.hosts = list(hosts)
        self._sleep = sleep

    def handlers(self) -> Dict[Step, Callable[[], None]]:
        return {
            Step.INSTALL_HOSTS: self.install_hosts,
            Step.REGISTER_IN_CLUSTER: self.register_in_cluster,
            Step.VERIFY_COMMISSION: self.verify_commission,
            Step.WAIT_FOR_PARCELS: self.wait_for_parcels,
            Step.APPLY_HOST_TEMPLATE: self.apply_host_template,
            Step.VERIFY_TAGS: self.verify_tags,
            Step.APPLY_STALE_CONFIGS: self.apply_stale_configs,
            Step.REMOVE_HOSTS: self.remove_hosts,
        }

    # -----------------------
    # Helpers
    # -----------------------
    @property
    def _cluster_path(self) -> str:
        return f"/clusters/{self.config.cluster_name}"

    def _await(self, response: ApiResponse) -> None:
        if response.simulated:
            self.poller.wait("dry-run")
            return
        self.poller.wait(response.command_id())

    def _cluster_hosts(self) -> List[Dict[str, Any]] | None:
        response = self.gateway.get(f"{self._cluster_path}/hosts")
        if response.simulated:
            return None
        return response.items()

    def _targets_by_name(self, items: List[Dict[str, Any]]) -> Dict[str, Dict[str, Any]]:
        wanted = set(self.hosts)
        return {i.get("hostname"): i for i in items if i.get("hostname") in wanted}

    # -----------------------
    # Scale up
    # -----------------------
    def install_payload(self) -> Dict[str, Any]:
        cfg = self.config
        payload: Dict[str, Any] = {
            "hostNames": list(self.hosts),
            "sshPort": cfg.ssh_port,
            "userName": cfg.ssh_user,
            "cmRepoUrl": cfg.cm_repo_url,
        }
        if cfg.ssh_pass:
            payload["password"] = cfg.ssh_pass
        else:
            payload["privateKey"] = cfg.ssh_key
            payload["passphrase"] = cfg.ssh_key_passphrase
        return payload

    def install_hosts(self) -> None:
        log.info(f"Installing Cloudera Manager agents on {len(self.hosts)} host(s)")
        self._await(self.gateway.post("/cm/commands/hostInstall", self.install_payload()))

    def register_in_cluster(self) -> None:
        # one membership entry per host, even if the host file repeats it
        unique = list(dict.fromkeys(self.hosts))
        response = self.gateway.get("/hosts")
        if response.simulated:
            members: List[Dict[str, Any]] = [{"hostname": h} for h in unique]
        else:
            found = self._targets_by_name(response.items())
            missing = [h for h in unique if h not in found]
            if missing:
                log.warning(f"Hosts not known to Cloudera Manager: {', '.join(missing)}")
            members = [
                {"hostId": found[h].get("hostId"), "hostname": h}
                for h in unique
                if h in found
            ]

        log.info(f"Adding {len(members)} host(s) to cluster {self.config.cluster_name}")
        self.gateway.post(f"{self._cluster_path}/hosts", {"items": members})

    def verify_commission(self) -> None:
        items = self._cluster_hosts()
        if items is None:
            log.info("[DRY-RUN] skipping commission state check")
            return

        found = self._targets_by_name(items)
        bad = [
            h for h in self.hosts
            if found.get(h, {}).get("commissionState") != COMMISSIONED
        ]
        if bad:
            raise VerificationFailed("Some hosts not commissioned", bad)
        log.info(f"All {len(self.hosts)} host(s) are {COMMISSIONED}")

    def wait_for_parcels(self) -> None:
        attempts = self.config.parcel_attempts
        interval = self.config.parcel_interval
        log.info("Waiting for parcel activation on all new hosts...")

        for attempt in range(1, attempts + 1):
            response = self.gateway.get(f"{self._cluster_path}/parcels")
            if response.simulated:
                log.info("[DRY-RUN] skipping parcel activation wait")
                return

            parcels = response.items()
            activated = sum(1 for p in parcels if p.get("stage") == PARCEL_ACTIVATED)
            total = len(parcels)
            # TODO: confirm with the CM team whether clusters with several
            # active parcels should pass; this only accepts exactly one.
            if activated == 1 and total > 0:
                log.info("All parcels are activated. Proceeding.")
                return

            log.info(
                f"Parcel activation in progress. [{activated}/{total} activated]. "
                f"Attempt {attempt} of {attempts}..."
            )
            if attempt < attempts:
                self._sleep(interval)

        raise CommandTimeout(
            f"Parcel activation timeout after {attempts * interval:g} seconds"
        )

    def apply_host_template(self) -> None:
        path = (
            f"{self._cluster_path}/hostTemplates/{self.config.host_template}"
            "/commands/applyHostTemplate?runConfigRules=false&startRoles=true"
        )
        body = {"items": [{"hostname": h} for h in self.hosts]}
        log.info(f"Applying host template {self.config.host_template}")
        self._await(self.gateway.post(path, body))

    def verify_tags(self) -> None:
        items = self._cluster_hosts()
        if items is None:
            log.info("[DRY-RUN] skipping host template tag check")
            return

        found = self._targets_by_name(items)
        bad = []
        for h in self.hosts:
            tags = found.get(h, {}).get("tags") or []
            values = [t.get("value") for t in tags if t.get("name") == TEMPLATE_TAG_NAME]
            if not values or any(v != self.config.host_tag for v in values):
                bad.append(h)
        if bad:
            raise VerificationFailed("Some hosts missing correct tag", bad)
        log.info(f"All host(s) tagged {TEMPLATE_TAG_NAME}={self.config.host_tag}")

    def apply_stale_configs(self) -> None:
        log.info("Deploying client configs and refreshing stale services")
        self._await(
            self.gateway.post(f"{self._cluster_path}/commands/deployClientConfigsAndRefresh")
        )

    # -----------------------
    # Scale down
    # -----------------------
    def remove_hosts(self) -> None:
        payload = {"hostsToRemove": list(self.hosts), "deleteHosts": True}
        response = self.gateway.post("/hosts/removeHostsFromCluster", payload)
        if not response.simulated and not response.body.strip():
            raise RemoteCallMalformed("Empty response received from removeHostsFromCluster API.")
        self._await(response)
