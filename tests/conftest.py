import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import pytest

from cmscale.cm.models import ApiResponse
from cmscale.config.models import CMConfig


@pytest.fixture(autouse=True)
def _reset_cmscale_logger():
    yield
    logger = logging.getLogger("cmscale")
    for h in list(logger.handlers):
        h.close()
    logger.handlers.clear()
    logger.propagate = True


@pytest.fixture
def cm_config() -> CMConfig:
    return CMConfig(
        cm_host="cm.example.test",
        cm_port=7183,
        cm_protocol="https",
        cm_user="admin",
        cm_pass="secret",
        cluster_name="cluster1",
        host_template="worker-tpl",
        host_tag="worker-tpl",
        ssh_user="root",
        ssh_pass="sshpw",
        poll_interval=0,
        parcel_interval=0,
    )


@dataclass
class Call:
    method: str
    path: str
    body: Optional[Any]


class FakeControlPlane:
    """
    Scripted stand-in for Cloudera Manager.

    Responses are keyed by (method, unversioned path). Each key holds a
    list; calls consume it in order and the last entry repeats.
    """

    def __init__(self):
        self.routes: Dict[Tuple[str, str], List[Any]] = {}
        self.calls: List[Call] = []
        self.closed = False

    def on(self, method: str, path: str, *bodies: Any) -> "FakeControlPlane":
        self.routes[(method, path)] = list(bodies)
        return self

    @staticmethod
    def _strip(url: str) -> str:
        # https://host:port/api/vNN/...  ->  /...
        tail = url.split("/api/", 1)[1]
        return "/" + tail.split("/", 1)[1]

    def send(self, method, url, body=None):
        path = self._strip(url)
        self.calls.append(Call(method, path, body))
        queue = self.routes.get((method, path))
        if queue is None:
            raise AssertionError(f"unexpected call {method} {path}")
        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(item, Exception):
            raise item
        text = item if isinstance(item, str) else json.dumps(item)
        return ApiResponse(method=method, url=url, body=text, status_code=200)

    def close(self):
        self.closed = True

    def paths(self, method: Optional[str] = None) -> List[str]:
        return [c.path for c in self.calls if method is None or c.method == method]


@pytest.fixture
def fake_cm() -> FakeControlPlane:
    return FakeControlPlane()


def cluster_hosts(*entries):
    return {"items": list(entries)}


@pytest.fixture
def scale_up_routes(fake_cm, cm_config):
    """A control plane on which a full scale-up of h1,h2 succeeds."""
    c = cm_config.cluster_name
    tag = [{"name": "_cldr_cm_host_template_name", "value": cm_config.host_tag}]
    healthy = cluster_hosts(
        {"hostname": "h1", "hostId": "id-1", "commissionState": "COMMISSIONED", "tags": tag},
        {"hostname": "h2", "hostId": "id-2", "commissionState": "COMMISSIONED", "tags": tag},
    )
    (
        fake_cm
        .on("POST", "/cm/commands/hostInstall", {"id": 101})
        .on("GET", "/commands/101", {"success": True, "resultMessage": "installed"})
        .on("GET", "/hosts", {"items": [
            {"hostname": "h1", "hostId": "id-1"},
            {"hostname": "h2", "hostId": "id-2"},
            {"hostname": "other", "hostId": "id-9"},
        ]})
        .on("POST", f"/clusters/{c}/hosts", {"items": []})
        .on("GET", f"/clusters/{c}/hosts", healthy)
        .on("GET", f"/clusters/{c}/parcels", {"items": [{"product": "CDH", "stage": "ACTIVATED"}]})
        .on(
            "POST",
            f"/clusters/{c}/hostTemplates/{cm_config.host_template}"
            "/commands/applyHostTemplate?runConfigRules=false&startRoles=true",
            {"id": 102},
        )
        .on("GET", "/commands/102", {"success": True, "resultMessage": "applied"})
        .on("POST", f"/clusters/{c}/commands/deployClientConfigsAndRefresh", {"id": 103})
        .on("GET", "/commands/103", {"success": True, "resultMessage": "refreshed"})
    )
    return fake_cm


@pytest.fixture
def scale_down_routes(fake_cm, cm_config):
    c = cm_config.cluster_name
    (
        fake_cm
        .on("POST", "/hosts/removeHostsFromCluster", {"id": 201})
        .on("GET", "/commands/201", {"success": True, "resultMessage": "removed"})
        .on("POST", f"/clusters/{c}/commands/deployClientConfigsAndRefresh", {"id": 202})
        .on("GET", "/commands/202", {"success": True, "resultMessage": "refreshed"})
    )
    return fake_cm


class Capture:
    def __init__(self): self.events = []
    def notify(self, ev): self.events.append(ev)


@pytest.fixture
def capture():
    return Capture()
