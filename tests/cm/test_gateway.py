import pytest
import requests

from cmscale.cm.dispatch import HttpDispatcher, RecordingDispatcher, dispatcher_for
from cmscale.cm.gateway import ApiGateway, versioned_path
from cmscale.errors import RemoteCallFailed
from cmscale.utils.execution import ExecutionContext, Mode


@pytest.mark.parametrize(
    "path, expected",
    [
        ("/cm/commands/hostInstall", "/api/v31/cm/commands/hostInstall"),
        ("/hosts/removeHostsFromCluster", "/api/v56/hosts/removeHostsFromCluster"),
        ("/commands/42", "/api/v56/commands/42"),
        ("/clusters/x/hosts", "/api/v56/clusters/x/hosts"),
        ("/hosts", "/api/v41/hosts"),
        ("/unknown", "/api/v41/unknown"),
    ],
)
def test_versioned_path_priority(path, expected):
    assert versioned_path(path) == expected


def test_url_uses_protocol_host_port(cm_config):
    gw = ApiGateway(cm_config, RecordingDispatcher())
    assert gw.url_for("/clusters/c/parcels") == "https://cm.example.test:7183/api/v56/clusters/c/parcels"


def test_recording_dispatcher_records_and_simulates(cm_config):
    rec = RecordingDispatcher()
    gw = ApiGateway(cm_config, rec)

    r = gw.post("/cm/commands/hostInstall", {"hostNames": ["h1"]})

    assert r.simulated
    assert rec.calls[0].method == "POST"
    assert rec.calls[0].url.endswith("/api/v31/cm/commands/hostInstall")
    assert rec.calls[0].body == {"hostNames": ["h1"]}


def test_dispatcher_for_mode(cm_config):
    assert isinstance(dispatcher_for(ExecutionContext(Mode.DRY_RUN), cm_config), RecordingDispatcher)
    assert isinstance(dispatcher_for(ExecutionContext(Mode.PLAN), cm_config), RecordingDispatcher)
    assert isinstance(dispatcher_for(ExecutionContext(Mode.RUN), cm_config), HttpDispatcher)


class _FakeResp:
    def __init__(self, text, status_code=200):
        self.text = text
        self.status_code = status_code


class _FakeSession:
    def __init__(self, resp=None, exc=None):
        self.resp = resp
        self.exc = exc
        self.auth = None
        self.requests = []

    def request(self, method, url, **kwargs):
        self.requests.append((method, url, kwargs))
        if self.exc:
            raise self.exc
        return self.resp

    def close(self):
        pass


def test_http_get_sends_no_body(cm_config):
    session = _FakeSession(_FakeResp('{"items": []}'))
    gw = ApiGateway(cm_config, HttpDispatcher(cm_config, session=session))

    r = gw.get("/hosts")

    method, url, kwargs = session.requests[0]
    assert method == "GET"
    assert url == "https://cm.example.test:7183/api/v41/hosts"
    assert "json" not in kwargs
    assert session.auth == ("admin", "secret")
    assert r.body == '{"items": []}'
    assert not r.simulated


def test_http_post_sends_json(cm_config):
    session = _FakeSession(_FakeResp('{"id": 7}'))
    gw = ApiGateway(cm_config, HttpDispatcher(cm_config, session=session))

    gw.post("/hosts/removeHostsFromCluster", {"hostsToRemove": ["h1"], "deleteHosts": True})

    _, _, kwargs = session.requests[0]
    assert kwargs["json"] == {"hostsToRemove": ["h1"], "deleteHosts": True}
    assert kwargs["headers"]["Content-Type"] == "application/json"
    assert kwargs["timeout"] == cm_config.cm_timeout


def test_http_transport_error_is_wrapped(cm_config):
    session = _FakeSession(exc=requests.ConnectionError("refused"))
    gw = ApiGateway(cm_config, HttpDispatcher(cm_config, session=session))

    with pytest.raises(RemoteCallFailed):
        gw.get("/hosts")
