import pytest
import requests
import requests_mock

from datahandler.backend.client import BackendClient
from datahandler.config import DatahandlerConfig
from datahandler.exceptions import ConfigError

API_URL = "https://load.test/api"


def test_requests_carry_token_header(config):
    with requests_mock.Mocker() as m, BackendClient(config) as client:
        m.post(f"{API_URL}/ping", json={"ok": True})

        assert client.post("/ping", {"a": 1}) == {"ok": True}
        assert m.request_history[0].headers["UserAPIToken"] == "test-token"


def test_empty_body_is_empty_dict(config):
    with requests_mock.Mocker() as m, BackendClient(config) as client:
        m.put(f"{API_URL}/thing", status_code=204)

        assert client.put("/thing", {}) == {}


def test_error_status_raises_http_error(config):
    with requests_mock.Mocker() as m, BackendClient(config) as client:
        m.post(f"{API_URL}/ping", status_code=500)

        with pytest.raises(requests.HTTPError):
            client.post("/ping", {})


def test_non_object_body_is_rejected(config):
    with requests_mock.Mocker() as m, BackendClient(config) as client:
        m.post(f"{API_URL}/ping", json=[1, 2])

        with pytest.raises(ValueError):
            client.post("/ping", {})


def test_missing_api_url():
    with pytest.raises(ConfigError, match="endpoint"):
        BackendClient(DatahandlerConfig(token="t"))


def test_missing_token():
    with pytest.raises(ConfigError, match="token"):
        BackendClient(DatahandlerConfig(api_url=API_URL))
