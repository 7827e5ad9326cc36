import pytest
import requests_mock

from datahandler.backend.client import BackendClient
from datahandler.backend.dataset_service import (
    DatasetObjectVersion,
    DatasetService,
    DatasetVersionStatus,
)
from datahandler.exceptions import BackendError

API_URL = "https://load.test/api"


@pytest.fixture
def datasets(config):
    with BackendClient(config) as client:
        yield DatasetService(client)


def test_create_object_group(datasets):
    with requests_mock.Mocker() as m:
        m.post(f"{API_URL}/datasets/object_groups", json={"id": "group-9"})

        group_id = datasets.create_object_group("dataset-1", "version-1")

        assert m.request_history[0].json() == {
            "dataset_id": "dataset-1",
            "name": "upload",
            "version": {
                "major": 0,
                "minor": 2,
                "patch": 0,
                "revision": 0,
                "stage": "STABLE",
            },
            "dataset_version_id": ["version-1"],
        }

    assert group_id == "group-9"


def test_create_object_group_with_custom_version(datasets):
    with requests_mock.Mocker() as m:
        m.post(f"{API_URL}/datasets/object_groups", json={"id": "group-9"})

        datasets.create_object_group(
            "dataset-1", "version-1", name="raw", version=DatasetObjectVersion(major=1)
        )

        body = m.request_history[0].json()
        assert body["name"] == "raw"
        assert body["version"]["major"] == 1


def test_create_object_group_without_id(datasets):
    with requests_mock.Mocker() as m:
        m.post(f"{API_URL}/datasets/object_groups", json={})

        with pytest.raises(BackendError, match="no 'id'"):
            datasets.create_object_group("dataset-1", "version-1")


def test_update_dataset_version_status(datasets):
    with requests_mock.Mocker() as m:
        m.put(f"{API_URL}/datasets/versions/status", status_code=200)

        datasets.update_dataset_version_status("version-1")

        assert m.request_history[0].json() == {"id": "version-1", "status": "AVAILABLE"}


def test_update_dataset_version_status_explicit(datasets):
    with requests_mock.Mocker() as m:
        m.put(f"{API_URL}/datasets/versions/status", status_code=200)

        datasets.update_dataset_version_status(
            "version-1", DatasetVersionStatus.INITIATING
        )

        assert m.request_history[0].json()["status"] == "INITIATING"


def test_update_current_dataset_version(datasets):
    with requests_mock.Mocker() as m:
        m.put(f"{API_URL}/datasets/current_version", json={})

        datasets.update_current_dataset_version("dataset-1", "version-1")

        assert m.request_history[0].json() == {
            "id": "dataset-1",
            "target_resource": "DATASET_VERSION",
            "update_target_id": "version-1",
            "update_stage": "STABLE",
        }


def test_backend_error_carries_status_and_detail(datasets):
    with requests_mock.Mocker() as m:
        m.put(
            f"{API_URL}/datasets/versions/status",
            status_code=404,
            json={"detail": {"error": "unknown version"}},
        )

        with pytest.raises(BackendError) as exc_info:
            datasets.update_dataset_version_status("version-1")

    assert exc_info.value.status_code == 404
    assert exc_info.value.detail == "unknown version"
