from datetime import datetime, timezone

import pytest
import requests
import requests_mock

from datahandler.backend.client import BackendClient
from datahandler.backend.load_service import LoadServiceLinkProvider
from datahandler.exceptions import FinalizeError, LinkRequestError
from datahandler.upload.models import (
    CompletedPart,
    FileDescriptor,
    PresignedLink,
    UploadTarget,
)

API_URL = "https://load.test/api"
DESCRIPTOR = FileDescriptor(
    name="reads.fastq",
    size=20 * 1024 * 1024,
    extension=".fastq",
    content_type="application/octet-stream",
    created=datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc),
)
TARGET = UploadTarget(object_group_id="group-1")


@pytest.fixture
def provider(config):
    with BackendClient(config) as client:
        yield LoadServiceLinkProvider(client)


def test_single_upload_link(provider):
    with requests_mock.Mocker() as m:
        m.post(
            f"{API_URL}/load/upload_link",
            json={"link": "https://storage.test/single", "dataset_object_id": "obj-1"},
        )

        link = provider.request_single_upload_link(DESCRIPTOR, TARGET)

        request = m.request_history[0]
        assert request.headers["UserAPIToken"] == "test-token"
        assert request.json() == {
            "create_dataset_object_request": {
                "filename": "reads.fastq",
                "filetype": ".fastq",
                "content_len": 20 * 1024 * 1024,
                "created": "2024-03-01T12:00:00+00:00",
            },
            "dataset_object_group_id": "group-1",
        }

    assert link == PresignedLink(url="https://storage.test/single", object_id="obj-1")


def test_init_multipart_upload(provider):
    with requests_mock.Mocker() as m:
        m.post(f"{API_URL}/load/multipart/init", json={"dataset_object_id": "obj-7"})

        object_id = provider.init_multipart_upload(DESCRIPTOR, TARGET)

        assert m.request_history[0].json()["dataset_object_group_id"] == "group-1"

    assert object_id == "obj-7"


def test_part_upload_link(provider):
    with requests_mock.Mocker() as m:
        m.post(
            f"{API_URL}/load/multipart/part_link",
            json={"upload_link": "https://storage.test/obj-7/2"},
        )

        link = provider.request_part_upload_link("obj-7", 2, 1234)

        assert m.request_history[0].json() == {
            "dataset_object_id": "obj-7",
            "upload_part": 2,
            "content_len": 1234,
        }

    assert link == PresignedLink(
        url="https://storage.test/obj-7/2", part_number=2, object_id="obj-7"
    )


def test_finalize_sends_ordered_parts(provider):
    parts = [CompletedPart(1, "etag-a"), CompletedPart(2, "etag-b")]
    with requests_mock.Mocker() as m:
        m.post(f"{API_URL}/load/multipart/finish", status_code=200)

        provider.finalize_multipart_upload("obj-7", parts)

        assert m.request_history[0].json() == {
            "dataset_object_id": "obj-7",
            "completed_upload_parts": [
                {"etag": "etag-a", "partnumber": 1},
                {"etag": "etag-b", "partnumber": 2},
            ],
        }


def test_abort_multipart_upload(provider):
    with requests_mock.Mocker() as m:
        m.post(f"{API_URL}/load/multipart/abort", json={})

        provider.abort_multipart_upload("obj-7")

        assert m.request_history[0].json() == {"dataset_object_id": "obj-7"}


@pytest.mark.parametrize(
    "path, call",
    [
        (
            "/load/upload_link",
            lambda p: p.request_single_upload_link(DESCRIPTOR, TARGET),
        ),
        (
            "/load/multipart/init",
            lambda p: p.init_multipart_upload(DESCRIPTOR, TARGET),
        ),
        (
            "/load/multipart/part_link",
            lambda p: p.request_part_upload_link("o", 1, 5),
        ),
    ],
)
def test_backend_error_is_link_request_error(provider, path, call):
    with requests_mock.Mocker() as m:
        m.post(
            f"{API_URL}{path}",
            status_code=403,
            json={"detail": {"error": "token expired"}},
        )

        with pytest.raises(LinkRequestError, match="HTTP 403: token expired"):
            call(provider)


def test_missing_link_in_response(provider):
    with requests_mock.Mocker() as m:
        m.post(f"{API_URL}/load/multipart/part_link", json={})

        with pytest.raises(LinkRequestError, match="upload_link"):
            provider.request_part_upload_link("obj-7", 1, 10)


def test_connection_error_is_link_request_error(provider):
    with requests_mock.Mocker() as m:
        m.post(
            f"{API_URL}/load/multipart/init",
            exc=requests.exceptions.ConnectionError("refused"),
        )

        with pytest.raises(LinkRequestError, match="refused"):
            provider.init_multipart_upload(DESCRIPTOR, TARGET)


def test_invalid_json_is_link_request_error(provider):
    with requests_mock.Mocker() as m:
        m.post(f"{API_URL}/load/upload_link", text="<html>oops</html>")

        with pytest.raises(LinkRequestError):
            provider.request_single_upload_link(DESCRIPTOR, TARGET)


def test_finalize_failure_is_finalize_error(provider):
    with requests_mock.Mocker() as m:
        m.post(
            f"{API_URL}/load/multipart/finish",
            status_code=400,
            json={"detail": "part 2 missing"},
        )

        with pytest.raises(FinalizeError, match="part 2 missing"):
            provider.finalize_multipart_upload("obj-7", [CompletedPart(1, "a")])
