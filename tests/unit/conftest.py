import re
from pathlib import Path

import pytest
import requests_mock

from datahandler.config import DatahandlerConfig
from datahandler.exceptions import FinalizeError, LinkRequestError
from datahandler.upload.link_provider import LinkProvider
from datahandler.upload.models import PresignedLink

API_URL = "https://load.test/api"
STORAGE_URL = "https://storage.test"
STORAGE_URL_PATTERN = re.compile(rf"{re.escape(STORAGE_URL)}/.*")


def file_bytes(size: int) -> bytes:
    """Deterministic, non-repeating-per-chunk content of ``size`` bytes."""
    pattern = bytes(range(251))
    return (pattern * (size // len(pattern) + 1))[:size]


@pytest.fixture
def make_file(tmp_path):
    """Factory writing a file of the requested size into tmp_path."""

    def _make_file(size: int, name: str = "data.bin") -> Path:
        path = tmp_path / name
        path.write_bytes(file_bytes(size))
        return path

    return _make_file


class FakeLinkProvider(LinkProvider):
    """In-memory link provider recording every call."""

    def __init__(self) -> None:
        self.calls: list[tuple] = []
        self.finalized: list[tuple] = []
        self.aborted: list[str] = []
        self.fail_on: str | None = None
        self.object_count = 0

    def _maybe_fail(self, operation: str) -> None:
        if self.fail_on == operation:
            if operation == "finalize":
                raise FinalizeError("finalize rejected")
            raise LinkRequestError(f"{operation} rejected")

    def request_single_upload_link(self, descriptor, target):
        self.calls.append(("single", descriptor.name, target.object_group_id))
        self._maybe_fail("single")
        return PresignedLink(url=f"{STORAGE_URL}/single/{descriptor.name}")

    def init_multipart_upload(self, descriptor, target):
        self.calls.append(("init", descriptor.name, target.object_group_id))
        self._maybe_fail("init")
        self.object_count += 1
        return f"object-{self.object_count}"

    def request_part_upload_link(self, object_id, part_number, content_length):
        self.calls.append(("part", object_id, part_number, content_length))
        self._maybe_fail("part")
        return PresignedLink(
            url=f"{STORAGE_URL}/{object_id}/part/{part_number}",
            part_number=part_number,
            object_id=object_id,
        )

    def finalize_multipart_upload(self, object_id, parts):
        self.calls.append(("finalize", object_id, len(parts)))
        self._maybe_fail("finalize")
        self.finalized.append((object_id, list(parts)))

    def abort_multipart_upload(self, object_id):
        self.calls.append(("abort", object_id))
        self.aborted.append(object_id)

    def operations(self) -> list[str]:
        return [call[0] for call in self.calls]


@pytest.fixture
def link_provider():
    return FakeLinkProvider()


def _etag_for(url: str) -> str:
    return "etag-" + url.rsplit("/", 1)[-1]


@pytest.fixture
def storage():
    """Object storage accepting every PUT with a quoted ETag per URL."""

    def _put(request, context):
        context.status_code = 200
        context.headers["ETag"] = f'"{_etag_for(request.url)}"'
        return ""

    with requests_mock.Mocker() as m:
        m.put(STORAGE_URL_PATTERN, text=_put)
        yield m


@pytest.fixture
def config():
    return DatahandlerConfig(api_url=API_URL, token="test-token")
