"""Dataset bookkeeping around uploaded files."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any

import requests
from pydantic import BaseModel

from datahandler.backend.client import BackendClient
from datahandler.backend.http_errors import extract_error_detail
from datahandler.exceptions import BackendError

logger = logging.getLogger(__name__)

OBJECT_GROUPS_PATH = "/datasets/object_groups"
VERSION_STATUS_PATH = "/datasets/versions/status"
CURRENT_VERSION_PATH = "/datasets/current_version"


class VersionStage(str, Enum):
    """Release stage of a dataset version or object group."""

    UNKNOWN = "UNKNOWN"
    STABLE = "STABLE"


class DatasetVersionStatus(str, Enum):
    """Availability of a dataset version."""

    INITIATING = "INITIATING"
    AVAILABLE = "AVAILABLE"


class DatasetObjectVersion(BaseModel):
    """Semantic version attached to a new object group."""

    major: int = 0
    minor: int = 2
    patch: int = 0
    revision: int = 0
    stage: VersionStage = VersionStage.STABLE


class DatasetService:
    """Create object groups and publish dataset versions."""

    def __init__(self, client: BackendClient) -> None:
        """Initialize the service.

        Args:
            client: Authenticated backend client.
        """
        self._client = client

    def _call(self, method: str, path: str, payload: dict[str, Any], what: str) -> dict:
        try:
            if method == "POST":
                return self._client.post(path, payload)
            return self._client.put(path, payload)
        except requests.RequestException as e:
            response = e.response
            status_code = response.status_code if response is not None else None
            detail = extract_error_detail(response)
            raise BackendError(
                f"Failed to {what}: {detail or e}",
                status_code=status_code,
                detail=detail,
            ) from e
        except ValueError as e:
            raise BackendError(f"Failed to {what}: invalid response: {e}") from e

    def create_object_group(
        self,
        dataset_id: str,
        dataset_version_id: str,
        name: str = "upload",
        version: DatasetObjectVersion | None = None,
    ) -> str:
        """Create an object group in ``dataset_id`` for a batch of uploads.

        Args:
            dataset_id: Dataset owning the group.
            dataset_version_id: Dataset version the group is part of.
            name: Display name of the group.
            version: Version of the group, defaults to 0.2.0 stable.

        Returns:
            The id of the new object group.

        Raises:
            BackendError: If the group cannot be created.
        """
        version = version or DatasetObjectVersion()
        what = f"create object group in dataset {dataset_id}"
        body = self._call(
            "POST",
            OBJECT_GROUPS_PATH,
            {
                "dataset_id": dataset_id,
                "name": name,
                "version": version.model_dump(mode="json"),
                "dataset_version_id": [dataset_version_id],
            },
            what,
        )
        group_id = body.get("id")
        if not group_id:
            raise BackendError(f"Failed to {what}: response has no 'id'")
        logger.info("Created object group %s in dataset %s", group_id, dataset_id)
        return str(group_id)

    def update_dataset_version_status(
        self,
        dataset_version_id: str,
        status: DatasetVersionStatus = DatasetVersionStatus.AVAILABLE,
    ) -> None:
        """Set the status of a dataset version.

        Raises:
            BackendError: If the backend rejects the update.
        """
        self._call(
            "PUT",
            VERSION_STATUS_PATH,
            {"id": dataset_version_id, "status": status.value},
            f"update status of dataset version {dataset_version_id}",
        )
        logger.info(
            "Dataset version %s status set to %s", dataset_version_id, status.value
        )

    def update_current_dataset_version(
        self,
        dataset_id: str,
        dataset_version_id: str,
        stage: VersionStage = VersionStage.STABLE,
    ) -> None:
        """Make ``dataset_version_id`` the current version of ``dataset_id``.

        Raises:
            BackendError: If the backend rejects the update.
        """
        self._call(
            "PUT",
            CURRENT_VERSION_PATH,
            {
                "id": dataset_id,
                "target_resource": "DATASET_VERSION",
                "update_target_id": dataset_version_id,
                "update_stage": stage.value,
            },
            f"set current version of dataset {dataset_id}",
        )
