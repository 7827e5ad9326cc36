"""HTTP transport to the load and dataset services."""

from __future__ import annotations

import logging
from typing import Any

import requests

from datahandler.config import DatahandlerConfig
from datahandler.const import TOKEN_HEADER
from datahandler.exceptions import ConfigError

logger = logging.getLogger(__name__)


class BackendClient:
    """Authenticated JSON calls against the backend API.

    The client owns one ``requests.Session``; use one client per concurrent
    upload. Errors are raised as ``requests`` exceptions and translated by
    the services built on top.
    """

    def __init__(
        self, config: DatahandlerConfig, session: requests.Session | None = None
    ) -> None:
        """Initialize the client.

        Args:
            config: Resolved configuration. ``api_url`` and ``token`` must be set.
            session: Optional pre-built HTTP session.

        Raises:
            ConfigError: If the endpoint or token is missing.
        """
        self.base_url = config.require_api_url()
        if not config.token:
            raise ConfigError("An API token is required to talk to the backend")
        self.timeout = config.http_timeout

        self.session = session or requests.Session()
        self.session.headers.update({TOKEN_HEADER: config.token})
        self.session.verify = config.verify_tls

    def _request(self, method: str, path: str, payload: dict[str, Any]) -> dict:
        url = f"{self.base_url}{path}"
        logger.debug("%s %s", method, url)
        response = self.session.request(
            method, url, json=payload, timeout=self.timeout
        )
        logger.debug(
            "%s %s response: status=%d", method, url, response.status_code
        )
        response.raise_for_status()
        if not response.content:
            return {}
        body = response.json()
        if not isinstance(body, dict):
            raise ValueError(f"Expected a JSON object from {path}, got {body!r}")
        return body

    def post(self, path: str, payload: dict[str, Any]) -> dict:
        """POST ``payload`` as JSON and return the decoded response body.

        Raises:
            requests.RequestException: On transport errors or non-2xx status.
            ValueError: If the body is not a JSON object.
        """
        return self._request("POST", path, payload)

    def put(self, path: str, payload: dict[str, Any]) -> dict:
        """PUT ``payload`` as JSON and return the decoded response body.

        Raises:
            requests.RequestException: On transport errors or non-2xx status.
            ValueError: If the body is not a JSON object.
        """
        return self._request("PUT", path, payload)

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> BackendClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
