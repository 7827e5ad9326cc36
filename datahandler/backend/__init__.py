"""Clients for the load and dataset services."""

from .client import BackendClient
from .dataset_service import DatasetService
from .load_service import LoadServiceLinkProvider

__all__ = ["BackendClient", "DatasetService", "LoadServiceLinkProvider"]
