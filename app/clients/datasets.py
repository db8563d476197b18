"""
Datasets catalogue client
=========================

Reads datasets, their editions and per-version metadata. Every call carries
the service auth token; ``collection_id`` is forwarded when a dataset lives
in an open collection.
"""

from typing import Any, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from app.clients.http import UpstreamClient
from app.core.errors import DATASETS, DecodeError
from app.models.datasets import DatasetList, EditionsDetails, Metadata

M = TypeVar("M", bound=BaseModel)


def _parse(model: Type[M], data: Any, kind: str) -> M:
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise DecodeError(exc, kind=kind) from exc


class DatasetsClient(UpstreamClient):
    upstream = DATASETS

    def __init__(self, base_url: str, service_auth_token: str = "", **kwargs):
        super().__init__(base_url, **kwargs)
        self.service_auth_token = service_auth_token

    def _headers(self, collection_id: str = "") -> Dict[str, str]:
        headers = {}
        if self.service_auth_token:
            headers["Authorization"] = f"Bearer {self.service_auth_token}"
        if collection_id:
            headers["Collection-Id"] = collection_id
        return headers

    def get_datasets(self, offset: int = 0, limit: int = 500) -> DatasetList:
        data = self._get_json(
            "/datasets",
            kind="datasets",
            params={"offset": offset, "limit": limit},
            headers=self._headers(),
        )
        return _parse(DatasetList, data, "datasets")

    def get_editions(self, dataset_id: str, collection_id: str = "") -> List[EditionsDetails]:
        data = self._get_json(
            f"/datasets/{dataset_id}/editions",
            kind="editions",
            headers=self._headers(collection_id),
        )
        if not isinstance(data, dict) or not isinstance(data.get("items") or [], list):
            raise DecodeError(TypeError(f"unexpected editions body: {type(data).__name__}"), kind="editions")
        return [_parse(EditionsDetails, item, "editions") for item in data.get("items") or []]

    def get_version_metadata(
        self,
        dataset_id: str,
        edition: str,
        version: str,
        collection_id: Optional[str] = "",
    ) -> Metadata:
        data = self._get_json(
            f"/datasets/{dataset_id}/editions/{edition}/versions/{version}/metadata",
            kind="version metadata",
            headers=self._headers(collection_id or ""),
        )
        return _parse(Metadata, data, "version metadata")
