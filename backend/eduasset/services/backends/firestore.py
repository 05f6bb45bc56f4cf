"""
EduAsset - Document Store Adapter
Collection/document access to Cloud Firestore (REST API v1)

Unlike the spreadsheet adapter this backend offers indexed equality
queries and atomic multi-document batches, but a batch is capped at 500
writes. Operations are chunked into sub-batches of at most
`firestore_batch_limit` writes and committed one after another, so a long
operation list is atomic per chunk only.
"""
import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import httpx

from eduasset.config import get_settings
from eduasset.services.backends.errors import (
    BackendError,
    PermissionDeniedError,
    RecordNotFoundError,
)

logger = logging.getLogger(__name__)

# Firestore rejects commits above this many writes
HARD_BATCH_CAP = 500


# ============================================================
# Typed value codec
# ============================================================

def encode_value(value: Any) -> Dict[str, Any]:
    """Encode a Python value as a Firestore typed Value."""
    if value is None:
        return {"nullValue": None}
    if isinstance(value, bool):
        return {"booleanValue": value}
    if isinstance(value, int):
        return {"integerValue": str(value)}
    if isinstance(value, float):
        return {"doubleValue": value}
    if isinstance(value, dict):
        return {"mapValue": {"fields": encode_fields(value)}}
    if isinstance(value, (list, tuple)):
        return {"arrayValue": {"values": [encode_value(v) for v in value]}}
    return {"stringValue": str(value)}


def encode_fields(data: Dict[str, Any]) -> Dict[str, Any]:
    return {key: encode_value(value) for key, value in data.items()}


def decode_value(value: Dict[str, Any]) -> Any:
    """Decode a Firestore typed Value into a plain Python value."""
    if "stringValue" in value:
        return value["stringValue"]
    if "integerValue" in value:
        return int(value["integerValue"])
    if "doubleValue" in value:
        return float(value["doubleValue"])
    if "booleanValue" in value:
        return value["booleanValue"]
    if "nullValue" in value:
        return None
    if "mapValue" in value:
        return decode_fields(value["mapValue"].get("fields", {}))
    if "arrayValue" in value:
        return [decode_value(v) for v in value["arrayValue"].get("values", [])]
    if "timestampValue" in value:
        return value["timestampValue"]
    if "referenceValue" in value:
        return value["referenceValue"]
    if "geoPointValue" in value:
        return dict(value["geoPointValue"])
    return None


def decode_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    return {key: decode_value(value) for key, value in fields.items()}


def new_document_id() -> str:
    """Client-side auto id, same length as the SDK's."""
    return uuid.uuid4().hex[:20]


@dataclass
class BatchOp:
    """
    One write inside a batch commit.

    kind: "set" (overwrite), "merge" (upsert listed fields),
    "update" (listed fields, document must exist) or "delete".
    """
    kind: str
    collection: str
    doc_id: str
    fields: Dict[str, Any] = field(default_factory=dict)


class FirestoreAdapter:
    """Async client for one Firestore project, authenticated with a web API key."""

    def __init__(
        self,
        project_id: str,
        api_key: str,
        database: str = "(default)",
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        batch_limit: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_settings()
        self.project_id = project_id
        self.api_key = api_key
        self.database = database
        self.base_url = (base_url or settings.firestore_api_url).rstrip("/")
        self.timeout = timeout or settings.http_timeout
        self.batch_limit = min(batch_limit or settings.firestore_batch_limit, HARD_BATCH_CAP)
        self._transport = transport

    # ------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.timeout,
            transport=self._transport,
            params={"key": self.api_key},
        )

    @property
    def _root(self) -> str:
        return f"projects/{self.project_id}/databases/{self.database}/documents"

    @property
    def _documents_url(self) -> str:
        return f"{self.base_url}/{self._root}"

    def _doc_name(self, collection: str, doc_id: str) -> str:
        return f"{self._root}/{collection}/{doc_id}"

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            payload = response.json()
        except ValueError:
            return response.text
        if isinstance(payload, list) and payload:
            payload = payload[0]
        if isinstance(payload, dict):
            return payload.get("error", {}).get("message", response.text)
        return response.text

    def _raise_for_status(self, response: httpx.Response, context: str) -> None:
        if response.status_code < 400:
            return
        message = self._error_message(response)
        if response.status_code in (401, 403):
            logger.warning(f"Permission denied on {context}: {message}")
            raise PermissionDeniedError(message or "PERMISSION_DENIED", response.status_code)
        if response.status_code == 404:
            raise RecordNotFoundError(f"{context} not found", 404)
        logger.error(f"Firestore call failed on {context} ({response.status_code}): {message}")
        raise BackendError(message, response.status_code)

    @staticmethod
    def _to_record(document: Dict[str, Any]) -> Dict[str, Any]:
        record = decode_fields(document.get("fields", {}))
        record["id"] = document["name"].rsplit("/", 1)[-1]
        return record

    def _write(self, op: BatchOp) -> Dict[str, Any]:
        name = self._doc_name(op.collection, op.doc_id)
        if op.kind == "delete":
            return {"delete": name}

        write: Dict[str, Any] = {"update": {"name": name, "fields": encode_fields(op.fields)}}
        if op.kind in ("merge", "update"):
            write["updateMask"] = {"fieldPaths": list(op.fields.keys())}
        if op.kind == "update":
            write["currentDocument"] = {"exists": True}
        elif op.kind != "set" and op.kind != "merge":
            raise ValueError(f"Unknown batch operation: {op.kind}")
        return write

    # ------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------

    async def get_collection(self, collection: str) -> List[Dict[str, Any]]:
        """All documents of a collection (pages followed until exhausted)."""
        records: List[Dict[str, Any]] = []
        page_token: Optional[str] = None
        async with self._client() as client:
            while True:
                params = {"pageSize": 300}
                if page_token:
                    params["pageToken"] = page_token
                response = await client.get(f"{self._documents_url}/{collection}", params=params)
                self._raise_for_status(response, collection)
                payload = response.json()
                records.extend(self._to_record(doc) for doc in payload.get("documents", []))
                page_token = payload.get("nextPageToken")
                if not page_token:
                    break
        logger.debug(f"Fetched {len(records)} documents from {collection}")
        return records

    async def get_one(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        async with self._client() as client:
            response = await client.get(f"{self._documents_url}/{collection}/{doc_id}")
        if response.status_code == 404:
            return None
        self._raise_for_status(response, f"{collection}/{doc_id}")
        return self._to_record(response.json())

    async def query_by_field(self, collection: str, field_path: str, value: Any) -> List[Dict[str, Any]]:
        """Native indexed equality query on a single field."""
        query = {
            "structuredQuery": {
                "from": [{"collectionId": collection}],
                "where": {
                    "fieldFilter": {
                        "field": {"fieldPath": field_path},
                        "op": "EQUAL",
                        "value": encode_value(value),
                    }
                },
            }
        }
        async with self._client() as client:
            response = await client.post(f"{self._documents_url}:runQuery", json=query)
        self._raise_for_status(response, f"{collection} where {field_path}")
        return [self._to_record(entry["document"]) for entry in response.json() if "document" in entry]

    # ------------------------------------------------------------
    # Single-document writes
    # ------------------------------------------------------------

    async def _patch(self, collection: str, doc_id: str, fields: Dict[str, Any], mask: bool, must_exist: bool) -> None:
        params: Dict[str, Any] = {}
        if mask:
            params["updateMask.fieldPaths"] = list(fields.keys())
        if must_exist:
            params["currentDocument.exists"] = "true"
        async with self._client() as client:
            response = await client.patch(
                f"{self._documents_url}/{collection}/{doc_id}",
                params=params,
                json={"fields": encode_fields(fields)},
            )
        self._raise_for_status(response, f"{collection}/{doc_id}")

    async def set(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        """Create or fully overwrite a document."""
        await self._patch(collection, doc_id, fields, mask=False, must_exist=False)

    async def set_merge(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        """Upsert only the given fields; other fields are left untouched."""
        await self._patch(collection, doc_id, fields, mask=True, must_exist=False)

    async def update(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        """Update given fields of an existing document (RecordNotFoundError otherwise)."""
        await self._patch(collection, doc_id, fields, mask=True, must_exist=True)

    async def delete(self, collection: str, doc_id: str) -> None:
        async with self._client() as client:
            response = await client.delete(f"{self._documents_url}/{collection}/{doc_id}")
        if response.status_code == 404:
            return
        self._raise_for_status(response, f"{collection}/{doc_id}")

    # ------------------------------------------------------------
    # Batches
    # ------------------------------------------------------------

    def fits_one_batch(self, op_count: int) -> bool:
        return op_count <= self.batch_limit

    async def batch_commit(self, ops: Sequence[BatchOp]) -> int:
        """
        Commit writes in chunks of at most batch_limit.

        Each chunk is atomic; chunks are committed sequentially and a
        failure stops the remaining chunks. Returns the number of commits.
        """
        commits = 0
        for start in range(0, len(ops), self.batch_limit):
            chunk = ops[start:start + self.batch_limit]
            writes = [self._write(op) for op in chunk]
            async with self._client() as client:
                response = await client.post(f"{self._documents_url}:commit", json={"writes": writes})
            self._raise_for_status(response, "batch commit")
            commits += 1
            logger.debug(f"Committed batch {commits} ({len(chunk)} writes)")
        return commits
