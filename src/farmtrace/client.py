"""
TraceClient SDK — sync client for FarmTrace.

Used by the consumer scan flow and by producer tooling to read product
journeys, resolve scanned batch codes and append stages.
"""

import json
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional, Union
from urllib.parse import quote

import httpx

from farmtrace.ledger.blocks import block_hash as derive_block_hash
from farmtrace.ledger.schemas import validate_stage_fields


@dataclass
class ClientStage:
    """Stage info returned by the SDK."""

    id: int
    product_id: int
    stage_name: str
    location: str
    timestamp: str
    updated_by: Optional[int] = None
    updated_by_name: Optional[str] = None
    description: Optional[str] = None
    notes: Optional[str] = None
    product_name: Optional[str] = None
    batch_code: Optional[str] = None

    @property
    def block_hash(self) -> str:
        return derive_block_hash(self.id, self.timestamp)

    @property
    def recorded_at(self) -> Optional[datetime]:
        try:
            return datetime.fromisoformat(self.timestamp.replace("Z", "+00:00"))
        except (ValueError, AttributeError):
            return None


@dataclass
class ClientProduct:
    id: int
    name: str
    batch_code: str


@dataclass
class ClientError:
    """Structured failure: HTTP errors, exhausted retries, bad JSON."""

    code: str
    message: str
    status_code: Optional[int] = None


# ── Scan outcomes ──


@dataclass
class BatchNotFound:
    batch_code: str


@dataclass
class BatchNoStages:
    product: ClientProduct


@dataclass
class BatchWithStages:
    stages: list[ClientStage] = field(default_factory=list)

    @property
    def product(self) -> ClientProduct:
        first = self.stages[0]
        return ClientProduct(
            id=first.product_id,
            name=first.product_name or "",
            batch_code=first.batch_code or "",
        )


ScanResult = Union[BatchNotFound, BatchNoStages, BatchWithStages, ClientError]


@dataclass
class ClientIntegrity:
    is_valid: bool
    total_stages: int
    message: str


@dataclass
class ClientStageAdded:
    stage: ClientStage
    block_hash: str
    message: str = ""


class TraceClient:
    """
    Synchronous HTTP client for FarmTrace.

    Can be wrapped in async by consumers; designed for simplicity in sync contexts.
    """

    def __init__(
        self,
        server_url: str = "http://localhost:5000",
        token: Optional[str] = None,
        timeout: int = 30,
        max_retries: int = 3,
        retry_backoff_base: float = 0.5,
    ):
        self.server_url = server_url.rstrip("/")
        self.token = token
        self.max_retries = max_retries
        self.retry_backoff_base = retry_backoff_base
        self._http = httpx.Client(
            base_url=self.server_url,
            timeout=timeout,
        )

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "TraceClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _auth_headers(self) -> dict[str, str]:
        headers = {}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _request(
        self,
        method: str,
        path: str,
        **kwargs: Any,
    ) -> tuple[Optional[int], Any]:
        """Central HTTP method with retry.

        Retries on timeouts, transport errors, 5xx and 429. Returns
        ``(status_code, parsed_json)``, or ``(None, ClientError)`` when the
        retries are exhausted. Other 4xx responses are returned as-is so
        callers can interpret them.
        """
        last_error = None
        for attempt in range(self.max_retries):
            try:
                resp = getattr(self._http, method)(path, **kwargs)
                if resp.status_code >= 500 or resp.status_code == 429:
                    last_error = f"HTTP {resp.status_code}"
                    if attempt < self.max_retries - 1:
                        time.sleep(self.retry_backoff_base * (2 ** attempt))
                        continue
                    return resp.status_code, ClientError(
                        code="SERVER_ERROR",
                        message=f"Server error: {resp.status_code}",
                        status_code=resp.status_code,
                    )
                return resp.status_code, resp.json()
            except httpx.TimeoutException:
                last_error = "timeout"
                if attempt < self.max_retries - 1:
                    time.sleep(self.retry_backoff_base * (2 ** attempt))
                    continue
            except httpx.HTTPError as e:
                last_error = str(e)
                if attempt < self.max_retries - 1:
                    time.sleep(self.retry_backoff_base * (2 ** attempt))
                    continue
            except json.JSONDecodeError:
                return None, ClientError(code="JSON_ERROR", message="Invalid JSON response")

        return None, ClientError(
            code="CONNECTION_ERROR",
            message=f"All {self.max_retries} retries exhausted: {last_error}",
        )

    @staticmethod
    def _client_error(status_code: Optional[int], data: Any) -> ClientError:
        if isinstance(data, ClientError):
            return data
        detail = data.get("detail", "") if isinstance(data, dict) else ""
        return ClientError(
            code="CLIENT_ERROR",
            message=str(detail) or f"Client error: {status_code}",
            status_code=status_code,
        )

    @staticmethod
    def _parse_stage(data: dict) -> ClientStage:
        return ClientStage(
            id=data.get("id", 0),
            product_id=data.get("product_id", 0),
            stage_name=data.get("stage_name", ""),
            location=data.get("location", ""),
            timestamp=data.get("timestamp", ""),
            updated_by=data.get("updated_by"),
            updated_by_name=data.get("updated_by_name"),
            description=data.get("description"),
            notes=data.get("notes"),
            product_name=data.get("product_name"),
            batch_code=data.get("batch_code"),
        )

    # ── Consumer reads ──

    def get_journey(self, product_id: int) -> Union[list[ClientStage], ClientError]:
        """Stages of a product, oldest first."""
        status, data = self._request("get", f"/supply-chain/{product_id}")
        if status != 200 or not isinstance(data, list):
            return self._client_error(status, data)
        return [self._parse_stage(s) for s in data]

    def resolve_batch(self, batch_code: str) -> ScanResult:
        """Resolve a scanned batch code into one of the three scan outcomes."""
        code = batch_code.strip()
        status, data = self._request("get", f"/supply-chain/batch/{quote(code, safe='')}")

        if status == 404 and isinstance(data, dict) and data.get("productNotFound"):
            return BatchNotFound(batch_code=code)
        if status == 200 and isinstance(data, dict) and data.get("noStages"):
            product = data.get("product", {})
            return BatchNoStages(product=ClientProduct(
                id=product.get("id", 0),
                name=product.get("name", ""),
                batch_code=product.get("batch_code", code),
            ))
        if status == 200 and isinstance(data, list):
            return BatchWithStages(stages=[self._parse_stage(s) for s in data])
        return self._client_error(status, data)

    def verify(self, product_id: int) -> Union[ClientIntegrity, ClientError]:
        status, data = self._request("get", f"/supply-chain/{product_id}/verify")
        if status != 200 or not isinstance(data, dict):
            return self._client_error(status, data)
        return ClientIntegrity(
            is_valid=data.get("isValid", False),
            total_stages=data.get("totalStages", 0),
            message=data.get("message", ""),
        )

    def stats(self, product_id: int) -> Union[dict[str, Any], ClientError]:
        status, data = self._request("get", f"/supply-chain/{product_id}/stats")
        if status != 200 or not isinstance(data, dict):
            return self._client_error(status, data)
        return data

    # ── Producer writes ──

    def add_stage(
        self,
        product_id: int,
        stage_name: str,
        location: str,
        description: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Union[ClientStageAdded, ClientError]:
        """Append a stage. Blank names/locations raise before any request.

        Optional fields left as None are not sent, so the server stores null.
        """
        stage_name, location = validate_stage_fields(stage_name, location)
        body = {"stage_name": stage_name, "location": location}
        if description is not None:
            body["description"] = description.strip()
        if notes is not None:
            body["notes"] = notes.strip()
        status, data = self._request(
            "post", f"/supply-chain/{product_id}",
            json=body, headers=self._auth_headers(),
        )
        if status != 201 or not isinstance(data, dict):
            return self._client_error(status, data)
        return ClientStageAdded(
            stage=self._parse_stage(data.get("stage", {})),
            block_hash=data.get("blockHash", ""),
            message=data.get("message", ""),
        )
