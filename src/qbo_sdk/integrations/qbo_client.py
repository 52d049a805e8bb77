"""QuickBooks Online (QBO) connector.

Purpose
- Map generic CRUD calls for any QBO entity onto the v3 REST API.
- Run Query API statements compiled from structured criteria, optionally
  paging through every result (`fetchAll`).

Per-entity helpers (`create_invoice`, `find_customers`, ...) are generated
from the tables in `qbo_entities`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Iterable, Iterator

import requests

from src.qbo_sdk.config.settings import QBOConfig
from src.qbo_sdk.integrations.qbo_criteria import CriteriaSet, normalize
from src.qbo_sdk.integrations.qbo_entities import install_entity_methods
from src.qbo_sdk.integrations.qbo_errors import QBOFaultError, QBOHTTPError, fault_errors
from src.qbo_sdk.integrations.qbo_query import compile_query, escape_query

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class QueryResult:
    entity_name: str
    response: dict[str, Any]
    entities: list[dict[str, Any]] = field(default_factory=list)
    max_results: int = 0
    total_count: int | None = None
    pages: int = 1

    def __len__(self) -> int:
        return len(self.entities)

    def __iter__(self) -> Iterator[dict[str, Any]]:
        return iter(self.entities)


def _capitalize(s: str) -> str:
    return s[:1].upper() + s[1:]


def _find_entity_key(query_response: dict[str, Any], entity_name: str) -> str | None:
    needle = entity_name.lower()
    for k in query_response:
        if k.lower() == needle:
            return k
    return None


def _as_rows(value: Any) -> list[dict[str, Any]]:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    if isinstance(value, dict):
        return [value]
    return []


class QBOClient:
    def __init__(self, config: QBOConfig) -> None:
        self._config = config

    @classmethod
    def from_env(cls) -> "QBOClient":
        return cls(QBOConfig.from_env())

    @property
    def config(self) -> QBOConfig:
        return self._config

    def _company_url(self, path: str) -> str:
        return f"{self._config.base_url}/v3/company/{self._config.realm_id}{path}"

    def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        body: Any = None,
    ) -> dict[str, Any]:
        """Perform one authenticated call against the company endpoint.

        Raises `QBOHTTPError` for status >= 400 and `QBOFaultError` when a
        successful response carries a `Fault`. Network errors from `requests`
        propagate unchanged. Nothing is retried.
        """

        url = self._company_url(path)
        params = dict(params or {})
        if self._config.minor_version:
            params.setdefault("minorversion", self._config.minor_version)

        resp = requests.request(
            method,
            url,
            headers={
                "Authorization": f"Bearer {self._config.access_token}",
                "Accept": "application/json",
            },
            params=params or None,
            json=body,
            timeout=self._config.timeout_seconds,
        )

        # Only URL/params, never tokens.
        if self._config.debug:
            logger.info(f"QBO {method} {getattr(resp, 'url', url)} -> {resp.status_code}")

        if resp.status_code >= 400:
            raise QBOHTTPError(resp.status_code, resp.text)

        data = resp.json()
        errors = fault_errors(data)
        if errors:
            raise QBOFaultError(errors, data)
        return data

    def _unwrap(self, entity_name: str, data: dict[str, Any]) -> dict[str, Any]:
        return data.get(_capitalize(entity_name)) or data

    def create(self, entity_name: str, body: dict[str, Any]) -> dict[str, Any]:
        data = self.request("POST", f"/{entity_name.lower()}", body=body)
        return self._unwrap(entity_name, data)

    def read(self, entity_name: str, entity_id: str) -> dict[str, Any]:
        data = self.request("GET", f"/{entity_name.lower()}/{entity_id}")
        return self._unwrap(entity_name, data)

    def update(self, entity_name: str, body: dict[str, Any]) -> dict[str, Any]:
        if not body.get("Id") or not body.get("SyncToken"):
            raise ValueError(f"{entity_name} must contain Id and SyncToken fields: {body!r}")
        data = self.request(
            "POST",
            f"/{entity_name.lower()}",
            params={"operation": "update"},
            body=body,
        )
        return self._unwrap(entity_name, data)

    def delete(self, entity_name: str, id_or_body: str | dict[str, Any]) -> dict[str, Any]:
        """Delete an entity. A bare Id is resolved with a read first."""

        if isinstance(id_or_body, dict):
            body = id_or_body
        else:
            body = self.read(entity_name, id_or_body)
        data = self.request(
            "POST",
            f"/{entity_name.lower()}",
            params={"operation": "delete"},
            body=body,
        )
        return self._unwrap(entity_name, data)

    def get_company_info(self, entity_id: str | None = None) -> dict[str, Any]:
        return self.read("CompanyInfo", entity_id or self._config.realm_id)

    def execute_query(self, query: str) -> dict[str, Any]:
        """Send an already-escaped Query API statement.

        The statement is placed in the URL as-is so it is not escaped twice.
        """

        return self.request("GET", f"/query?query={query}")

    def query_statement(self, statement: str) -> dict[str, Any]:
        """Run a hand-written statement, e.g. `select * from Account`."""

        return self.execute_query(escape_query(statement))

    def query(self, entity_name: str, criteria: Any = None) -> QueryResult:
        """Query `entity_name` with structured criteria.

        `criteria` is anything `normalize` accepts, or a prebuilt
        `CriteriaSet`. With `fetchAll`, pages are requested one after the
        other until a page comes back with fewer rows than `limit`; the rows
        of every page are concatenated in page order. Any error aborts the
        whole call.
        """

        criteria_set = criteria if isinstance(criteria, CriteriaSet) else normalize(criteria)
        limit = criteria_set.resolved_limit

        current = criteria_set
        first: dict[str, Any] | None = None
        last: dict[str, Any] = {}
        entity_key: str | None = None
        rows: list[dict[str, Any]] = []
        total = 0
        pages = 0

        while True:
            data = self.execute_query(compile_query(entity_name, current))
            pages += 1
            qr = data.get("QueryResponse")
            qr = qr if isinstance(qr, dict) else {}

            key = _find_entity_key(qr, entity_name)
            page_rows = _as_rows(qr.get(key)) if key else []
            page_max = int(qr.get("maxResults") or 0)

            logger.debug(
                f"QBO query {entity_name} page={pages} "
                f"offset={current.resolved_offset} limit={limit} rows={len(page_rows)}"
            )

            if not criteria_set.fetch_all:
                total_count = qr.get("totalCount")
                return QueryResult(
                    entity_name=entity_name,
                    response=data,
                    entities=page_rows,
                    max_results=page_max,
                    total_count=int(total_count) if total_count is not None else None,
                    pages=pages,
                )

            if first is None:
                first = data
            entity_key = entity_key or key
            rows.extend(page_rows)
            total += page_max
            last = data

            if page_max != limit:
                break
            current = current.next_page()

        return self._merge_pages(entity_name, first, last, entity_key, rows, total, pages)

    @staticmethod
    def _merge_pages(
        entity_name: str,
        first: dict[str, Any],
        last: dict[str, Any],
        entity_key: str | None,
        rows: list[dict[str, Any]],
        total: int,
        pages: int,
    ) -> QueryResult:
        response = dict(first)
        qr = dict(response.get("QueryResponse") or {})
        if entity_key is not None:
            qr[entity_key] = rows
        qr["maxResults"] = total
        response["QueryResponse"] = qr
        if "time" in last:
            response["time"] = last["time"]

        total_count = qr.get("totalCount")
        return QueryResult(
            entity_name=entity_name,
            response=response,
            entities=rows,
            max_results=total,
            total_count=int(total_count) if total_count is not None else None,
            pages=pages,
        )

    def report(self, report_type: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        """Fetch a QBO report by name, returning the raw JSON payload.

        Example report_type values:
        - BalanceSheet
        - AgedPayableDetail
        - TrialBalance
        """

        str_params = {k: str(v) for k, v in (params or {}).items() if v is not None}
        return self.request("GET", f"/reports/{report_type}", params=str_params)

    def batch(self, items: list[dict[str, Any]]) -> dict[str, Any]:
        """Submit a list of batch item requests.

        Each item is e.g. `{"Attachable": {...}}` or
        `{"operation": "delete", "Invoice": {...}}`. Missing `bId`s are filled
        with the item's position.
        """

        batch_items = []
        for i, item in enumerate(items):
            entry = dict(item)
            entry.setdefault("bId", str(i))
            batch_items.append(entry)
        return self.request("POST", "/batch", body={"BatchItemRequest": batch_items})

    def change_data_capture(
        self,
        entities: str | Iterable[str],
        since: str | date | datetime,
    ) -> dict[str, Any]:
        """Fetch entities changed since `since` (Change Data Capture)."""

        names = entities if isinstance(entities, str) else ",".join(entities)
        changed_since = since.isoformat() if isinstance(since, (date, datetime)) else str(since)
        return self.request(
            "GET",
            "/cdc",
            params={"entities": names, "changedSince": changed_since},
        )


install_entity_methods(QBOClient)
