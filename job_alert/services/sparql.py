from __future__ import annotations

from datetime import datetime, timezone
from functools import lru_cache
import logging
import re
from typing import Any

import httpx

from job_alert.core.config import get_settings

logger = logging.getLogger(__name__)

XSD = "http://www.w3.org/2001/XMLSchema#"
XSD_DATETIME = f"{XSD}dateTime"
XSD_INTEGER_TYPES = {f"{XSD}integer", f"{XSD}int", f"{XSD}long"}

# Characters that may not appear inside an IRIREF (SPARQL 1.1 grammar, production 139).
_ILLEGAL_IRI_CHARS_RE = re.compile(r'[<>"{}|^`\\\x00-\x20]')
_STRING_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\b": "\\b",
    "\f": "\\f",
}


class SparqlError(Exception):
    """Base triplestore error."""


class SparqlQueryError(SparqlError):
    """Raised when the endpoint is unreachable or rejects a query."""


class SparqlEscapeError(SparqlError, ValueError):
    """Raised when a value cannot be placed safely in query text."""


def escape_uri(value: str) -> str:
    if not isinstance(value, str) or not value:
        raise SparqlEscapeError("uri must be a non-empty string")
    if _ILLEGAL_IRI_CHARS_RE.search(value):
        raise SparqlEscapeError(f"uri contains characters not allowed in an IRI: {value!r}")
    return f"<{value}>"


def escape_string(value: str) -> str:
    escaped = "".join(_STRING_ESCAPES.get(char, char) for char in str(value))
    return f'"{escaped}"'


def escape_datetime(value: datetime) -> str:
    if not isinstance(value, datetime):
        raise SparqlEscapeError("datetime literal requires a datetime value")
    return f'"{format_timestamp(value)}"^^<{XSD_DATETIME}>'


def format_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(raw: str) -> datetime | None:
    candidate = raw.strip()
    if not candidate:
        return None
    try:
        parsed = datetime.fromisoformat(candidate.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_binding(binding: dict[str, Any] | None) -> Any:
    if not binding:
        return None

    value = binding.get("value")
    if binding.get("type") == "uri" or value is None:
        return value

    datatype = binding.get("datatype")
    if datatype == XSD_DATETIME:
        parsed = parse_timestamp(value)
        if parsed is None:
            logger.debug("unparsable dateTime literal value=%r", value)
        return parsed
    if datatype in XSD_INTEGER_TYPES:
        try:
            return int(value)
        except ValueError:
            logger.debug("unparsable integer literal value=%r", value)
            return None
    return value


def parse_results(payload: dict[str, Any], variables: list[str] | None = None) -> list[dict[str, Any]]:
    """Decode a SPARQL JSON result set into one dict per row.

    Variables listed in ``head.vars`` but unbound in a row decode to ``None``.
    """
    bindings = (payload.get("results") or {}).get("bindings") or []
    head_vars = variables if variables is not None else list((payload.get("head") or {}).get("vars") or [])
    rows: list[dict[str, Any]] = []
    for binding in bindings:
        row = {name: None for name in head_vars}
        for name, term in binding.items():
            row[name] = parse_binding(term)
        rows.append(row)
    return rows


class SparqlClient:
    def __init__(
        self,
        endpoint: str,
        *,
        timeout_seconds: float = 30.0,
        sudo: bool = True,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.endpoint = endpoint
        self.timeout_seconds = timeout_seconds
        self.headers = {"Accept": "application/sparql-results+json"}
        if sudo:
            self.headers["mu-auth-sudo"] = "true"
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def select(self, query: str) -> list[dict[str, Any]]:
        return parse_results(await self._post({"query": query}))

    async def ask(self, query: str) -> bool:
        payload = await self._post({"query": query})
        return payload.get("boolean") is True

    async def update(self, query: str) -> None:
        await self._post({"update": query}, expect_json=False)

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _post(self, form: dict[str, str], *, expect_json: bool = True) -> dict[str, Any]:
        client = self._get_client()
        try:
            response = await client.post(self.endpoint, data=form, headers=self.headers)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise SparqlQueryError(
                f"sparql endpoint returned status={exc.response.status_code}: {exc.response.text[:500]}"
            ) from exc
        except httpx.HTTPError as exc:
            raise SparqlQueryError(f"sparql endpoint unavailable: {exc}") from exc

        if not expect_json:
            return {}
        try:
            payload = response.json()
        except ValueError as exc:
            raise SparqlQueryError("sparql endpoint returned a non-JSON response") from exc
        if not isinstance(payload, dict):
            raise SparqlQueryError("sparql endpoint returned an unexpected payload")
        return payload

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout_seconds, transport=self._transport)
        return self._client


@lru_cache
def get_sparql_client() -> SparqlClient:
    settings = get_settings()
    return SparqlClient(
        settings.sparql_endpoint,
        timeout_seconds=settings.sparql_timeout_seconds,
        sudo=settings.sparql_sudo,
    )
