"""Pool data source backed by the exchange's GraphQL subgraph."""

from __future__ import annotations

import json
import logging
import time
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

import requests

from .errors import NoDataError
from .types import PoolRef, TokenRef

logger = logging.getLogger(__name__)

_TOKEN_FIELDS = """
      id
      symbol
      name
      decimals
"""

_POOL_FIELDS = f"""
    id
    token0 {{{_TOKEN_FIELDS}    }}
    token1 {{{_TOKEN_FIELDS}    }}
    feeTier
    liquidity
    token0Price
    token1Price
    totalValueLockedUSD
"""

DIRECT_POOLS_QUERY = f"""
query findDirectPools($token0: String!, $token1: String!) {{
  pools(
    where: {{
      token0_in: [$token0, $token1]
      token1_in: [$token0, $token1]
      liquidity_gt: 0
    }}
  ) {{{_POOL_FIELDS}  }}
}}
"""

POOLS_CONTAINING_TOKEN_QUERY = f"""
query findPoolsContaining($token: String!) {{
  pools(
    where: {{
      or: [
        {{ token0: $token, liquidity_gt: 0 }}
        {{ token1: $token, liquidity_gt: 0 }}
      ]
    }}
  ) {{{_POOL_FIELDS}  }}
}}
"""

POOL_QUERY = f"""
query getPool($id: String!) {{
  pools(where: {{ id: $id }}) {{{_POOL_FIELDS}  }}
}}
"""

TOKEN_QUERY = f"""
query getToken($id: String!) {{
  tokens(where: {{ id: $id }}) {{{_TOKEN_FIELDS}  }}
}}
"""


class SubgraphClient:
    """Minimal GraphQL-over-HTTP client. Every failure is a NoDataError."""

    def __init__(
        self,
        url: str,
        timeout: int = 30,
        session: Optional[requests.Session] = None,
    ):
        if not url:
            raise ValueError("url must not be empty")
        self._url = url
        self._timeout = timeout
        self._session = session or requests.Session()

    def query(self, document: str, variables: Optional[dict] = None) -> dict:
        payload = {"query": document, "variables": variables or {}}
        start = time.perf_counter()
        try:
            response = self._session.post(self._url, json=payload, timeout=self._timeout)
        except requests.RequestException as exc:
            logger.warning("subgraph request to %s failed: %s", self._url, exc)
            raise NoDataError(f"Pool data source unreachable: {exc}") from exc
        logger.debug("subgraph query in %.3fs", time.perf_counter() - start)

        if response.status_code >= 400:
            raise NoDataError(f"HTTP {response.status_code} from pool data source")
        try:
            body = response.json()
        except (json.JSONDecodeError, ValueError) as exc:
            raise NoDataError("Pool data source returned non-JSON body") from exc
        if not isinstance(body, dict):
            raise NoDataError("Pool data source returned unexpected body")
        errors = body.get("errors")
        if errors:
            raise NoDataError(f"Pool data source error: {_error_messages(errors)}")
        data = body.get("data")
        if not isinstance(data, dict):
            raise NoDataError("Pool data source response has no data")
        return data


class PoolDataSource:
    """Typed pool and token lookups on top of a SubgraphClient."""

    def __init__(self, client: SubgraphClient):
        self._client = client

    def direct_pools(self, token_a: str, token_b: str) -> list[PoolRef]:
        data = self._client.query(
            DIRECT_POOLS_QUERY,
            {"token0": token_a.lower(), "token1": token_b.lower()},
        )
        return decode_pools(data, "pools")

    def pools_containing(self, token: str) -> list[PoolRef]:
        data = self._client.query(POOLS_CONTAINING_TOKEN_QUERY, {"token": token.lower()})
        return decode_pools(data, "pools")

    def get_pool(self, pool_id: str) -> Optional[PoolRef]:
        data = self._client.query(POOL_QUERY, {"id": pool_id.lower()})
        items = _require_list(data, "pools")
        return decode_pool(items[0]) if items else None

    def get_token(self, token_id: str) -> Optional[TokenRef]:
        data = self._client.query(TOKEN_QUERY, {"id": token_id.lower()})
        items = _require_list(data, "tokens")
        return decode_token(items[0]) if items else None


def decode_token(raw: Any) -> TokenRef:
    if not isinstance(raw, dict):
        raise NoDataError("token record is not an object")
    address = _require_str(raw, "id")
    try:
        return TokenRef(
            address=address,
            symbol=_require_str(raw, "symbol"),
            name=_require_str(raw, "name"),
            decimals=_require_int(raw, "decimals"),
        )
    except ValueError as exc:
        raise NoDataError(f"invalid token record {address}: {exc}") from exc


def decode_pool(raw: Any) -> PoolRef:
    if not isinstance(raw, dict):
        raise NoDataError("pool record is not an object")
    return PoolRef(
        id=_require_str(raw, "id").lower(),
        token0=decode_token(raw.get("token0")),
        token1=decode_token(raw.get("token1")),
        fee_tier=_require_int(raw, "feeTier"),
        liquidity=_require_int(raw, "liquidity"),
        total_value_locked_usd=_require_decimal(raw, "totalValueLockedUSD"),
        token0_price=_optional_decimal(raw, "token0Price"),
        token1_price=_optional_decimal(raw, "token1Price"),
    )


def decode_pools(data: dict, key: str) -> list[PoolRef]:
    """Decode a pool list and keep only pools with liquidity > 0."""
    pools = [decode_pool(item) for item in _require_list(data, key)]
    return [pool for pool in pools if pool.is_eligible]


def _require_list(data: dict, key: str) -> list:
    value = data.get(key)
    if not isinstance(value, list):
        raise NoDataError(f"response field {key!r} missing or not a list")
    return value


def _require_str(raw: dict, key: str) -> str:
    value = raw.get(key)
    if not isinstance(value, str):
        raise NoDataError(f"field {key!r} missing or not a string")
    return value


def _require_int(raw: dict, key: str) -> int:
    value = raw.get(key)
    if isinstance(value, bool):
        raise NoDataError(f"field {key!r} is not an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError as exc:
            raise NoDataError(f"field {key!r} is not an integer: {value!r}") from exc
    raise NoDataError(f"field {key!r} missing or not an integer")


def _require_decimal(raw: dict, key: str) -> Decimal:
    value = _optional_decimal(raw, key)
    if value is None:
        raise NoDataError(f"field {key!r} missing")
    return value


def _optional_decimal(raw: dict, key: str) -> Optional[Decimal]:
    value = raw.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (str, int)):
        raise NoDataError(f"field {key!r} is not a decimal string")
    try:
        result = Decimal(value)
    except InvalidOperation as exc:
        raise NoDataError(f"field {key!r} is not a decimal: {value!r}") from exc
    if not result.is_finite():
        raise NoDataError(f"field {key!r} is not finite")
    return result


def _error_messages(errors: Any) -> str:
    if isinstance(errors, list):
        return "; ".join(
            str(err.get("message", err)) if isinstance(err, dict) else str(err)
            for err in errors
        )
    return str(errors)
