"""ERC20 metadata and balance reads."""

from __future__ import annotations

from eth_abi import decode as abi_decode
from eth_abi.exceptions import DecodingError

from chain.client import ChainClient
from chain.errors import ChainError
from core.base_types import Address

from .abi import encode_call, read_request, selector
from .errors import NoDataError
from .types import TokenRef

_METADATA_CALLS = ("decimals()", "symbol()", "name()")


def fetch_token_metadata(
    client: ChainClient, tokens: list[str], chain_id: int
) -> list[TokenRef]:
    """
    Read decimals/symbol/name for every token in a single JSON-RPC batch.

    Any failed or malformed read fails the whole lookup.
    """
    addresses = [Address.from_string(token) for token in tokens]
    calls = [
        read_request(address, selector(signature), chain_id)
        for address in addresses
        for signature in _METADATA_CALLS
    ]
    try:
        results = client.batch_call(calls)
    except ChainError as exc:
        raise NoDataError(f"token metadata lookup failed: {exc}") from exc

    refs: list[TokenRef] = []
    for index, address in enumerate(addresses):
        raw_decimals, raw_symbol, raw_name = results[index * 3:index * 3 + 3]
        refs.append(
            TokenRef(
                address=address.lower,
                symbol=_decode_string(raw_symbol, address, "symbol"),
                name=_decode_string(raw_name, address, "name"),
                decimals=_decode_uint8(raw_decimals, address),
            )
        )
    return refs


def balance_of(
    client: ChainClient, token: Address, owner: Address, chain_id: int
) -> int:
    data = encode_call("balanceOf(address)", ["address"], [owner.checksum])
    try:
        raw = client.call(read_request(token, data, chain_id))
    except ChainError as exc:
        raise NoDataError(f"balanceOf lookup failed for {token.checksum}: {exc}") from exc
    try:
        (balance,) = abi_decode(["uint256"], raw)
    except DecodingError as exc:
        raise NoDataError(f"balanceOf returned malformed data for {token.checksum}") from exc
    return int(balance)


def _decode_uint8(raw: bytes, token: Address) -> int:
    try:
        (value,) = abi_decode(["uint8"], raw)
    except DecodingError as exc:
        raise NoDataError(f"decimals() returned malformed data for {token.checksum}") from exc
    return int(value)


def _decode_string(raw: bytes, token: Address, field: str) -> str:
    # Some older tokens return bytes32 instead of string.
    if len(raw) == 32:
        return raw.rstrip(b"\x00").decode("utf-8", errors="replace")
    try:
        (value,) = abi_decode(["string"], raw)
    except DecodingError as exc:
        raise NoDataError(f"{field}() returned malformed data for {token.checksum}") from exc
    return str(value)
