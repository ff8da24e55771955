"""Packed path encoding for the router's multi-hop exactInput call.

Layout: token0 (20 bytes) | fee0 (3 bytes, big-endian) | token1 | fee1 | ... | tokenN
"""

from __future__ import annotations

from typing import Sequence

from eth_abi.packed import encode_packed
from eth_utils.address import is_address, to_checksum_address

from .errors import EncodingError
from .types import Route, RouteKind

ADDRESS_SIZE = 20
FEE_SIZE = 3
MAX_FEE = 2**24 - 1


def encode_path(tokens: Sequence[str], fees: Sequence[int]) -> bytes:
    if len(tokens) != len(fees) + 1:
        raise EncodingError(
            f"path needs one more token than fees, got {len(tokens)} tokens "
            f"and {len(fees)} fees"
        )

    types: list[str] = []
    values: list[object] = []
    for token, fee in zip(tokens, fees):
        types += ["address", "uint24"]
        values += [_checked_address(token), _checked_fee(fee)]
    types.append("address")
    values.append(_checked_address(tokens[-1]))
    return encode_packed(types, values)


def decode_path(data: bytes) -> tuple[list[str], list[int]]:
    """Inverse of encode_path; returns checksummed tokens and fee tiers."""
    step = ADDRESS_SIZE + FEE_SIZE
    if len(data) < ADDRESS_SIZE + step or (len(data) - ADDRESS_SIZE) % step:
        raise EncodingError(f"invalid path length {len(data)}")

    tokens: list[str] = []
    fees: list[int] = []
    offset = 0
    while offset + ADDRESS_SIZE < len(data):
        tokens.append(to_checksum_address(data[offset:offset + ADDRESS_SIZE]))
        offset += ADDRESS_SIZE
        fees.append(int.from_bytes(data[offset:offset + FEE_SIZE], "big"))
        offset += FEE_SIZE
    tokens.append(to_checksum_address(data[offset:]))
    return tokens, fees


def route_path(route: Route, token_in: str, token_out: str) -> tuple[list[str], list[int]]:
    """Token and fee sequences for swapping token_in to token_out along route."""
    if route.kind is RouteKind.DIRECT:
        return [token_in, token_out], [route.hops[0].fee_tier]
    assert route.intermediary_token is not None
    return (
        [token_in, route.intermediary_token.address, token_out],
        [route.hops[0].fee_tier, route.hops[1].fee_tier],
    )


def _checked_address(token: str) -> str:
    if not isinstance(token, str) or not is_address(token):
        raise EncodingError(f"invalid token address in path: {token!r}")
    return to_checksum_address(token)


def _checked_fee(fee: int) -> int:
    if not isinstance(fee, int) or isinstance(fee, bool) or not 0 <= fee <= MAX_FEE:
        raise EncodingError(f"fee tier out of uint24 range: {fee!r}")
    return fee
