"""Calldata helpers shared by the quoter, token reads and swap executor."""

from __future__ import annotations

from typing import Any, Optional

from eth_abi import decode as abi_decode
from eth_abi import encode as abi_encode
from eth_abi.exceptions import DecodingError
from eth_utils import keccak

from core.base_types import Address, TokenAmount, TransactionRequest

# Error(string)
ERROR_STRING_SELECTOR = bytes.fromhex("08c379a0")


def selector(signature: str) -> bytes:
    return keccak(text=signature)[:4]


def encode_call(signature: str, arg_types: list[str], args: list[Any]) -> bytes:
    return selector(signature) + abi_encode(arg_types, args)


def read_request(
    to: Address, data: bytes, chain_id: int, sender: Optional[Address] = None
) -> TransactionRequest:
    """Zero-value request for eth_call."""
    return TransactionRequest(
        to=to,
        value=TokenAmount(raw=0, decimals=18),
        data=data,
        chain_id=chain_id,
        sender=sender,
    )


def decode_revert_reason(data: object) -> Optional[str]:
    """Extract the Error(string) message from JSON-RPC revert data, if any."""
    if isinstance(data, dict):
        data = data.get("data")
    if not isinstance(data, str):
        return None
    normalized = data[2:] if data.startswith("0x") else data
    try:
        raw = bytes.fromhex(normalized)
    except ValueError:
        return None
    if not raw.startswith(ERROR_STRING_SELECTOR):
        return None
    try:
        (reason,) = abi_decode(["string"], raw[4:])
    except DecodingError:
        return None
    return str(reason)
