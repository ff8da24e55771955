"""QuoterV2 wrapper: read-only simulated single-pool trades via eth_call."""

from __future__ import annotations

import logging

from eth_abi import decode as abi_decode
from eth_abi.exceptions import DecodingError

from chain.client import ChainClient
from chain.errors import ChainError, RPCError
from core.base_types import Address

from .abi import decode_revert_reason, encode_call, read_request
from .errors import QuoteError

logger = logging.getLogger(__name__)

QUOTE_EXACT_INPUT_SINGLE = "quoteExactInputSingle((address,address,uint256,uint24,uint160))"
QUOTE_PARAMS_TYPE = "(address,address,uint256,uint24,uint160)"
# (amountOut, sqrtPriceX96After, initializedTicksCrossed, gasEstimate)
QUOTE_RESULT_TYPES = ["uint256", "uint160", "uint32", "uint256"]


class V3Quoter:
    """Simulates exact-input swaps against a QuoterV2 deployment."""

    def __init__(self, client: ChainClient, quoter: Address, chain_id: int):
        self._client = client
        self._quoter = quoter
        self._chain_id = chain_id

    def quote_exact_input_single(
        self,
        token_in: str,
        token_out: str,
        fee: int,
        amount_in: int,
    ) -> int:
        """Expected output for amount_in through the token_in/token_out pool at fee.

        No price limit is applied (sqrtPriceLimitX96 = 0).
        """
        params = (
            Address.from_string(token_in).checksum,
            Address.from_string(token_out).checksum,
            amount_in,
            fee,
            0,
        )
        calldata = encode_call(QUOTE_EXACT_INPUT_SINGLE, [QUOTE_PARAMS_TYPE], [params])
        try:
            raw = self._client.call(read_request(self._quoter, calldata, self._chain_id))
        except RPCError as exc:
            reason = decode_revert_reason(exc.data) or str(exc)
            logger.warning(
                "quote %s -> %s fee=%s amount=%s reverted: %s",
                token_in,
                token_out,
                fee,
                amount_in,
                reason,
            )
            raise QuoteError(f"Simulated trade reverted: {reason}", reason=reason) from exc
        except ChainError as exc:
            raise QuoteError(f"Simulated trade failed: {exc}", reason=str(exc)) from exc

        try:
            decoded = abi_decode(QUOTE_RESULT_TYPES, raw)
        except DecodingError as exc:
            raise QuoteError("Quoter returned malformed result") from exc
        return int(decoded[0])
