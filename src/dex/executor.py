"""Swap execution: approval, router submission and native-asset wrapping."""

from __future__ import annotations

import logging
import time
from decimal import Decimal
from typing import Optional, Union

from chain.client import ChainClient
from chain.errors import ChainError, TransactionFailed
from chain.transaction_builder import TransactionBuilder
from core.base_types import Address, TokenAmount, TransactionReceipt
from core.wallet_manager import WalletManager

from .abi import encode_call
from .config import DexConfig
from .erc20 import balance_of
from .errors import InsufficientBalanceError, TransactionFailedError
from .path import encode_path, route_path
from .quote import DEFAULT_SLIPPAGE_PERCENT, QuoteCalculator, SlippageLike
from .types import Quote, RouteKind, SwapResult, WrapResult

logger = logging.getLogger(__name__)

EXACT_INPUT_SINGLE = (
    "exactInputSingle((address,address,uint24,address,uint256,uint256,uint256,uint160))"
)
EXACT_INPUT_SINGLE_TYPE = "(address,address,uint24,address,uint256,uint256,uint256,uint160)"
EXACT_INPUT = "exactInput((bytes,address,uint256,uint256,uint256))"
EXACT_INPUT_TYPE = "(bytes,address,uint256,uint256,uint256)"

AmountLike = Union[str, Decimal]


class SwapExecutor:
    """
    Submits swaps through the router.

    Every entry point takes the caller's private key, builds a signer for the
    duration of the call and never stores it. Each transaction is confirmed
    before the next one is built.
    """

    def __init__(self, client: ChainClient, quotes: QuoteCalculator, config: DexConfig):
        self._client = client
        self._quotes = quotes
        self._config = config

    # ── swaps ────────────────────────────────────────────────────

    def swap_exact_tokens_for_tokens(
        self,
        private_key: str,
        token_in: str,
        token_out: str,
        amount_in: AmountLike,
        slippage_percent: SlippageLike = DEFAULT_SLIPPAGE_PERCENT,
    ) -> SwapResult:
        wallet = WalletManager(private_key)
        sender = Address.from_string(wallet.address)

        quote = self._quotes.get_swap_quote(token_in, token_out, amount_in, slippage_percent)
        self._approve(wallet, Address.from_string(token_in), quote.amount_in)

        calldata = self._swap_calldata(quote, token_in, token_out, recipient=sender)
        receipt = self._submit(wallet, self._config.swap_router, calldata)
        return self._result(receipt, sender, amount_in, quote)

    def swap_exact_native_for_tokens(
        self,
        private_key: str,
        token_out: str,
        amount_in: AmountLike,
        slippage_percent: SlippageLike = DEFAULT_SLIPPAGE_PERCENT,
    ) -> SwapResult:
        value = TokenAmount.from_human(amount_in, 18, self._config.native_symbol)
        if value.human > self._config.max_native_amount:
            raise ValueError(f"Amount too large: {value}")

        wallet = WalletManager(private_key)
        sender = Address.from_string(wallet.address)
        wrapped = self._config.wrapped_native.checksum

        quote = self._quotes.get_swap_quote(wrapped, token_out, amount_in, slippage_percent)
        calldata = self._swap_calldata(quote, wrapped, token_out, recipient=sender)
        receipt = self._submit(
            wallet,
            self._config.swap_router,
            calldata,
            value=value,
            gas_limit=self._config.native_gas_limit,
        )
        return self._result(receipt, sender, amount_in, quote)

    def swap_exact_tokens_for_native(
        self,
        private_key: str,
        token_in: str,
        amount_in: AmountLike,
        slippage_percent: SlippageLike = DEFAULT_SLIPPAGE_PERCENT,
    ) -> SwapResult:
        """
        Swap into the wrapped token held by the router, then unwrap to the sender.

        The swap and unwrapWETH9 are separate transactions. Between them the
        router holds the wrapped output, and anyone can claim it with their own
        unwrapWETH9 call.
        """
        wallet = WalletManager(private_key)
        sender = Address.from_string(wallet.address)
        router = self._config.swap_router
        wrapped = self._config.wrapped_native.checksum

        quote = self._quotes.get_swap_quote(token_in, wrapped, amount_in, slippage_percent)
        self._approve(wallet, Address.from_string(token_in), quote.amount_in)

        # The router keeps the wrapped output until unwrapWETH9 pays the sender.
        calldata = self._swap_calldata(quote, token_in, wrapped, recipient=router)
        receipt = self._submit(wallet, router, calldata)

        unwrap = encode_call(
            "unwrapWETH9(uint256,address)",
            ["uint256", "address"],
            [quote.minimum_amount_out, sender.checksum],
        )
        unwrap_receipt = self._submit(wallet, router, unwrap)
        return self._result(
            receipt, sender, amount_in, quote, unwrap_hash=unwrap_receipt.tx_hash
        )

    # ── wrapping ─────────────────────────────────────────────────

    def wrap_native(self, private_key: str, amount: AmountLike) -> WrapResult:
        wallet = WalletManager(private_key)
        value = TokenAmount.from_human(amount, 18, self._config.native_symbol)
        receipt = self._submit(
            wallet,
            self._config.wrapped_native,
            encode_call("deposit()", [], []),
            value=value,
        )
        return WrapResult(
            transaction_hash=receipt.tx_hash,
            sender=wallet.address,
            amount=str(amount),
        )

    def unwrap_wrapped(self, private_key: str, amount: AmountLike) -> WrapResult:
        wallet = WalletManager(private_key)
        sender = Address.from_string(wallet.address)
        wrapped = self._config.wrapped_native
        requested = TokenAmount.from_human(amount, 18)

        balance = balance_of(self._client, wrapped, sender, self._config.chain_id)
        if balance < requested.raw:
            have = TokenAmount(raw=balance, decimals=18).human
            raise InsufficientBalanceError(
                f"Insufficient wrapped balance: have {have}, tried to unwrap {requested.human}"
            )

        receipt = self._submit(
            wallet,
            wrapped,
            encode_call("withdraw(uint256)", ["uint256"], [requested.raw]),
        )
        return WrapResult(
            transaction_hash=receipt.tx_hash,
            sender=wallet.address,
            amount=str(amount),
        )

    # ── internals ────────────────────────────────────────────────

    def _approve(self, wallet: WalletManager, token: Address, amount: int) -> TransactionReceipt:
        calldata = encode_call(
            "approve(address,uint256)",
            ["address", "uint256"],
            [self._config.swap_router.checksum, amount],
        )
        return self._submit(wallet, token, calldata)

    def _swap_calldata(
        self, quote: Quote, token_in: str, token_out: str, recipient: Address
    ) -> bytes:
        deadline = int(time.time()) + self._config.deadline_seconds
        route = quote.route
        if route.kind is RouteKind.DIRECT:
            params = (
                Address.from_string(token_in).checksum,
                Address.from_string(token_out).checksum,
                route.hops[0].fee_tier,
                recipient.checksum,
                deadline,
                quote.amount_in,
                quote.minimum_amount_out,
                0,  # sqrtPriceLimitX96: no limit
            )
            return encode_call(EXACT_INPUT_SINGLE, [EXACT_INPUT_SINGLE_TYPE], [params])

        tokens, fees = route_path(route, token_in, token_out)
        params = (
            encode_path(tokens, fees),
            recipient.checksum,
            deadline,
            quote.amount_in,
            quote.minimum_amount_out,
        )
        return encode_call(EXACT_INPUT, [EXACT_INPUT_TYPE], [params])

    def _submit(
        self,
        wallet: WalletManager,
        to: Address,
        calldata: bytes,
        value: Optional[TokenAmount] = None,
        gas_limit: Optional[int] = None,
    ) -> TransactionReceipt:
        builder = (
            TransactionBuilder(self._client, wallet)
            .to(to)
            .value(value or TokenAmount.native(0, self._config.native_symbol))
            .data(calldata)
            .chain_id(self._config.chain_id)
        )
        try:
            if gas_limit is not None:
                builder.gas_limit(gas_limit)
            else:
                builder.with_gas_estimate()
            tx_hash = builder.with_gas_price(self._config.gas_priority).send()
        except ChainError as exc:
            logger.warning("submitting to %s failed: %s", to.checksum, exc)
            raise TransactionFailedError(f"Submitting to {to.checksum} failed: {exc}") from exc
        logger.info("submitted %s to %s", tx_hash, to.checksum)

        try:
            receipt = self._client.wait_for_receipt(
                tx_hash, timeout=self._config.receipt_timeout
            )
        except TransactionFailed as exc:
            raise TransactionFailedError(f"Transaction {tx_hash} failed", tx_hash) from exc
        except TimeoutError as exc:
            raise TransactionFailedError(f"No receipt for transaction {tx_hash}", tx_hash) from exc
        if receipt is None or not receipt.status:
            raise TransactionFailedError(f"Transaction {tx_hash} failed", tx_hash)
        logger.info("confirmed %s in block %s", tx_hash, receipt.block_number)
        return receipt

    @staticmethod
    def _result(
        receipt: TransactionReceipt,
        sender: Address,
        amount_in: AmountLike,
        quote: Quote,
        unwrap_hash: Optional[str] = None,
    ) -> SwapResult:
        return SwapResult(
            transaction_hash=receipt.tx_hash,
            sender=sender.checksum,
            amount_in=str(amount_in),
            amount_out=quote.formatted_minimum_amount_out,
            token_in=quote.token_in,
            token_out=quote.token_out,
            route=quote.route,
            unwrap_transaction_hash=unwrap_hash,
        )
