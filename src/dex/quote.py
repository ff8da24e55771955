"""Swap quotes: simulated output, slippage-bounded minimum and price impact."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Union

from chain.client import ChainClient
from core.base_types import TokenAmount

from .config import DexConfig
from .erc20 import fetch_token_metadata
from .errors import QuoteError
from .quoter import V3Quoter
from .routes import RouteFinder
from .types import Quote, Route, RouteKind

logger = logging.getLogger(__name__)

DEFAULT_SLIPPAGE_PERCENT = Decimal("0.5")
SLIPPAGE_SCALE = 1000

SlippageLike = Union[str, int, Decimal]


def slippage_factor(slippage_percent: SlippageLike) -> int:
    """
    Per-mille multiplier kept after slippage: 1000 - slippage * 10.

    Slippage is a percentage with at most one decimal place (0.5 -> 995).
    """
    slippage = _to_decimal(slippage_percent)
    if not slippage.is_finite() or not Decimal(0) <= slippage < Decimal(100):
        raise ValueError("slippage_percent must be in [0, 100)")
    factor = Decimal(SLIPPAGE_SCALE) - slippage * 10
    if factor != factor.to_integral_value():
        raise ValueError("slippage_percent supports at most one decimal place")
    return int(factor)


def apply_slippage(
    amount: int, slippage_percent: SlippageLike, increase: bool = False
) -> int:
    """
    Bound a raw amount by slippage using floor division.

    Default lowers an expected output to the minimum acceptable output;
    ``increase=True`` raises an expected input to the maximum acceptable one.
    """
    if not isinstance(amount, int) or amount < 0:
        raise ValueError("amount must be a non-negative int")
    factor = slippage_factor(slippage_percent)
    if increase:
        return amount * SLIPPAGE_SCALE // factor
    return amount * factor // SLIPPAGE_SCALE


def calculate_price_impact(
    amount_in: Decimal, amount_out: Decimal, mid_price: Decimal
) -> Decimal:
    """Percent shortfall of amount_out versus amount_in * mid_price, floored at 0."""
    expected = amount_in * mid_price
    if expected <= 0:
        return Decimal(0)
    impact = (expected - amount_out) / expected * 100
    return max(Decimal(0), impact)


class QuoteCalculator:
    """Builds a fresh Quote for every request; nothing is cached."""

    def __init__(self, client: ChainClient, routes: RouteFinder, config: DexConfig):
        self._client = client
        self._routes = routes
        self._config = config
        self._quoter = V3Quoter(client, config.quoter, config.chain_id)

    def get_swap_quote(
        self,
        token_in: str,
        token_out: str,
        amount_in: Union[str, Decimal],
        slippage_percent: SlippageLike = DEFAULT_SLIPPAGE_PERCENT,
    ) -> Quote:
        slippage = _to_decimal(slippage_percent)
        slippage_factor(slippage)

        route = self._routes.get_best_route(token_in, token_out)
        meta_in, meta_out = fetch_token_metadata(
            self._client, [token_in, token_out], self._config.chain_id
        )
        amount = TokenAmount.from_human(amount_in, meta_in.decimals, meta_in.symbol)
        if amount.raw == 0:
            raise ValueError("amount_in must be positive")

        amount_out, mid_price = self._simulate(route, meta_in.address, meta_out.address, amount.raw)
        if amount_out <= 0:
            raise QuoteError("Simulated trade returned zero output")

        minimum = apply_slippage(amount_out, slippage)
        impact = calculate_price_impact(
            amount.human,
            Decimal(amount_out).scaleb(-meta_out.decimals),
            mid_price,
        )
        logger.info(
            "quote %s %s -> %s %s (min %s, impact %.4f%%)",
            amount.human,
            meta_in.symbol,
            amount_out,
            meta_out.symbol,
            minimum,
            impact,
        )
        return Quote(
            amount_in=amount.raw,
            amount_out=amount_out,
            minimum_amount_out=minimum,
            price_impact_percent=impact,
            mid_price=mid_price,
            slippage_percent=slippage,
            token_in=meta_in,
            token_out=meta_out,
            route=route,
        )

    def _simulate(
        self, route: Route, token_in: str, token_out: str, amount_in: int
    ) -> tuple[int, Decimal]:
        if route.kind is RouteKind.DIRECT:
            pool = route.hops[0]
            amount_out = self._quoter.quote_exact_input_single(
                token_in, token_out, pool.fee_tier, amount_in
            )
            return amount_out, pool.price_for_input(token_in)

        first, second = route.hops
        assert route.intermediary_token is not None
        intermediary = route.intermediary_token.address
        # hop1 needs hop0's output, so these calls stay sequential.
        intermediate = self._quoter.quote_exact_input_single(
            token_in, intermediary, first.fee_tier, amount_in
        )
        if intermediate <= 0:
            raise QuoteError("Simulated first hop returned zero output")
        amount_out = self._quoter.quote_exact_input_single(
            intermediary, token_out, second.fee_tier, intermediate
        )
        # Product of recorded hop prices; an estimate for impact display only.
        mid_price = first.price_for_input(token_in) * second.price_for_input(intermediary)
        return amount_out, mid_price


def _to_decimal(value: SlippageLike) -> Decimal:
    if isinstance(value, float):
        raise TypeError("slippage_percent must be str, int or Decimal, not float")
    if isinstance(value, bool) or not isinstance(value, (str, int, Decimal)):
        raise TypeError("slippage_percent must be str, int or Decimal")
    try:
        return Decimal(value)
    except ArithmeticError as exc:
        raise ValueError(f"invalid slippage_percent: {value!r}") from exc
