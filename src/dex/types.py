"""Value objects for pools, routes, quotes and swap results."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional

from eth_utils.address import to_checksum_address

FEE_DENOMINATOR = Decimal(1_000_000)


@dataclass(frozen=True)
class TokenRef:
    """ERC20 token metadata keyed by lower-case address."""

    address: str
    symbol: str
    name: str
    decimals: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "address", self.address.lower())
        if not isinstance(self.decimals, int) or not 0 <= self.decimals <= 255:
            raise ValueError("decimals must be an integer in [0, 255]")

    @property
    def checksum(self) -> str:
        return to_checksum_address(self.address)


@dataclass(frozen=True)
class PoolRef:
    """
    A liquidity pool as reported by the pool data source.

    token0/token1 ordering is whatever the source returned; use the helpers
    below to read the side that matches a given token.
    """

    id: str
    token0: TokenRef
    token1: TokenRef
    fee_tier: int
    liquidity: int
    total_value_locked_usd: Decimal
    token0_price: Optional[Decimal] = None
    token1_price: Optional[Decimal] = None

    @property
    def is_eligible(self) -> bool:
        return self.liquidity > 0

    @property
    def tokens(self) -> tuple[TokenRef, TokenRef]:
        return self.token0, self.token1

    def contains(self, address: str) -> bool:
        key = address.lower()
        return self.token0.address == key or self.token1.address == key

    def token_for(self, address: str) -> TokenRef:
        key = address.lower()
        if self.token0.address == key:
            return self.token0
        if self.token1.address == key:
            return self.token1
        raise ValueError(f"token {address} not in pool {self.id}")

    def other_token(self, address: str) -> TokenRef:
        key = address.lower()
        if self.token0.address == key:
            return self.token1
        if self.token1.address == key:
            return self.token0
        raise ValueError(f"token {address} not in pool {self.id}")

    def price_for_input(self, address: str) -> Decimal:
        """
        Recorded price of the other token per unit of ``address``.

        token1Price is token1 per token0, so selling token0 reads token1Price.
        Missing prices read as zero.
        """
        key = address.lower()
        if self.token0.address == key:
            price = self.token1_price
        elif self.token1.address == key:
            price = self.token0_price
        else:
            raise ValueError(f"token {address} not in pool {self.id}")
        return price if price is not None else Decimal(0)


class RouteKind(str, Enum):
    DIRECT = "direct"
    INDIRECT = "indirect"


@dataclass(frozen=True)
class Route:
    kind: RouteKind
    hops: tuple[PoolRef, ...]
    intermediary_token: Optional[TokenRef] = None

    def __post_init__(self) -> None:
        expected = 1 if self.kind is RouteKind.DIRECT else 2
        if len(self.hops) != expected:
            raise ValueError(f"{self.kind.value} route needs {expected} hop(s)")
        if self.kind is RouteKind.INDIRECT and self.intermediary_token is None:
            raise ValueError("indirect route needs an intermediary token")
        if self.kind is RouteKind.DIRECT and self.intermediary_token is not None:
            raise ValueError("direct route has no intermediary token")

    @property
    def fees(self) -> tuple[int, ...]:
        return tuple(pool.fee_tier for pool in self.hops)

    @property
    def total_fee(self) -> Decimal:
        # Additive across hops, not compounded.
        return Decimal(sum(self.fees)) / FEE_DENOMINATOR

    @property
    def total_value_locked_usd(self) -> Decimal:
        return sum((pool.total_value_locked_usd for pool in self.hops), Decimal(0))


@dataclass(frozen=True)
class RouteSet:
    kind: RouteKind
    routes: tuple[Route, ...] = ()

    def __post_init__(self) -> None:
        if any(route.kind is not self.kind for route in self.routes):
            raise ValueError("RouteSet cannot mix direct and indirect routes")

    @property
    def is_empty(self) -> bool:
        return not self.routes

    @property
    def best(self) -> Optional[Route]:
        return self.routes[0] if self.routes else None


@dataclass(frozen=True)
class Quote:
    amount_in: int
    amount_out: int
    minimum_amount_out: int
    price_impact_percent: Decimal
    mid_price: Decimal
    slippage_percent: Decimal
    token_in: TokenRef
    token_out: TokenRef
    route: Route

    @property
    def formatted_amount_in(self) -> Decimal:
        return Decimal(self.amount_in).scaleb(-self.token_in.decimals)

    @property
    def formatted_amount_out(self) -> Decimal:
        return Decimal(self.amount_out).scaleb(-self.token_out.decimals)

    @property
    def formatted_minimum_amount_out(self) -> Decimal:
        return Decimal(self.minimum_amount_out).scaleb(-self.token_out.decimals)


@dataclass(frozen=True)
class SwapResult:
    """
    Outcome of a confirmed swap.

    ``amount_out`` is the slippage-bounded minimum, not the expected output.
    """

    transaction_hash: str
    sender: str
    amount_in: str
    amount_out: Decimal
    token_in: TokenRef
    token_out: TokenRef
    route: Route
    unwrap_transaction_hash: Optional[str] = None


@dataclass(frozen=True)
class WrapResult:
    transaction_hash: str
    sender: str
    amount: str
    success: bool = True
