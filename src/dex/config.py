"""Explicit configuration for the routing, quoting and swap components."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from decimal import Decimal

from chain.client import ChainClient
from config import get_env
from core.base_types import Address

# SailFish V3 on EDU Chain
DEFAULT_RPC_URL = "https://rpc.edu-chain.raas.gelato.cloud"
DEFAULT_CHAIN_ID = 41923
DEFAULT_SUBGRAPH_URL = (
    "https://api.goldsky.com/api/public/project_cm5nst0b7iiqy01t6hxww7gao"
    "/subgraphs/sailfish-v3-occ-mainnet/1.0.0/gn"
)
DEFAULT_SWAP_ROUTER = "0x1a1e967e523435CeF20642e3D7811F7d0da9a704"
DEFAULT_QUOTER = "0x83EE12582E3448Ab69E664A2ba69b6AedE112205"
DEFAULT_WRAPPED_NATIVE = "0xd02E8c38a8E3db71f8b2ae30B8186d7874934e12"


@dataclass(frozen=True)
class DexConfig:
    """
    Endpoints, contract addresses and execution limits.

    Passed into every component constructor. Instances are immutable; the
    ``with_*`` setters return an updated copy.
    """

    rpc_urls: tuple[str, ...] = (DEFAULT_RPC_URL,)
    chain_id: int = DEFAULT_CHAIN_ID
    subgraph_url: str = DEFAULT_SUBGRAPH_URL
    swap_router: Address = field(default_factory=lambda: Address(DEFAULT_SWAP_ROUTER))
    quoter: Address = field(default_factory=lambda: Address(DEFAULT_QUOTER))
    wrapped_native: Address = field(
        default_factory=lambda: Address(DEFAULT_WRAPPED_NATIVE)
    )
    native_symbol: str = "EDU"
    rpc_timeout: int = 30
    max_retries: int = 1
    http_timeout: int = 30
    gas_priority: str = "medium"
    deadline_seconds: int = 20 * 60
    native_gas_limit: int = 500_000
    max_native_amount: Decimal = Decimal(1_000_000)
    receipt_timeout: int = 300

    def __post_init__(self) -> None:
        if not self.rpc_urls:
            raise ValueError("rpc_urls must not be empty")
        if self.chain_id <= 0:
            raise ValueError("chain_id must be positive")
        if self.gas_priority not in ("low", "medium", "high"):
            raise ValueError("gas_priority must be low, medium, or high")
        if self.deadline_seconds <= 0:
            raise ValueError("deadline_seconds must be positive")

    @classmethod
    def from_env(cls) -> "DexConfig":
        """Defaults overridden by DEX_* environment variables (or .env)."""
        defaults = cls()
        rpc_url = get_env("DEX_RPC_URL")
        chain_id = get_env("DEX_CHAIN_ID")
        router = get_env("DEX_SWAP_ROUTER")
        quoter = get_env("DEX_QUOTER")
        wrapped = get_env("DEX_WRAPPED_NATIVE")
        return replace(
            defaults,
            rpc_urls=tuple(u.strip() for u in rpc_url.split(",")) if rpc_url else defaults.rpc_urls,
            chain_id=int(chain_id) if chain_id else defaults.chain_id,
            subgraph_url=get_env("DEX_SUBGRAPH_URL", defaults.subgraph_url),
            swap_router=Address(router) if router else defaults.swap_router,
            quoter=Address(quoter) if quoter else defaults.quoter,
            wrapped_native=Address(wrapped) if wrapped else defaults.wrapped_native,
        )

    @property
    def rpc_url(self) -> str:
        """Primary RPC endpoint."""
        return self.rpc_urls[0]

    def with_rpc_url(self, url: str) -> "DexConfig":
        if not url:
            raise ValueError("url must not be empty")
        return replace(self, rpc_urls=(url,))

    def client(self) -> ChainClient:
        return ChainClient(
            list(self.rpc_urls),
            timeout=self.rpc_timeout,
            max_retries=self.max_retries,
        )
