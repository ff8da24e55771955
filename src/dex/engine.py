"""Facade that wires the pool source, router, quoter and executor to one config."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from chain.client import ChainClient

from .config import DexConfig
from .executor import SwapExecutor
from .quote import QuoteCalculator
from .routes import RouteFinder
from .subgraph import PoolDataSource, SubgraphClient


@dataclass
class DexEngine:
    """
    Main interface for the dex package.
    Wires the pool data source, route finder, quote calculator and swap
    executor to one configuration.
    """

    config: DexConfig
    client: ChainClient
    pools: PoolDataSource
    routes: RouteFinder
    quotes: QuoteCalculator
    executor: SwapExecutor

    @classmethod
    def from_config(
        cls, config: DexConfig, client: Optional[ChainClient] = None
    ) -> "DexEngine":
        client = client or config.client()
        pools = PoolDataSource(SubgraphClient(config.subgraph_url, timeout=config.http_timeout))
        routes = RouteFinder(pools)
        quotes = QuoteCalculator(client, routes, config)
        executor = SwapExecutor(client, quotes, config)
        return cls(
            config=config,
            client=client,
            pools=pools,
            routes=routes,
            quotes=quotes,
            executor=executor,
        )
