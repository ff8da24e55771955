"""Direct and two-hop route discovery ranked by pool TVL."""

from __future__ import annotations

import logging
from typing import Protocol

from .errors import NoRouteError
from .types import PoolRef, Route, RouteKind, RouteSet

logger = logging.getLogger(__name__)


class PoolSource(Protocol):
    def direct_pools(self, token_a: str, token_b: str) -> list[PoolRef]:
        ...

    def pools_containing(self, token: str) -> list[PoolRef]:
        ...


class RouteFinder:
    """
    Finds routes of one or two hops between two tokens.

    Direct pools always win: the two-hop search only runs when no eligible
    direct pool exists. Routes are ranked by total value locked, not by
    simulated output. There is no general N-hop search.
    """

    def __init__(self, source: PoolSource):
        self._source = source

    def find_all_routes(self, token_in: str, token_out: str) -> RouteSet:
        token_in = token_in.lower()
        token_out = token_out.lower()

        direct = [
            pool for pool in self._source.direct_pools(token_in, token_out)
            if pool.is_eligible and _is_pair(pool, token_in, token_out)
        ]
        if direct:
            routes = [Route(kind=RouteKind.DIRECT, hops=(pool,)) for pool in direct]
            logger.debug("%d direct route(s) %s -> %s", len(routes), token_in, token_out)
            return RouteSet(kind=RouteKind.DIRECT, routes=_rank(routes))

        pools_in = [p for p in self._source.pools_containing(token_in) if p.is_eligible]
        pools_out = [p for p in self._source.pools_containing(token_out) if p.is_eligible]
        intermediaries = find_intermediary_tokens(pools_in, pools_out)
        logger.debug(
            "no direct pool %s -> %s; %d intermediary token(s)",
            token_in,
            token_out,
            len(intermediaries),
        )
        routes = construct_indirect_routes(pools_in, pools_out, intermediaries)
        return RouteSet(kind=RouteKind.INDIRECT, routes=_rank(routes))

    def get_best_route(self, token_in: str, token_out: str) -> Route:
        route_set = self.find_all_routes(token_in, token_out)
        best = route_set.best
        if best is None:
            raise NoRouteError(f"No route found for token pair {token_in}/{token_out}")
        logger.info(
            "best %s route %s -> %s via %s",
            best.kind.value,
            token_in,
            token_out,
            ",".join(pool.id for pool in best.hops),
        )
        return best


def find_intermediary_tokens(
    pools_in: list[PoolRef], pools_out: list[PoolRef]
) -> list[str]:
    """Addresses present in both pool sets, each once, in first-seen order."""
    tokens_out = {token.address for pool in pools_out for token in pool.tokens}
    seen: dict[str, None] = {}
    for pool in pools_in:
        for token in pool.tokens:
            if token.address in tokens_out:
                seen.setdefault(token.address, None)
    return list(seen)


def construct_indirect_routes(
    pools_in: list[PoolRef],
    pools_out: list[PoolRef],
    intermediaries: list[str],
) -> list[Route]:
    routes: list[Route] = []
    for intermediary in intermediaries:
        first_hops = [pool for pool in pools_in if pool.contains(intermediary)]
        second_hops = [pool for pool in pools_out if pool.contains(intermediary)]
        for first in first_hops:
            token = first.token_for(intermediary)
            for second in second_hops:
                routes.append(
                    Route(
                        kind=RouteKind.INDIRECT,
                        hops=(first, second),
                        intermediary_token=token,
                    )
                )
    return routes


def _rank(routes: list[Route]) -> tuple[Route, ...]:
    # sorted() is stable with reverse=True, so equal TVL keeps discovery order.
    return tuple(sorted(routes, key=lambda route: route.total_value_locked_usd, reverse=True))


def _is_pair(pool: PoolRef, token_a: str, token_b: str) -> bool:
    return {pool.token0.address, pool.token1.address} == {token_a, token_b}
