from decimal import Decimal

import pytest

from dex.errors import NoDataError, NoRouteError
from dex.routes import RouteFinder, find_intermediary_tokens
from dex.types import RouteKind
from factories import ALT, MID, OTHER, TKA, TKB, USDC, WETH, make_pool


class _FakeSource:
    def __init__(self, direct=None, containing=None):
        self.direct = direct or []
        self.containing = containing or {}
        self.calls = []

    def direct_pools(self, token_a, token_b):
        self.calls.append(("direct", token_a, token_b))
        return list(self.direct)

    def pools_containing(self, token):
        self.calls.append(("containing", token))
        return list(self.containing.get(token, []))


def test_direct_pool_scenario():
    pool = make_pool("0xp1", WETH, USDC, fee=3000)
    source = _FakeSource(direct=[pool])

    result = RouteFinder(source).find_all_routes(WETH, USDC)

    assert result.kind is RouteKind.DIRECT
    assert len(result.routes) == 1
    assert result.routes[0].hops == (pool,)
    assert result.routes[0].total_fee == Decimal("0.003")
    assert result.routes[0].intermediary_token is None


def test_direct_routes_never_trigger_indirect_search():
    source = _FakeSource(
        direct=[make_pool("0xp1", WETH, USDC)],
        containing={WETH: [make_pool("0xp2", WETH, MID)], USDC: [make_pool("0xp3", MID, USDC)]},
    )

    RouteFinder(source).find_all_routes(WETH.upper().replace("0X", "0x"), USDC)

    assert [call[0] for call in source.calls] == ["direct"]


def test_direct_routes_sorted_by_tvl_with_stable_ties():
    low_a = make_pool("0xa", USDC, WETH, fee=500, tvl="100")
    high = make_pool("0xb", WETH, USDC, fee=3000, tvl="500")
    low_b = make_pool("0xc", WETH, USDC, fee=10000, tvl="100")
    source = _FakeSource(direct=[low_a, high, low_b])

    result = RouteFinder(source).find_all_routes(WETH, USDC)

    assert [route.hops[0].id for route in result.routes] == ["0xb", "0xa", "0xc"]


def test_zero_liquidity_pools_are_ignored():
    source = _FakeSource(
        direct=[make_pool("0xdead", TKA, TKB, liquidity=0)],
        containing={
            TKA: [make_pool("0xp0", TKA, MID, fee=500)],
            TKB: [make_pool("0xp1", MID, TKB, fee=3000)],
        },
    )

    result = RouteFinder(source).find_all_routes(TKA, TKB)

    assert result.kind is RouteKind.INDIRECT
    assert len(result.routes) == 1


def test_indirect_scenario_single_intermediary():
    p0 = make_pool("0xp0", TKA, MID, fee=500)
    p1 = make_pool("0xp1", MID, TKB, fee=3000)
    source = _FakeSource(containing={TKA: [p0], TKB: [p1]})

    result = RouteFinder(source).find_all_routes(TKA, TKB)

    assert result.kind is RouteKind.INDIRECT
    (route,) = result.routes
    assert route.hops == (p0, p1)
    assert route.intermediary_token.address == MID
    assert route.total_fee == Decimal(500 + 3000) / Decimal(1_000_000)


def test_indirect_intermediary_metadata_from_first_hop_side():
    # token ordering in the source is not canonical: MID sits in token0 here
    p0 = make_pool("0xp0", MID, TKA, fee=500, decimals0=8)
    p1 = make_pool("0xp1", TKB, MID, fee=500)
    source = _FakeSource(containing={TKA: [p0], TKB: [p1]})

    (route,) = RouteFinder(source).find_all_routes(TKA, TKB).routes

    assert route.intermediary_token is p0.token0
    assert route.intermediary_token.decimals == 8


def test_indirect_routes_only_use_shared_tokens_and_rank_by_combined_tvl():
    a_mid = make_pool("0xa1", TKA, MID, tvl="10")
    a_alt = make_pool("0xa2", ALT, TKA, tvl="50")
    a_other = make_pool("0xa3", TKA, OTHER, tvl="999")
    mid_b = make_pool("0xb1", MID, TKB, tvl="100")
    alt_b = make_pool("0xb2", TKB, ALT, tvl="5")
    mid_b_2 = make_pool("0xb3", TKB, MID, tvl="45")
    source = _FakeSource(
        containing={TKA: [a_mid, a_alt, a_other], TKB: [mid_b, alt_b, mid_b_2]}
    )

    result = RouteFinder(source).find_all_routes(TKA, TKB)

    shared = set(find_intermediary_tokens([a_mid, a_alt, a_other], [mid_b, alt_b, mid_b_2]))
    assert shared == {MID, ALT}
    for route in result.routes:
        first, second = route.hops
        assert route.intermediary_token.address in shared
        assert first.contains(TKA) and first.contains(route.intermediary_token.address)
        assert second.contains(TKB) and second.contains(route.intermediary_token.address)

    # (10+100)=110, (50+5)=55, (10+45)=55: ties keep discovery order (MID before ALT)
    ids = [(route.hops[0].id, route.hops[1].id) for route in result.routes]
    assert ids == [("0xa1", "0xb1"), ("0xa1", "0xb3"), ("0xa2", "0xb2")]


def test_indirect_fee_is_additive_not_compounded():
    p0 = make_pool("0xp0", TKA, MID, fee=10000)
    p1 = make_pool("0xp1", MID, TKB, fee=10000)
    source = _FakeSource(containing={TKA: [p0], TKB: [p1]})

    (route,) = RouteFinder(source).find_all_routes(TKA, TKB).routes

    assert route.total_fee == Decimal("0.02")


def test_intermediary_tokens_are_deduplicated():
    pools_in = [make_pool("0x1", TKA, MID), make_pool("0x2", MID, TKA, fee=500)]
    pools_out = [make_pool("0x3", MID, TKB)]
    assert find_intermediary_tokens(pools_in, pools_out) == [MID]


def test_empty_side_gives_empty_indirect_set():
    source = _FakeSource(containing={TKA: [make_pool("0xp0", TKA, MID)]})

    result = RouteFinder(source).find_all_routes(TKA, TKB)

    assert result.kind is RouteKind.INDIRECT
    assert result.is_empty


def test_get_best_route_returns_first_route():
    best = make_pool("0xbest", WETH, USDC, tvl="9000")
    source = _FakeSource(direct=[make_pool("0xlow", WETH, USDC, tvl="1"), best])

    route = RouteFinder(source).get_best_route(WETH, USDC)

    assert route.hops == (best,)


def test_get_best_route_without_candidates_raises():
    with pytest.raises(NoRouteError):
        RouteFinder(_FakeSource()).get_best_route(TKA, TKB)


def test_source_failure_propagates():
    class _Broken(_FakeSource):
        def direct_pools(self, token_a, token_b):
            raise NoDataError("down")

    with pytest.raises(NoDataError):
        RouteFinder(_Broken()).find_all_routes(TKA, TKB)
