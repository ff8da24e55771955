from .config import DexConfig
from .engine import DexEngine
from .errors import (
    DexError,
    EncodingError,
    InsufficientBalanceError,
    NoDataError,
    NoRouteError,
    QuoteError,
    TransactionFailedError,
)
from .executor import SwapExecutor
from .path import decode_path, encode_path
from .quote import QuoteCalculator, apply_slippage, calculate_price_impact
from .routes import RouteFinder
from .subgraph import PoolDataSource, SubgraphClient
from .types import PoolRef, Quote, Route, RouteKind, RouteSet, SwapResult, TokenRef, WrapResult

__all__ = [
    "DexConfig",
    "DexEngine",
    "DexError",
    "EncodingError",
    "InsufficientBalanceError",
    "NoDataError",
    "NoRouteError",
    "QuoteError",
    "TransactionFailedError",
    "SwapExecutor",
    "encode_path",
    "decode_path",
    "QuoteCalculator",
    "apply_slippage",
    "calculate_price_impact",
    "RouteFinder",
    "PoolDataSource",
    "SubgraphClient",
    "PoolRef",
    "Quote",
    "Route",
    "RouteKind",
    "RouteSet",
    "SwapResult",
    "TokenRef",
    "WrapResult",
]
