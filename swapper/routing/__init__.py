"""Path search and quoting."""

from swapper.routing.pathfinding import candidate_paths, path_edges
from swapper.routing.router import Quoter, RouteFinder
from swapper.routing.types import HopResult, Quote, QuoteKind, Route

__all__ = [
    "candidate_paths",
    "path_edges",
    "RouteFinder",
    "Quoter",
    "HopResult",
    "Quote",
    "QuoteKind",
    "Route",
]
