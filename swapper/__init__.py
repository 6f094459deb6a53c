"""Swapper - best-path routing and swap execution for UniswapV2-style pools."""

__version__ = "0.1.0"

from swapper.engine import build_quoter, get_default_quoter  # noqa: E402
from swapper.routing.router import Quoter, RouteFinder  # noqa: E402

__all__ = ["Quoter", "RouteFinder", "build_quoter", "get_default_quoter", "__version__"]
