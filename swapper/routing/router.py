"""Best-path selection and quoting.

RouteFinder enumerates bounded candidate paths, resolves every distinct pool
once per call, and ranks the candidates with the hop pricer. Quoter prices
the full amount on the best-ranked route that can carry it and builds a
Quote (per-hop amounts and price impact) on the same pool snapshot.

Nothing is cached between calls: reserves move, so every quote request
searches again.
"""

from __future__ import annotations

import structlog

from swapper.amm.uniswap_v2 import UniswapV2, UniswapV2Pool, uniswap_v2
from swapper.asset_list import AssetList
from swapper.constants import DEFAULT_MAX_HOPS
from swapper.errors import NoRouteFound, PoolUnavailable, PricingError
from swapper.models.asset import Asset
from swapper.models.types import TradeDirection, short_address
from swapper.pools.registry import PoolRegistry
from swapper.pricing.impact import PriceImpact, compute_impact
from swapper.routing.pathfinding import candidate_paths, path_edges
from swapper.routing.types import HopResult, Quote, QuoteKind, Route

logger = structlog.get_logger()


class RouteFinder:
    """Finds the best path between two assets through the bridge whitelist.

    Args:
        registry: Pool registry used to resolve each edge
        asset_list: Provides the bridge assets; may be replaced at any time
        amm: Hop pricer. Defaults to the UniswapV2 singleton.
    """

    def __init__(
        self,
        registry: PoolRegistry,
        asset_list: AssetList,
        amm: UniswapV2 | None = None,
    ) -> None:
        self.registry = registry
        self.asset_list = asset_list
        self.amm = amm if amm is not None else uniswap_v2

    async def find_best_path(
        self,
        source: Asset,
        destination: Asset,
        direction: TradeDirection = TradeDirection.EXACT_INPUT,
        max_hops: int = DEFAULT_MAX_HOPS,
        amount: int | None = None,
    ) -> Route:
        """Find the path with the best quoted amount.

        Candidates are scored with a probe amount: `amount` if given,
        otherwise one whole unit of the anchor asset (the source for exact
        input, the destination for exact output). The highest output (exact
        input) or lowest input (exact output) wins; ties go to fewer hops.

        Args:
            source: Asset to sell
            destination: Asset to buy
            direction: Which side of the trade is fixed
            max_hops: Maximum pools per path
            amount: Probe amount override

        Returns:
            Winning Route with the pool snapshot it was scored on

        Raises:
            NoRouteFound: If source and destination are the same asset or no
                candidate path can be priced
            PoolUnavailable: If every pool query failed, so nothing is known
                about the available paths
        """
        ranked = await self.rank_paths(source, destination, direction, max_hops, amount)
        return ranked[0]

    async def rank_paths(
        self,
        source: Asset,
        destination: Asset,
        direction: TradeDirection = TradeDirection.EXACT_INPUT,
        max_hops: int = DEFAULT_MAX_HOPS,
        amount: int | None = None,
    ) -> list[Route]:
        """All priceable candidate routes, best first.

        Scoring and tie-breaking are those of find_best_path; every route
        shares one pool snapshot. Raises like find_best_path when the list
        would be empty.
        """
        wrapped = self.registry.wrapped_native
        candidates = candidate_paths(
            source, destination, self.asset_list.bridge_assets, wrapped, max_hops
        )
        if not candidates:
            raise NoRouteFound(source.symbol, destination.symbol, "source and destination are the same asset")

        anchor = source if direction is TradeDirection.EXACT_INPUT else destination
        probe = amount if amount is not None else 10**anchor.decimals

        pools, unavailable = await self._resolve_edges(candidates)

        scored: list[tuple[int, Route]] = []
        for path in candidates:
            route = self._build_route(path, pools)
            if route is None:
                continue
            score = self._score(route, direction, probe)
            if score is not None:
                scored.append((score, route))

        if not scored and unavailable == len(pools):
            raise PoolUnavailable(
                f"Every pool query failed while routing {source.symbol} to {destination.symbol}"
            )
        if not scored:
            logger.info(
                "no_route_found",
                source=source.symbol,
                destination=destination.symbol,
                candidates=len(candidates),
            )
            raise NoRouteFound(source.symbol, destination.symbol)

        # Candidates come shortest first and the sort is stable, so ties
        # prefer fewer hops, then the earlier candidate
        if direction is TradeDirection.EXACT_INPUT:
            scored.sort(key=lambda item: -item[0])
        else:
            scored.sort(key=lambda item: item[0])

        logger.debug(
            "route_selected",
            route=str(scored[0][1]),
            direction=direction.value,
            probe=probe,
            score=scored[0][0],
            candidates=len(candidates),
            usable=len(scored),
        )
        return [route for _, route in scored]

    async def _resolve_edges(
        self, candidates: list[list[Asset]]
    ) -> tuple[dict[frozenset[str], UniswapV2Pool | None], int]:
        """Resolve each distinct edge once, in candidate order.

        An unavailable edge counts as absent for this call only.

        Returns:
            Pool (or None) per edge, and the number of edges whose query failed
        """
        wrapped = self.registry.wrapped_native
        pools: dict[frozenset[str], UniswapV2Pool | None] = {}
        unavailable = 0
        for path in candidates:
            for edge, (asset_x, asset_y) in zip(path_edges(path, wrapped), zip(path, path[1:])):
                if edge in pools:
                    continue
                try:
                    pools[edge] = await self.registry.resolve_pool(asset_x, asset_y)
                except PoolUnavailable as err:
                    logger.debug(
                        "edge_unavailable",
                        asset_x=asset_x.symbol,
                        asset_y=asset_y.symbol,
                        error=str(err),
                    )
                    pools[edge] = None
                    unavailable += 1
        return pools, unavailable

    def _build_route(
        self, path: list[Asset], pools: dict[frozenset[str], UniswapV2Pool | None]
    ) -> Route | None:
        wrapped = self.registry.wrapped_native
        hop_pools: list[UniswapV2Pool] = []
        for edge in path_edges(path, wrapped):
            pool = pools.get(edge)
            if pool is None:
                return None
            hop_pools.append(pool)
        return Route(
            path=list(path),
            token_path=[asset.routing_address(wrapped) for asset in path],
            pools=hop_pools,
        )

    def _score(self, route: Route, direction: TradeDirection, probe: int) -> int | None:
        """Quoted output (exact input) or required input (exact output), None if unusable."""
        try:
            if direction is TradeDirection.EXACT_INPUT:
                amounts = self.amm.get_amounts_out(probe, route.pools, route.token_path)
                # A path that returns nothing for the probe is not usable
                return amounts[-1] if amounts[-1] > 0 else None
            amounts = self.amm.get_amounts_in(probe, route.pools, route.token_path)
            return amounts[0]
        except PricingError as err:
            logger.debug(
                "path_rejected",
                route=str(route),
                pools=[short_address(p.address) for p in route.pools],
                error=str(err),
            )
            return None


class Quoter:
    """Produces quotes: best route, per-hop amounts and price impact.

    Args:
        finder: Route finder used for path selection
        amm: Hop pricer. Defaults to the finder's pricer.
    """

    def __init__(self, finder: RouteFinder, amm: UniswapV2 | None = None) -> None:
        self.finder = finder
        self.amm = amm if amm is not None else finder.amm

    @property
    def wrapped_native(self) -> str:
        return self.finder.registry.wrapped_native

    def wrap_kind(self, source: Asset, destination: Asset) -> QuoteKind | None:
        """WRAP/UNWRAP for native ↔ wrapped-native pairs, None otherwise."""
        wrapped = self.wrapped_native
        if source.is_native and destination.address == wrapped:
            return QuoteKind.WRAP
        if destination.is_native and source.address == wrapped:
            return QuoteKind.UNWRAP
        return None

    async def quote(
        self,
        source: Asset,
        destination: Asset,
        direction: TradeDirection,
        amount: int,
        max_hops: int = DEFAULT_MAX_HOPS,
    ) -> Quote:
        """Quote a trade of `amount` (input or output, per direction).

        Routes are tried in ranking order; one that cannot carry the full
        amount is skipped in favour of the next.

        Raises:
            ValueError: If amount is not positive
            NoRouteFound: If no path can be priced
            PricingError: If no ranked route can carry this amount (the
                best route's error)
        """
        if amount <= 0:
            raise ValueError(f"Amount must be positive, got {amount}")

        kind = self.wrap_kind(source, destination)
        if kind is not None:
            return Quote(
                source=source,
                destination=destination,
                direction=direction,
                amounts=[amount, amount],
                price_impact=PriceImpact.zero(),
                kind=kind,
            )

        ranked = await self.finder.rank_paths(source, destination, direction, max_hops)
        route, amounts = self._price_first_usable(ranked, direction, amount)

        impact = compute_impact(route, amounts[0], amounts[-1])
        hops = [
            HopResult(
                pool=pool,
                input_token=route.token_path[i],
                output_token=route.token_path[i + 1],
                amount_in=amounts[i],
                amount_out=amounts[i + 1],
            )
            for i, pool in enumerate(route.pools)
        ]

        logger.info(
            "quote_computed",
            route=str(route),
            direction=direction.value,
            amount_in=amounts[0],
            amount_out=amounts[-1],
            impact_bps=impact.bps,
        )
        return Quote(
            source=source,
            destination=destination,
            direction=direction,
            amounts=amounts,
            price_impact=impact,
            route=route,
            hops=hops,
        )

    def _price_first_usable(
        self, ranked: list[Route], direction: TradeDirection, amount: int
    ) -> tuple[Route, list[int]]:
        errors: list[PricingError] = []
        for route in ranked:
            try:
                if direction is TradeDirection.EXACT_INPUT:
                    return route, self.amm.get_amounts_out(amount, route.pools, route.token_path)
                return route, self.amm.get_amounts_in(amount, route.pools, route.token_path)
            except PricingError as err:
                logger.debug("route_cannot_carry_amount", route=str(route), amount=amount, error=str(err))
                errors.append(err)
        raise errors[0]


__all__ = ["RouteFinder", "Quoter"]
