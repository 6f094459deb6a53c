"""Candidate path enumeration over the bridge-asset whitelist.

The search is deliberately bounded: besides the direct edge it only hops
through the curated bridge assets, never through arbitrary tokens.

Path shapes by hops:
- Direct (1 hop): [source, destination]
- 2-hop: [source, bridge, destination]
- 3-hop: [source, bridge_a, bridge_b, destination]
"""

from __future__ import annotations

from collections.abc import Iterable
from itertools import permutations

from swapper.models.asset import Asset


def candidate_paths(
    source: Asset,
    destination: Asset,
    bridges: Iterable[Asset],
    wrapped_native: str,
    max_hops: int = 3,
) -> list[list[Asset]]:
    """Enumerate simple candidate paths from source to destination.

    No path visits the same on-chain asset twice; the native coin and the
    wrapped-native token count as the same asset. Shorter paths come first,
    so callers breaking ties by position also prefer fewer hops.

    Args:
        source: Asset to sell
        destination: Asset to buy
        bridges: Intermediate assets allowed in multi-hop paths
        wrapped_native: Wrapped native token address
        max_hops: Maximum number of pools in a path

    Returns:
        Candidate paths (possibly empty), each a list of assets
    """
    if max_hops < 1:
        return []

    def key(asset: Asset) -> str:
        return asset.routing_address(wrapped_native)

    source_key = key(source)
    destination_key = key(destination)
    if source_key == destination_key:
        return []

    # Bridges equal to an endpoint would repeat an asset; duplicates collapse
    intermediates: list[Asset] = []
    seen = {source_key, destination_key}
    for bridge in bridges:
        bridge_key = key(bridge)
        if bridge_key not in seen:
            seen.add(bridge_key)
            intermediates.append(bridge)

    candidates: list[list[Asset]] = [[source, destination]]
    if max_hops >= 2:
        candidates.extend([source, bridge, destination] for bridge in intermediates)
    if max_hops >= 3:
        candidates.extend([source, a, b, destination] for a, b in permutations(intermediates, 2))
    return candidates


def path_edges(path: list[Asset], wrapped_native: str) -> list[frozenset[str]]:
    """Unordered on-chain token pair for every hop of a path."""
    addresses = [asset.routing_address(wrapped_native) for asset in path]
    return [frozenset(pair) for pair in zip(addresses, addresses[1:])]


__all__ = ["candidate_paths", "path_edges"]
