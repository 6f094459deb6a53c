"""Price impact evaluation."""

from swapper.pricing.impact import ImpactSeverity, PriceImpact, compute_impact

__all__ = ["ImpactSeverity", "PriceImpact", "compute_impact"]
