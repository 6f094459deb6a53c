"""Swap execution: collaborator interfaces and router calls.

The orchestrator lives in swapper.execution.orchestrator.
"""

from swapper.execution.interfaces import (
    Approver,
    ChainClient,
    GasSettings,
    NativeWrapper,
    PendingTransaction,
    RetryConfirmation,
    TradeExecutor,
)
from swapper.execution.router_calls import (
    RouterCall,
    RouterEntryPoint,
    build_router_call,
    select_entry_point,
)

__all__ = [
    "Approver",
    "ChainClient",
    "GasSettings",
    "NativeWrapper",
    "PendingTransaction",
    "RetryConfirmation",
    "TradeExecutor",
    "RouterCall",
    "RouterEntryPoint",
    "build_router_call",
    "select_entry_point",
]
