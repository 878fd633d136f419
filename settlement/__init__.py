"""
Commission settlement package.

Public API:
- SettlementReconciler (settle, accrue_for_delivery), can_settle
- SettlementResult, SettlementConflict
- VendorPerformance report (pandas)
"""
from .performance import VendorPerformance, performance_frame, vendor_performance
from .reconciler import (
    STANDARD_COMMISSION_RATE,
    SettlementConflict,
    SettlementReconciler,
    SettlementResult,
    can_settle,
)

__all__ = [
    "VendorPerformance",
    "performance_frame",
    "vendor_performance",
    "STANDARD_COMMISSION_RATE",
    "SettlementConflict",
    "SettlementReconciler",
    "SettlementResult",
    "can_settle",
]
