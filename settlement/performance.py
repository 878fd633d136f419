"""
Purpose: Read-only vendor performance stats.
What it does:
Flattens deliveries into a DataFrame and aggregates per vendor:

- totalOrders:     deliveries carrying the vendor's id
- completedOrders: deliveries in Delivered (or its Completed alias)
- onTimeRate:      % of completed deliveries whose deliveredAt - createdAt
                   is within estimatedMinutes (0.0 when nothing completed)

Deliveries missing either timestamp count as completed but not on time.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable

import pandas as pd

from deliveries.models import Delivery, DeliveryStatus

COLUMNS = ["vendorId", "delivered", "onTime"]


@dataclass(frozen=True)
class VendorPerformance:
    vendor_id: str
    total_orders: int
    completed_orders: int
    on_time_rate: float


def _on_time(delivery: Delivery) -> bool:
    if delivery.created_at is None or delivery.delivered_at is None or delivery.estimated_minutes is None:
        return False
    elapsed = (delivery.delivered_at - delivery.created_at).total_seconds() / 60
    return elapsed <= delivery.estimated_minutes


def performance_frame(deliveries: Iterable[Delivery]) -> pd.DataFrame:
    rows = []
    for d in deliveries:
        if not d.vendor_id:
            continue
        delivered = d.canonical_status == DeliveryStatus.DELIVERED
        rows.append({"vendorId": d.vendor_id, "delivered": delivered, "onTime": delivered and _on_time(d)})
    df = pd.DataFrame(rows, columns=COLUMNS)

    if df.empty:
        return pd.DataFrame(columns=["totalOrders", "completedOrders", "onTimeRate"]).rename_axis("vendorId")

    grouped = df.groupby("vendorId")
    report = pd.DataFrame({
        "totalOrders": grouped.size(),
        "completedOrders": grouped["delivered"].sum().astype(int),
        "onTimeOrders": grouped["onTime"].sum().astype(int),
    })
    completed = report["completedOrders"].where(report["completedOrders"] > 0)
    report["onTimeRate"] = (report["onTimeOrders"] / completed * 100).fillna(0.0).round(1)
    return report.drop(columns=["onTimeOrders"])


def vendor_performance(deliveries: Iterable[Delivery]) -> Dict[str, VendorPerformance]:
    report = performance_frame(deliveries)
    return {
        vendor_id: VendorPerformance(
            vendor_id=vendor_id,
            total_orders=int(row["totalOrders"]),
            completed_orders=int(row["completedOrders"]),
            on_time_rate=float(row["onTimeRate"]),
        )
        for vendor_id, row in report.iterrows()
    }
