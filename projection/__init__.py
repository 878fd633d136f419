"""
Role-scoped view projection.

Public API:
- visible_deliveries, partition, project, can_see
- dashboard_counters, DashboardCounters
- visible_users, message_query_for
"""
from .visibility import (
    DashboardCounters,
    can_see,
    dashboard_counters,
    message_query_for,
    partition,
    project,
    visible_deliveries,
    visible_users,
)

__all__ = [
    "DashboardCounters",
    "can_see",
    "dashboard_counters",
    "message_query_for",
    "partition",
    "project",
    "visible_deliveries",
    "visible_users",
]
