"""Report and notification aggregators."""

from timeledger.aggregators.notification_deriver import (
    LedgerSnapshot,
    NotificationFeed,
    NotificationService,
    count_by_type,
    derive_notifications,
)
from timeledger.aggregators.revenue_report import (
    ClientStats,
    RevenueReport,
    RevenueReportEngine,
)
from timeledger.aggregators.time_report import (
    GroupingStrategy,
    GroupKey,
    ReportGroup,
    TimeReport,
    TimeReportEngine,
)

__all__ = [
    "ClientStats",
    "GroupKey",
    "GroupingStrategy",
    "LedgerSnapshot",
    "NotificationFeed",
    "NotificationService",
    "ReportGroup",
    "RevenueReport",
    "RevenueReportEngine",
    "TimeReport",
    "TimeReportEngine",
    "count_by_type",
    "derive_notifications",
]
