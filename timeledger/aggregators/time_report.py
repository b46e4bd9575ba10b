"""Time report: tracked hours grouped by client, project, day or month.

Only completed entries count. Grouping is chosen from an explicit set of
strategies; each strategy is a pure function from an entry (plus the
project/client lookup) to the key of its group.
"""

import datetime as dt
import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Callable, Dict, List, Mapping, Optional

import pandas as pd

from timeledger.calculators.billing_calculator import entry_hours
from timeledger.calculators.money import ZERO, sum_amounts
from timeledger.calculators.time_utils import month_range
from timeledger.models import Client, Project, TimeEntry
from timeledger.stores.interface import LedgerStore, TimeEntryQuery
from timeledger.utils.clock import Clock, SystemClock

logger = logging.getLogger(__name__)

HOURS_PRECISION = Decimal("0.01")
NO_DESCRIPTION = "No description"


def round_hours(hours: Decimal) -> Decimal:
    return hours.quantize(HOURS_PRECISION, rounding=ROUND_HALF_UP)


def billable_percentage(billable: Decimal, total: Decimal) -> int:
    """Share of billable hours as a whole percent (half rounds up)."""
    if total <= 0:
        return 0
    return int((billable / total * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class GroupKey:
    """Identity and display name of a report group."""

    id: str
    name: str


@dataclass
class EntryLookup:
    """Projects and clients needed to label entries."""

    projects: Mapping[str, Project]
    clients: Mapping[str, Client]

    def project(self, entry: TimeEntry) -> Project:
        return self.projects[entry.project_id]

    def client_name(self, client_id: str) -> str:
        client = self.clients.get(client_id)
        return client.name if client else client_id


def _by_client(entry: TimeEntry, lookup: EntryLookup) -> GroupKey:
    client_id = lookup.project(entry).client_id
    return GroupKey(client_id, lookup.client_name(client_id))


def _by_project(entry: TimeEntry, lookup: EntryLookup) -> GroupKey:
    project = lookup.project(entry)
    return GroupKey(project.id, project.name)


def _by_date(entry: TimeEntry, lookup: EntryLookup) -> GroupKey:
    day = entry.start_time.date()
    return GroupKey(day.isoformat(), day.strftime("%A, %B %d, %Y"))


def _by_month(entry: TimeEntry, lookup: EntryLookup) -> GroupKey:
    day = entry.start_time.date()
    return GroupKey(day.strftime("%Y-%m"), day.strftime("%B %Y"))


class GroupingStrategy(str, Enum):
    """How entries are grouped in a time report."""

    CLIENT = "client"
    PROJECT = "project"
    DATE = "date"
    MONTH = "month"

    def key(self, entry: TimeEntry, lookup: EntryLookup) -> GroupKey:
        return _KEY_FUNCTIONS[self](entry, lookup)


_KEY_FUNCTIONS: Dict[GroupingStrategy, Callable[[TimeEntry, EntryLookup], GroupKey]] = {
    GroupingStrategy.CLIENT: _by_client,
    GroupingStrategy.PROJECT: _by_project,
    GroupingStrategy.DATE: _by_date,
    GroupingStrategy.MONTH: _by_month,
}


@dataclass
class ReportItem:
    """One entry inside a group when details are requested."""

    id: str
    description: str
    project_name: str
    client_name: str
    start_time: dt.datetime
    end_time: dt.datetime
    hours: Decimal
    billable: bool


@dataclass
class ReportGroup:
    """Hours of one group."""

    id: str
    name: str
    total_hours: Decimal
    billable_hours: Decimal
    non_billable_hours: Decimal
    billable_percentage: int
    items: Optional[List[ReportItem]] = None


@dataclass
class TimeReport:
    """Hours totals and groups for a date range."""

    start_date: dt.date
    end_date: dt.date
    group_by: GroupingStrategy
    total_hours: Decimal
    billable_hours: Decimal
    non_billable_hours: Decimal
    billable_percentage: int
    groups: List[ReportGroup] = field(default_factory=list)

    def to_dataframe(self) -> pd.DataFrame:
        """Groups as a DataFrame, one row per group, largest first."""
        return pd.DataFrame(
            [
                {
                    "id": g.id,
                    "name": g.name,
                    "total_hours": g.total_hours,
                    "billable_hours": g.billable_hours,
                    "non_billable_hours": g.non_billable_hours,
                    "billable_percentage": g.billable_percentage,
                }
                for g in self.groups
            ],
            columns=[
                "id",
                "name",
                "total_hours",
                "billable_hours",
                "non_billable_hours",
                "billable_percentage",
            ],
        )


class _GroupAccumulator:
    def __init__(self, key: GroupKey, include_details: bool):
        self.key = key
        self.billable = ZERO
        self.non_billable = ZERO
        self.items: Optional[List[ReportItem]] = [] if include_details else None

    def add(self, entry: TimeEntry, hours: Decimal, lookup: EntryLookup) -> None:
        if entry.billable:
            self.billable += hours
        else:
            self.non_billable += hours
        if self.items is not None:
            project = lookup.project(entry)
            self.items.append(
                ReportItem(
                    id=entry.id,
                    description=entry.description or NO_DESCRIPTION,
                    project_name=project.name,
                    client_name=lookup.client_name(project.client_id),
                    start_time=entry.start_time,
                    end_time=entry.end_time,
                    hours=round_hours(hours),
                    billable=entry.billable,
                )
            )

    def build(self) -> ReportGroup:
        total = self.billable + self.non_billable
        return ReportGroup(
            id=self.key.id,
            name=self.key.name,
            total_hours=round_hours(total),
            billable_hours=round_hours(self.billable),
            non_billable_hours=round_hours(self.non_billable),
            billable_percentage=billable_percentage(self.billable, total),
            items=self.items,
        )


class TimeReportEngine:
    """Builds TimeReports from a ledger store.

    Example:
        >>> engine = TimeReportEngine(store, clock)
        >>> report = engine.report("u1", group_by=GroupingStrategy.CLIENT)
        >>> [g.name for g in report.groups]
        ['Acme', 'Globex']
    """

    def __init__(self, store: LedgerStore, clock: Optional[Clock] = None):
        self.store = store
        self.clock = clock or SystemClock()

    def report(
        self,
        user_id: str,
        start_date: Optional[dt.date] = None,
        end_date: Optional[dt.date] = None,
        group_by: GroupingStrategy = GroupingStrategy.PROJECT,
        include_details: bool = False,
        project_id: Optional[str] = None,
        client_id: Optional[str] = None,
    ) -> TimeReport:
        """Generate the time report; dates default to the current month."""
        group_by = GroupingStrategy(group_by)
        current_month = month_range(self.clock.today())
        start_date = start_date or current_month.start
        end_date = end_date or current_month.end

        projects = {p.id: p for p in self.store.list_projects()}
        clients = {c.id: c for c in self.store.list_clients()}
        lookup = EntryLookup(projects=projects, clients=clients)

        project_ids = None
        if client_id is not None:
            project_ids = {pid for pid, p in projects.items() if p.client_id == client_id}
        if project_id is not None:
            project_ids = {project_id} if project_ids is None else project_ids & {project_id}

        entries = self.store.find_time_entries(
            TimeEntryQuery(
                user_id=user_id,
                project_ids=project_ids,
                start_date=start_date,
                end_date=end_date,
                is_open=False,
            )
        )
        logger.info(
            f"Building time report from {len(entries)} entries grouped by {group_by.value}",
            extra={"user_id": user_id},
        )

        groups: "OrderedDict[GroupKey, _GroupAccumulator]" = OrderedDict()
        billable = ZERO
        non_billable = ZERO
        for entry in entries:
            hours = entry_hours(entry)
            if entry.billable:
                billable += hours
            else:
                non_billable += hours
            key = group_by.key(entry, lookup)
            if key not in groups:
                groups[key] = _GroupAccumulator(key, include_details)
            groups[key].add(entry, hours, lookup)

        built = [g.build() for g in groups.values()]
        built.sort(key=lambda g: g.total_hours, reverse=True)

        total = sum_amounts([billable, non_billable])
        return TimeReport(
            start_date=start_date,
            end_date=end_date,
            group_by=group_by,
            total_hours=round_hours(total),
            billable_hours=round_hours(billable),
            non_billable_hours=round_hours(non_billable),
            billable_percentage=billable_percentage(billable, total),
            groups=built,
        )
