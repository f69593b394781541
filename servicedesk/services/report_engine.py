"""
Report Engine — request statistics for the admin dashboard.

Reports (each accepts an optional inclusive creation-date window):
  - overview        totals per status
  - by-department   per assigned department, with per-status breakdown
  - by-category     per category, with per-status breakdown
  - by-priority     per priority in severity order High → Medium → Low
  - comprehensive   the four above (totals-only groupings) in one payload

Every call queries the store afresh; nothing is cached. The store hands back
an immutable snapshot (``RequestRow`` tuples) and the aggregations below are
pure functions over it, so the comprehensive report can fan them out to a
thread pool without any shared mutable state.

Stored rows with an unexpected status still count toward ``total`` but fall
into no named status bucket.
"""

import logging
from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone

from flask import current_app, has_app_context

from servicedesk.models.request import PRIORITY_RANK
from servicedesk.services import request_store
from servicedesk.utils.helpers import parse_instant

logger = logging.getLogger(__name__)

# Lower-cased stored status → output counter name
STATUS_BUCKETS = {
    "pending": "pending",
    "inprogress": "inProgress",
    "resolved": "resolved",
    "rejected": "rejected",
}

ALL_TIME = "All time"
PRESENT = "Present"


def _empty_counts() -> dict:
    return {bucket: 0 for bucket in STATUS_BUCKETS.values()}


def _bucket(status: str):
    return STATUS_BUCKETS.get((status or "").lower())


# ═════════════════════════════════════════════════════════════════════════════
# PURE AGGREGATIONS
# ═════════════════════════════════════════════════════════════════════════════

def aggregate_overview(rows) -> dict:
    """``{total, pending, inProgress, resolved, rejected}`` over ``rows``."""
    result = {"total": len(rows), **_empty_counts()}
    for row in rows:
        bucket = _bucket(row.status)
        if bucket:
            result[bucket] += 1
    return result


def _group(rows, field: str, label: str, *, breakdown: bool) -> list[dict]:
    groups: dict[str, dict] = defaultdict(lambda: {"total": 0, **(_empty_counts() if breakdown else {})})
    for row in rows:
        key = getattr(row, field)
        entry = groups[key]
        entry["total"] += 1
        if breakdown:
            bucket = _bucket(row.status)
            if bucket:
                entry[bucket] += 1
    return [{label: key, **counts} for key, counts in groups.items()]


def _by_volume(items: list[dict], label: str) -> list[dict]:
    return sorted(items, key=lambda item: (-item["total"], item[label]))


def aggregate_by_department(rows, *, breakdown: bool = True) -> list[dict]:
    """Per non-empty assigned department, largest first. Unassigned rows are excluded."""
    assigned = [row for row in rows if row.department]
    return _by_volume(_group(assigned, "department", "department", breakdown=breakdown), "department")


def aggregate_by_category(rows, *, breakdown: bool = True) -> list[dict]:
    """Per category, largest first."""
    return _by_volume(_group(rows, "category", "category", breakdown=breakdown), "category")


def _priority_rank(priority: str) -> tuple[int, str]:
    try:
        return PRIORITY_RANK.index(priority), ""
    except ValueError:
        return len(PRIORITY_RANK), priority


def aggregate_by_priority(rows, *, breakdown: bool = True) -> list[dict]:
    """Per priority in fixed severity order; absent priorities are omitted.

    Volume never affects the order. Values outside the known set sort last.
    """
    items = _group(rows, "priority", "priority", breakdown=breakdown)
    return sorted(items, key=lambda item: _priority_rank(item["priority"]))


# ═════════════════════════════════════════════════════════════════════════════
# REPORT ENGINE
# ═════════════════════════════════════════════════════════════════════════════

def resolve_range(start_date=None, end_date=None):
    """Parse raw ``startDate`` / ``endDate`` values into aware UTC bounds.

    Raises:
        ValidationError: a bound is present but unparseable.
    """
    return parse_instant(start_date, "startDate"), parse_instant(end_date, "endDate")


def _workers() -> int:
    if has_app_context():
        return max(1, int(current_app.config.get("REPORT_WORKERS", 4)))
    return 4


class ReportEngine:
    """Computes request statistics; every method re-reads the store."""

    @staticmethod
    def _rows(start_date, end_date):
        start, end = resolve_range(start_date, end_date)
        return request_store.snapshot(start, end)

    @classmethod
    def overview(cls, start_date=None, end_date=None) -> dict:
        return aggregate_overview(cls._rows(start_date, end_date))

    @classmethod
    def by_department(cls, start_date=None, end_date=None) -> list[dict]:
        return aggregate_by_department(cls._rows(start_date, end_date))

    @classmethod
    def by_category(cls, start_date=None, end_date=None) -> list[dict]:
        return aggregate_by_category(cls._rows(start_date, end_date))

    @classmethod
    def by_priority(cls, start_date=None, end_date=None) -> list[dict]:
        return aggregate_by_priority(cls._rows(start_date, end_date))

    @classmethod
    def comprehensive(cls, start_date=None, end_date=None) -> dict:
        """All four reports over one snapshot, computed concurrently.

        Groupings are the totals-only variants. ``dateRange`` echoes the
        given bounds, or "All time" / "Present" when a bound is omitted.
        """
        rows = tuple(cls._rows(start_date, end_date))

        with ThreadPoolExecutor(max_workers=_workers(), thread_name_prefix="report") as executor:
            overview = executor.submit(aggregate_overview, rows)
            by_department = executor.submit(aggregate_by_department, rows, breakdown=False)
            by_category = executor.submit(aggregate_by_category, rows, breakdown=False)
            by_priority = executor.submit(aggregate_by_priority, rows, breakdown=False)
            report = {
                "overview": overview.result(),
                "byDepartment": by_department.result(),
                "byCategory": by_category.result(),
                "byPriority": by_priority.result(),
            }

        report["generatedAt"] = datetime.now(timezone.utc).isoformat()
        report["dateRange"] = {
            "start": start_date or ALL_TIME,
            "end": end_date or PRESENT,
        }
        logger.info("Comprehensive report over %d requests (start=%s end=%s)",
                    len(rows), start_date or "-", end_date or "-")
        return report

