"""
Date-driven status derivation for service agreements and jobs.

Everything here is pure: callers pass ``today`` / ``now`` explicitly and get a
target status (or a boolean) back. The scan routines in
``services.status_automation`` apply the results to the database.
"""

from datetime import date, datetime, timedelta
from typing import Iterable, Optional

from dateutil.relativedelta import relativedelta

from ..config import (
    JOB_CREATION_LEAD_MONTHS,
    JOB_OVERDUE_GRACE_DAYS,
    NOTIFICATION_COOLDOWN_DAYS,
    RENEWAL_HORIZON_MONTHS,
)

# Contract statuses
JOB_CREATION_NEEDED = "job_creation_needed"
IN_PROGRESS = "in_progress"
RENEWAL_NEEDED = "renewal_needed"
ON_HOLD = "on_hold"
OVERDUE = "overdue"
ENDED = "ended"
CANCELLED = "cancelled"
ACTIVE = "active"  # legacy alias of in_progress

CONTRACT_STATUSES = (
    JOB_CREATION_NEEDED,
    IN_PROGRESS,
    RENEWAL_NEEDED,
    ON_HOLD,
    OVERDUE,
    ENDED,
    CANCELLED,
    ACTIVE,
)
TERMINAL_CONTRACT_STATUSES = (ENDED, CANCELLED)

# Statuses each scan branch leaves untouched
OVERDUE_EXCLUDED = (OVERDUE, CANCELLED, ENDED)
RENEWAL_EXCLUDED = (RENEWAL_NEEDED, CANCELLED, ENDED, OVERDUE)
JOB_CREATION_ELIGIBLE = (ACTIVE, IN_PROGRESS)

# Job statuses
JOB_PENDING = "pending"
JOB_CONFIRMED = "confirmed"
JOB_COMPLETED = "completed"
JOB_CANCELLED = "cancelled"
JOB_ON_HOLD = "on_hold"
JOB_OVERDUE = "overdue"

JOB_STATUSES = (JOB_PENDING, JOB_CONFIRMED, JOB_COMPLETED, JOB_CANCELLED, JOB_ON_HOLD, JOB_OVERDUE)
JOB_OVERDUE_EXCLUDED = (JOB_COMPLETED, JOB_CANCELLED, JOB_OVERDUE)


def add_months(value: date, months: float) -> date:
    """
    Calendar month arithmetic with ``relativedelta`` (Jan 31 + 1 month = Feb 28/29).

    Fractional months, as produced by 12 / 5 occurrences a year, are truncated
    to whole calendar months.
    """
    return value + relativedelta(months=int(months))


def occurrences_per_year(services: Iterable) -> int:
    """Sum of ``frequency_months`` over a contract's services"""
    return sum(service.frequency_months or 0 for service in services)


def months_between_jobs(services: Iterable) -> Optional[float]:
    occurrences = occurrences_per_year(services)
    if occurrences <= 0:
        return None
    return 12 / occurrences


def next_job_due(
    services: Iterable, last_job_date: Optional[date], start_date: date
) -> Optional[date]:
    """Date the next service visit is due, or None when no services are configured"""
    interval = months_between_jobs(services)
    if interval is None:
        return None
    anchor = last_job_date or start_date
    return add_months(anchor, interval)


def is_job_creation_due(next_due: Optional[date], today: date) -> bool:
    """True inside the lead window ``[next_due - 1 month, next_due)``"""
    if next_due is None:
        return False
    window_start = add_months(next_due, -JOB_CREATION_LEAD_MONTHS)
    return window_start <= today < next_due


def renewal_horizon(today: date) -> date:
    return add_months(today, RENEWAL_HORIZON_MONTHS)


def contract_label(contract) -> str:
    return str(contract.name or contract.agreement_number or contract.id)


def derive_contract_status(
    contract, services: Iterable, today: date, last_job_date: Optional[date] = None
) -> Optional[str]:
    """
    Return the status the lifecycle scan would move ``contract`` to, or None.

    Branches are checked in scan order: overdue, renewal window, job creation
    due. A contract matched by an earlier branch's date window never falls
    through to a later branch.
    """
    status = contract.status
    if status in TERMINAL_CONTRACT_STATUSES:
        return None

    end_date = contract.end_date
    if end_date is not None and end_date < today:
        return OVERDUE if status not in OVERDUE_EXCLUDED else None

    if end_date is not None and today <= end_date <= renewal_horizon(today):
        return RENEWAL_NEEDED if status not in RENEWAL_EXCLUDED else None

    if status not in JOB_CREATION_ELIGIBLE:
        return None

    services = list(services)
    if not services:
        return None

    due = next_job_due(services, last_job_date, contract.start_date)
    if is_job_creation_due(due, today) and status != JOB_CREATION_NEEDED:
        return JOB_CREATION_NEEDED
    return None


def overdue_cutoff(now: datetime) -> datetime:
    return now - timedelta(days=JOB_OVERDUE_GRACE_DAYS)


def derive_job_overdue(job, now: datetime) -> bool:
    """A job is overdue once ``scheduled_start`` is strictly older than the grace period"""
    if job.scheduled_start is None or job.status in JOB_OVERDUE_EXCLUDED:
        return False
    return job.scheduled_start < overdue_cutoff(now)


def within_cooldown(
    last_notified_at: Optional[datetime],
    last_notified_status: Optional[str],
    status: str,
    now: datetime,
) -> bool:
    """True when ``status`` was already notified for this contract inside the cooldown"""
    if last_notified_at is None or last_notified_status != status:
        return False
    return now - last_notified_at < timedelta(days=NOTIFICATION_COOLDOWN_DAYS)
