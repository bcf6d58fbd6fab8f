"""
Pure date/status derivation, no database involved.

Contract status priority (first match wins):
    end_date < today                      → overdue
    today ≤ end_date ≤ today + 3 months   → renewal_needed
    in_progress/active and inside the
    [next_due − 1 month, next_due) window → job_creation_needed

Job overdue: scheduled_start < now − 2 days (strict).

Run: python -m pytest tests/test_lifecycle.py -v
"""

from datetime import date, datetime, timedelta
from types import SimpleNamespace

import pytest

from fieldservice.services.lifecycle import (
    add_months,
    contract_label,
    derive_contract_status,
    derive_job_overdue,
    is_job_creation_due,
    months_between_jobs,
    next_job_due,
    occurrences_per_year,
    within_cooldown,
)

TODAY = date(2024, 6, 15)
NOW = datetime(2024, 6, 15, 12, 0, 0)


# ── Helpers ──────────────────────────────────────────────────────────────


def _services(*frequencies):
    return [SimpleNamespace(frequency_months=freq) for freq in frequencies]


def _contract(status="in_progress", start_date=date(2024, 1, 1), end_date=date(2026, 12, 31), **kw):
    fields = {"id": 7, "name": None, "agreement_number": None}
    fields.update(kw)
    return SimpleNamespace(status=status, start_date=start_date, end_date=end_date, **fields)


def _job(status="pending", scheduled_start=None):
    return SimpleNamespace(status=status, scheduled_start=scheduled_start)


# ── Month arithmetic ─────────────────────────────────────────────────────


class TestAddMonths:
    def test_whole_months_use_calendar_arithmetic(self):
        assert add_months(date(2024, 1, 15), 1) == date(2024, 2, 15)
        assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
        assert add_months(date(2024, 3, 31), -1) == date(2024, 2, 29)

    def test_three_month_horizon(self):
        assert add_months(TODAY, 3) == date(2024, 9, 15)

    def test_fractional_months_truncate(self):
        """12 / 5 occurrences = 2.4 months → 2 calendar months."""
        assert add_months(date(2024, 1, 1), 12 / 5) == date(2024, 3, 1)
        assert add_months(date(2024, 1, 1), 12 / 7) == date(2024, 2, 1)


class TestFrequencyMath:
    def test_occurrences_sum_over_services(self):
        assert occurrences_per_year(_services(6, 6)) == 12
        assert occurrences_per_year([]) == 0

    def test_months_between_jobs(self):
        assert months_between_jobs(_services(6, 6)) == 1
        assert months_between_jobs(_services(2, 2)) == 3
        assert months_between_jobs(_services(0)) is None

    def test_next_job_due_from_last_job(self):
        assert next_job_due(_services(6, 6), date(2024, 3, 10), date(2024, 1, 1)) == date(2024, 4, 10)

    def test_next_job_due_falls_back_to_start_date(self):
        assert next_job_due(_services(4), None, date(2024, 1, 1)) == date(2024, 4, 1)

    def test_next_job_due_without_services(self):
        assert next_job_due([], None, date(2024, 1, 1)) is None

    def test_creation_window_is_half_open(self):
        due = date(2024, 4, 10)
        assert is_job_creation_due(due, date(2024, 3, 10)) is True
        assert is_job_creation_due(due, date(2024, 4, 9)) is True
        assert is_job_creation_due(due, date(2024, 3, 9)) is False
        assert is_job_creation_due(due, date(2024, 4, 10)) is False
        assert is_job_creation_due(None, date(2024, 4, 1)) is False


# ── Contract status derivation ───────────────────────────────────────────


class TestDeriveContractStatus:
    def test_past_end_date_is_overdue(self):
        contract = _contract(end_date=TODAY - timedelta(days=1))
        assert derive_contract_status(contract, _services(2), TODAY) == "overdue"

    @pytest.mark.parametrize("status", ["overdue", "cancelled", "ended"])
    def test_overdue_branch_leaves_excluded_statuses(self, status):
        contract = _contract(status=status, end_date=TODAY - timedelta(days=1))
        assert derive_contract_status(contract, _services(2), TODAY) is None

    def test_renewal_boundary_is_inclusive(self):
        contract = _contract(status="job_creation_needed", end_date=date(2024, 9, 15))
        assert derive_contract_status(contract, _services(2), TODAY) == "renewal_needed"

    def test_end_date_today_is_renewal_not_overdue(self):
        contract = _contract(end_date=TODAY)
        assert derive_contract_status(contract, _services(2), TODAY) == "renewal_needed"

    def test_one_day_past_horizon_is_not_renewal(self):
        contract = _contract(status="job_creation_needed", end_date=date(2024, 9, 16))
        assert derive_contract_status(contract, _services(2), TODAY) is None

    @pytest.mark.parametrize("status", ["renewal_needed", "overdue", "cancelled", "ended"])
    def test_renewal_branch_leaves_excluded_statuses(self, status):
        contract = _contract(status=status, end_date=date(2024, 8, 1))
        assert derive_contract_status(contract, _services(2), TODAY) is None

    def test_job_creation_due_after_recent_job(self):
        """Twelve services a year, last job 20 days ago → next due in 10 days."""
        last_job = TODAY - timedelta(days=20)
        contract = _contract(status="in_progress")
        assert derive_contract_status(contract, _services(6, 6), TODAY, last_job) == "job_creation_needed"

    def test_legacy_active_status_is_eligible(self):
        last_job = TODAY - timedelta(days=20)
        contract = _contract(status="active")
        assert derive_contract_status(contract, _services(6, 6), TODAY, last_job) == "job_creation_needed"

    def test_job_creation_not_due_yet(self):
        """Quarterly contract, last job 10 days ago → window opens in ~2 months."""
        last_job = TODAY - timedelta(days=10)
        contract = _contract(status="in_progress")
        assert derive_contract_status(contract, _services(2, 2), TODAY, last_job) is None

    def test_job_creation_past_due_date_does_not_fire(self):
        last_job = TODAY - timedelta(days=120)
        contract = _contract(status="in_progress")
        assert derive_contract_status(contract, _services(2, 2), TODAY, last_job) is None

    def test_fractional_interval_uses_whole_months(self):
        """Five services a year, last job 2026-06-01 → due 2026-08-01, window opens 2026-07-01."""
        contract = _contract(status="in_progress", start_date=date(2026, 1, 1), end_date=date(2028, 12, 31))
        last_job = date(2026, 6, 1)

        assert next_job_due(_services(5), last_job, contract.start_date) == date(2026, 8, 1)
        assert derive_contract_status(contract, _services(5), date(2026, 7, 5), last_job) == "job_creation_needed"
        assert derive_contract_status(contract, _services(5), date(2026, 8, 5), last_job) is None

    def test_job_creation_uses_start_date_without_jobs(self):
        contract = _contract(status="in_progress", start_date=date(2024, 4, 1))
        # next due 2024-07-01, window opens 2024-06-01
        assert derive_contract_status(contract, _services(4), TODAY) == "job_creation_needed"

    @pytest.mark.parametrize("status", ["on_hold", "job_creation_needed", "renewal_needed"])
    def test_job_creation_only_for_in_progress(self, status):
        last_job = TODAY - timedelta(days=20)
        contract = _contract(status=status)
        assert derive_contract_status(contract, _services(6, 6), TODAY, last_job) is None

    def test_no_services_or_zero_frequency(self):
        last_job = TODAY - timedelta(days=20)
        contract = _contract(status="in_progress")
        assert derive_contract_status(contract, [], TODAY, last_job) is None
        assert derive_contract_status(contract, _services(0), TODAY, last_job) is None


# ── Job overdue ──────────────────────────────────────────────────────────


class TestDeriveJobOverdue:
    def test_exactly_two_days_is_not_overdue(self):
        assert derive_job_overdue(_job(scheduled_start=NOW - timedelta(days=2)), NOW) is False

    def test_one_second_past_grace_is_overdue(self):
        job = _job(scheduled_start=NOW - timedelta(days=2, seconds=1))
        assert derive_job_overdue(job, NOW) is True

    @pytest.mark.parametrize("status", ["completed", "cancelled", "overdue"])
    def test_terminal_statuses_never_overdue(self, status):
        job = _job(status=status, scheduled_start=NOW - timedelta(days=10))
        assert derive_job_overdue(job, NOW) is False

    def test_unscheduled_job_is_not_overdue(self):
        assert derive_job_overdue(_job(scheduled_start=None), NOW) is False


# ── Misc ─────────────────────────────────────────────────────────────────


class TestLabelsAndCooldown:
    def test_contract_label_fallbacks(self):
        assert contract_label(_contract(name="Roof PM", agreement_number="AGR-1")) == "Roof PM"
        assert contract_label(_contract(agreement_number="AGR-1")) == "AGR-1"
        assert contract_label(_contract()) == "7"

    def test_cooldown_applies_to_same_status_only(self):
        recent = NOW - timedelta(days=3)
        assert within_cooldown(recent, "renewal_needed", "renewal_needed", NOW) is True
        assert within_cooldown(recent, "renewal_needed", "overdue", NOW) is False

    def test_cooldown_expires_after_seven_days(self):
        assert within_cooldown(NOW - timedelta(days=7), "overdue", "overdue", NOW) is False
        assert within_cooldown(None, None, "overdue", NOW) is False
