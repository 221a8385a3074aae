"""Entitlement snapshots and paid/unpaid apportioning — pure functions, no database."""

from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal

from leavehub.common.constants import (
    EmployeeType,
    LeaveStatus,
    LeaveType,
    ProbationStatus,
)
from leavehub.engine.apportion import (
    apportion_requests,
    balance_at,
    monthly_breakdown,
    split_paid_unpaid,
)
from leavehub.engine.calendar import year_window
from leavehub.engine.ledger import build_snapshot
from leavehub.engine.types import EmployeeProfile, LeaveRecord, PolicyRecord

YEAR_2024 = year_window(2024)


def _profile(**kw) -> EmployeeProfile:
    data = dict(
        id=uuid.uuid4(),
        join_date=date(2024, 1, 1),
        employee_type=EmployeeType.onshore,
    )
    data.update(kw)
    return EmployeeProfile(**data)


def _policy(leave_type=LeaveType.annual, days="25", **kw) -> PolicyRecord:
    return PolicyRecord(
        leave_type=leave_type,
        employee_type=EmployeeType.onshore,
        total_days_per_year=Decimal(days),
        **kw,
    )


def _leave(profile, start, end, *, days=None, status=LeaveStatus.approved,
           leave_type=LeaveType.annual, **kw) -> LeaveRecord:
    if days is None:
        days = (end - start).days + 1
    return LeaveRecord(
        id=uuid.uuid4(),
        employee_id=profile.id,
        leave_type=leave_type,
        start_date=start,
        end_date=end,
        total_days=Decimal(str(days)),
        status=status,
        **kw,
    )


# ═════════════════════════════════════════════════════════════════════
# 1. Entitlement snapshot
# ═════════════════════════════════════════════════════════════════════


class TestBuildSnapshot:

    def _snapshot(self, profile, policies, requests, adjustments=None):
        return build_snapshot(
            profile,
            policies,
            requests,
            reference_date=date(2024, 7, 1),
            window_start=YEAR_2024[0],
            window_end=YEAR_2024[1],
            adjustments=adjustments,
        )

    def test_used_pending_remaining(self):
        profile = _profile()
        requests = [
            _leave(profile, date(2024, 3, 4), date(2024, 3, 6)),
            _leave(profile, date(2024, 8, 1), date(2024, 8, 2), status=LeaveStatus.pending),
            _leave(profile, date(2024, 9, 2), date(2024, 9, 6), status=LeaveStatus.rejected),
        ]
        snap = self._snapshot(profile, [_policy(), _policy(LeaveType.sick, "10")], requests)

        annual = snap.lines[LeaveType.annual]
        assert annual.total == Decimal("12.47")
        assert annual.used == Decimal("3.00")
        assert annual.pending == Decimal("2.00")
        assert annual.remaining == Decimal("7.47")
        assert annual.utilization_percent == Decimal("24.06")

        sick = snap.lines[LeaveType.sick]
        assert sick.total == Decimal("4.99")
        assert sick.used == Decimal("0.00")

        assert snap.totals.total == Decimal("17.46")
        assert snap.totals.remaining == Decimal("12.46")
        assert snap.missing_policies == []

    def test_adjustment_added_to_total(self):
        profile = _profile()
        snap = self._snapshot(
            profile, [_policy()], [], adjustments={LeaveType.annual: Decimal("5")},
        )
        assert snap.lines[LeaveType.annual].total == Decimal("17.47")

    def test_remaining_never_negative(self):
        profile = _profile()
        requests = [_leave(profile, date(2024, 2, 1), date(2024, 2, 20))]
        snap = self._snapshot(profile, [_policy()], requests)
        line = snap.lines[LeaveType.annual]
        assert line.used == Decimal("20.00")
        assert line.remaining == Decimal("0.00")

    def test_leave_without_policy_reported_missing(self):
        profile = _profile()
        requests = [
            _leave(profile, date(2024, 2, 1), date(2024, 2, 2), leave_type=LeaveType.casual),
        ]
        snap = self._snapshot(profile, [_policy()], requests)
        casual = snap.lines[LeaveType.casual]
        assert casual.policy_found is False
        assert casual.total == Decimal("0.00")
        assert casual.used == Decimal("2.00")
        assert snap.missing_policies == [LeaveType.casual]

    def test_leave_across_year_boundary_counts_share(self):
        profile = _profile(join_date=date(2023, 1, 1))
        requests = [_leave(profile, date(2023, 12, 30), date(2024, 1, 2))]
        snap = self._snapshot(profile, [_policy()], requests)
        assert snap.lines[LeaveType.annual].used == Decimal("2.00")

    def test_other_employees_requests_ignored(self):
        profile = _profile()
        other = _profile()
        requests = [_leave(other, date(2024, 2, 1), date(2024, 2, 5))]
        snap = self._snapshot(profile, [_policy()], requests)
        assert snap.lines[LeaveType.annual].used == Decimal("0.00")

    def test_repeated_calls_give_equal_snapshots(self):
        profile = _profile()
        policies = [_policy(), _policy(LeaveType.sick, "10")]
        requests = [
            _leave(profile, date(2024, 3, 4), date(2024, 3, 6)),
            _leave(profile, date(2024, 8, 1), date(2024, 8, 2), status=LeaveStatus.pending),
        ]
        adjustments = {LeaveType.annual: Decimal("2")}

        first = self._snapshot(profile, policies, requests, adjustments)
        second = self._snapshot(profile, policies, requests, adjustments)

        assert first == second
        assert adjustments == {LeaveType.annual: Decimal("2")}


# ═════════════════════════════════════════════════════════════════════
# 2. Paid / unpaid split
# ═════════════════════════════════════════════════════════════════════


class TestSplitPaidUnpaid:

    def test_balance_covers_part_of_request(self):
        """36.5 days/year with 100 days served → balance 10; 15-day leave → 10 paid, 5 unpaid."""
        profile = _profile()
        policy = _policy(days="36.5")
        req = _leave(profile, date(2024, 4, 10), date(2024, 4, 24))

        result = split_paid_unpaid(req, profile, policy, [req])

        assert result.paid_days == Decimal("10.00")
        assert result.unpaid_days == Decimal("5.00")
        assert result.is_paid is True
        assert result.in_probation is False

    def test_probation_overlap_makes_whole_request_unpaid(self):
        profile = _profile(
            probation_status=ProbationStatus.active,
            probation_start_date=date(2024, 1, 1),
            probation_end_date=date(2024, 3, 31),
        )
        req = _leave(profile, date(2024, 3, 25), date(2024, 4, 2), leave_type=LeaveType.sick)
        policy = _policy(LeaveType.sick, "365")

        result = split_paid_unpaid(req, profile, policy, [])

        assert result.days_counted == Decimal("9.00")
        assert result.paid_days == Decimal("0.00")
        assert result.unpaid_days == Decimal("9.00")
        assert result.in_probation is True
        assert result.is_paid is False

    def test_earlier_approved_leave_consumes_balance(self):
        profile = _profile()
        policy = _policy(days="36.5")
        earlier = _leave(profile, date(2024, 3, 1), date(2024, 3, 4))
        req = _leave(profile, date(2024, 4, 10), date(2024, 4, 24))

        result = split_paid_unpaid(req, profile, policy, [earlier, req])

        assert result.paid_days == Decimal("6.00")
        assert result.unpaid_days == Decimal("9.00")

    def test_pending_and_same_day_leave_not_consumed(self):
        profile = _profile()
        policy = _policy(days="36.5")
        pending = _leave(profile, date(2024, 3, 1), date(2024, 3, 4), status=LeaveStatus.pending)
        same_start = _leave(profile, date(2024, 4, 10), date(2024, 4, 10))
        as_of = date(2024, 4, 10)

        assert balance_at(profile, policy, [pending, same_start], as_of) == Decimal("10.00")

    def test_no_policy_or_unpaid_policy_gives_zero_balance(self):
        profile = _profile()
        req = _leave(profile, date(2024, 6, 3), date(2024, 6, 4))

        no_policy = split_paid_unpaid(req, profile, None, [])
        unpaid_policy = split_paid_unpaid(req, profile, _policy(is_paid=False), [])

        for result in (no_policy, unpaid_policy):
            assert result.paid_days == Decimal("0.00")
            assert result.unpaid_days == Decimal("2.00")
            assert result.is_paid is False

    def test_apportion_only_approved_in_window(self):
        profile = _profile(join_date=date(2023, 1, 1))
        requests = [
            _leave(profile, date(2024, 2, 1), date(2024, 2, 2)),
            _leave(profile, date(2024, 3, 1), date(2024, 3, 2), status=LeaveStatus.pending),
            _leave(profile, date(2023, 6, 1), date(2023, 6, 2)),
            _leave(profile, date(2024, 12, 31), date(2025, 1, 1)),
        ]
        results = apportion_requests(profile, requests, [_policy()], window=YEAR_2024)

        assert [r.days_counted for r in results] == [Decimal("2.00"), Decimal("1.00")]
        assert all(r.is_paid for r in results)


# ═════════════════════════════════════════════════════════════════════
# 3. Monthly breakdown
# ═════════════════════════════════════════════════════════════════════


class TestMonthlyBreakdown:

    def test_running_balance_carries_across_months(self):
        """Balance 5.8 on Apr 26: April's 5 days paid, 0.8 of May's 5 days paid."""
        profile = _profile()
        policy = _policy(days="18.25")
        req = _leave(profile, date(2024, 4, 26), date(2024, 5, 5))

        result = monthly_breakdown(profile, [req], [policy], 2024)

        assert result.months[4].paid_days == Decimal("5.00")
        assert result.months[4].unpaid_days == Decimal("0.00")
        assert result.months[5].paid_days == Decimal("0.80")
        assert result.months[5].unpaid_days == Decimal("4.20")
        assert result.yearly_total.paid_days == Decimal("5.80")
        assert result.yearly_total.unpaid_days == Decimal("4.20")
        assert result.yearly_total.total_days == Decimal("10.00")

        yearly = split_paid_unpaid(req, profile, policy, [req])
        assert yearly.paid_days == result.yearly_total.paid_days

    def test_all_twelve_months_present(self):
        result = monthly_breakdown(_profile(), [], [_policy()], 2024)
        assert sorted(result.months) == list(range(1, 13))
        assert result.months[1].month_name == "January"
        assert result.yearly_total.total_days == Decimal("0")

    def test_half_day_and_short_leave(self):
        profile = _profile()
        half = _leave(
            profile, date(2024, 6, 3), date(2024, 6, 3), days="0.5", is_half_day=True,
        )
        short = _leave(
            profile, date(2024, 7, 1), date(2024, 7, 1), days="0.5",
            short_leave_hours=Decimal("4"),
        )
        result = monthly_breakdown(profile, [half, short], [_policy()], 2024)

        assert result.months[6].total_days == Decimal("0.50")
        assert result.months[7].total_days == Decimal("0.50")
        assert result.yearly_total.paid_days == Decimal("1.00")

    def test_only_in_year_share_reported(self):
        profile = _profile(join_date=date(2023, 1, 1))
        req = _leave(profile, date(2023, 12, 30), date(2024, 1, 2))

        result = monthly_breakdown(profile, [req], [_policy(days="36.5")], 2024)

        assert result.months[1].total_days == Decimal("2.00")
        assert result.months[1].paid_days == Decimal("2.00")
        assert result.yearly_total.total_days == Decimal("2.00")

    def test_probation_months_unpaid(self):
        profile = _profile(
            probation_status=ProbationStatus.extended,
            probation_start_date=date(2024, 1, 1),
            probation_end_date=date(2024, 3, 31),
        )
        req = _leave(profile, date(2024, 3, 30), date(2024, 4, 2))

        result = monthly_breakdown(profile, [req], [_policy()], 2024)

        assert result.months[3].unpaid_days == Decimal("2.00")
        assert result.months[4].unpaid_days == Decimal("2.00")
        assert result.yearly_total.paid_days == Decimal("0.00")

    def test_monthly_sum_matches_request_total(self):
        profile = _profile()
        requests = [
            _leave(profile, date(2024, 1, 29), date(2024, 3, 3)),
            _leave(profile, date(2024, 5, 30), date(2024, 6, 2)),
        ]
        result = monthly_breakdown(profile, requests, [_policy()], 2024)

        monthly_sum = sum(m.total_days for m in result.months.values())
        expected = sum(r.total_days for r in requests)
        assert abs(monthly_sum - expected) <= Decimal("0.01")
        for stats in result.months.values():
            assert stats.paid_days + stats.unpaid_days == stats.total_days

    def test_repeated_calls_give_equal_breakdowns(self):
        profile = _profile()
        requests = [
            _leave(profile, date(2024, 4, 26), date(2024, 5, 5)),
            _leave(profile, date(2024, 11, 4), date(2024, 11, 8)),
        ]
        policies = [_policy(days="18.25")]

        first = monthly_breakdown(profile, requests, policies, 2024)
        second = monthly_breakdown(profile, requests, policies, 2024)

        assert first == second
        assert len(requests) == 2
