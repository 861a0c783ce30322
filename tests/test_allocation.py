"""Tests for FIFO advance allocation."""

from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import uuid4

from hypothesis import given, settings, strategies as st

from payroll_advances.calculators import (
    AdvanceBalance,
    AllocationResult,
    DeductionEntry,
    PayPeriod,
    allocate,
    select_eligible,
)


def balance(
    remaining: str,
    period: str = "2024-01",
    granted: date = date(2024, 1, 1),
    created_at: datetime | None = None,
) -> AdvanceBalance:
    return AdvanceBalance(
        advance_id=uuid4(),
        remaining_balance=Decimal(remaining),
        deduct_from_period=period,
        grant_date=granted,
        created_at=created_at,
    )


MARCH = PayPeriod(2024, 3)


class TestSelectEligible:
    """Eligibility filter and allocation order."""

    def test_excludes_future_periods(self):
        current = balance("100", "2024-03")
        future = balance("100", "2024-04")

        assert select_eligible([current, future], MARCH) == [current]

    def test_excludes_zero_balance(self):
        settled = balance("0", "2024-01")
        open_ = balance("50", "2024-01")

        assert select_eligible([settled, open_], MARCH) == [open_]

    def test_orders_by_period_then_grant_date(self):
        newest = balance("10", "2024-03", date(2024, 2, 1))
        older_period = balance("10", "2024-01", date(2024, 1, 20))
        same_period_earlier = balance("10", "2024-03", date(2024, 1, 5))

        ordered = select_eligible([newest, older_period, same_period_earlier], MARCH)

        assert ordered == [older_period, same_period_earlier, newest]

    def test_creation_time_breaks_same_day_ties(self):
        later = balance("10", created_at=datetime(2024, 1, 1, 12, tzinfo=timezone.utc))
        earlier = balance("10", created_at=datetime(2024, 1, 1, 9, tzinfo=timezone.utc))

        assert select_eligible([later, earlier], MARCH) == [earlier, later]

    def test_period_comparison_crosses_years(self):
        december = balance("10", "2023-12")
        assert select_eligible([december], PayPeriod(2024, 1)) == [december]
        assert select_eligible([december], PayPeriod(2023, 11)) == []


class TestAllocate:
    """Allocation of gross pay across ordered advances."""

    def test_single_advance_fully_recovered(self):
        adv = balance("1000")

        result = allocate(Decimal("5000"), [adv])

        assert result.total_deducted == Decimal("1000")
        assert result.net_payable == Decimal("4000")
        assert result.entries == [
            DeductionEntry(adv.advance_id, Decimal("1000"), Decimal("0"))
        ]

    def test_partial_settlement_across_advances(self):
        first = balance("3000", "2024-01")
        second = balance("4000", "2024-02")

        result = allocate(Decimal("5000"), [first, second])

        assert [e.amount_deducted for e in result.entries] == [Decimal("3000"), Decimal("2000")]
        assert [e.remaining_after for e in result.entries] == [Decimal("0"), Decimal("2000")]
        assert result.net_payable == Decimal("0")

    def test_takes_oldest_before_touching_newer(self):
        january = balance("500", "2024-01")
        february = balance("300", "2024-02")

        result = allocate(Decimal("600"), select_eligible([february, january], MARCH))

        assert result.entries == [
            DeductionEntry(january.advance_id, Decimal("500"), Decimal("0")),
            DeductionEntry(february.advance_id, Decimal("100"), Decimal("200")),
        ]

    def test_stops_at_first_advance_receiving_nothing(self):
        first = balance("5000")
        second = balance("100")

        result = allocate(Decimal("5000"), [first, second])

        assert len(result.entries) == 1
        assert result.entries[0].advance_id == first.advance_id

    def test_zero_gross_takes_nothing(self):
        result = allocate(Decimal("0"), [balance("100")])

        assert result.entries == []
        assert result.net_payable == Decimal("0")

    def test_negative_gross_takes_nothing(self):
        result = allocate(Decimal("-50"), [balance("100")])

        assert result.entries == []
        assert result.total_deducted == Decimal("0")
        assert result.net_payable == Decimal("-50")

    def test_no_advances(self):
        result = allocate(Decimal("2500.50"), [])

        assert result == AllocationResult(gross_pay=Decimal("2500.50"))
        assert result.net_payable == Decimal("2500.50")

    def test_snapshot_is_json_safe(self):
        adv = balance("250.25")

        snapshot = allocate(Decimal("100.10"), [adv]).snapshot()

        assert snapshot == [
            {
                "advance_id": str(adv.advance_id),
                "amount_deducted": "100.10",
                "remaining_after": "150.15",
            }
        ]
        assert DeductionEntry.from_dict(snapshot[0]).amount_deducted == Decimal("100.10")


# =============================================================================
# Properties
# =============================================================================

amounts = st.decimals(
    min_value=Decimal("0.01"),
    max_value=Decimal("10000"),
    places=2,
    allow_nan=False,
    allow_infinity=False,
)
gross_values = st.decimals(
    min_value=Decimal("-1000"),
    max_value=Decimal("50000"),
    places=2,
    allow_nan=False,
    allow_infinity=False,
)


@st.composite
def advance_lists(draw):
    balances = draw(st.lists(amounts, max_size=8))
    periods = draw(
        st.lists(
            st.sampled_from(["2023-11", "2023-12", "2024-01", "2024-02", "2024-03"]),
            min_size=len(balances),
            max_size=len(balances),
        )
    )
    return [balance(str(b), p) for b, p in zip(balances, periods)]


class TestAllocationProperties:
    """Invariants that hold for any gross pay and set of advances."""

    @given(gross=gross_values, advances=advance_lists())
    @settings(max_examples=200)
    def test_never_takes_more_than_affordable(self, gross, advances):
        result = allocate(gross, select_eligible(advances, MARCH))

        assert Decimal("0") <= result.total_deducted <= max(Decimal("0"), gross)

    @given(gross=gross_values, advances=advance_lists())
    @settings(max_examples=200)
    def test_takes_as_much_as_possible(self, gross, advances):
        eligible = select_eligible(advances, MARCH)
        owed = sum((a.remaining_balance for a in eligible), Decimal("0"))

        result = allocate(gross, eligible)

        assert result.total_deducted == min(max(Decimal("0"), gross), owed)

    @given(gross=gross_values, advances=advance_lists())
    @settings(max_examples=200)
    def test_entries_follow_allocation_order(self, gross, advances):
        eligible = select_eligible(advances, MARCH)

        result = allocate(gross, eligible)

        assert [e.advance_id for e in result.entries] == [
            a.advance_id for a in eligible[: len(result.entries)]
        ]
        for entry, adv in zip(result.entries, eligible):
            assert Decimal("0") < entry.amount_deducted <= adv.remaining_balance
            assert entry.remaining_after == adv.remaining_balance - entry.amount_deducted

    @given(gross=gross_values, advances=advance_lists())
    @settings(max_examples=200)
    def test_only_last_entry_is_partial(self, gross, advances):
        result = allocate(gross, select_eligible(advances, MARCH))

        for entry in result.entries[:-1]:
            assert entry.remaining_after == Decimal("0")
