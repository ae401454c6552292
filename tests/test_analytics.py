#!/usr/bin/env python3
"""
Tests for the analytics functions.

Covers fuel efficiency, cost per km, maintenance breakdowns, monthly
rollups, total cost of ownership, odometer checks, expense alerts,
service suggestions, trips and reminders.
"""
from datetime import date, datetime

import pytest

from autoledger import (
    SERVICE_INTERVALS,
    FuelLog,
    InsurancePolicy,
    MaintenanceCategory,
    MaintenanceRecord,
    Modification,
    MonthlyExpenseData,
    Reminder,
    TripLog,
    TripPurpose,
    Vehicle,
    calculate_cost_per_km,
    calculate_fuel_efficiency,
    calculate_total_cost_of_ownership,
    get_best_worst_fuel_economy,
    get_expense_summary,
    get_fuel_efficiency_trend,
    get_maintenance_cost_breakdown,
    get_monthly_expenses,
    get_overdue_reminders,
    should_trigger_expense_alert,
    sort_reminders,
    suggest_next_service,
    summarize_trips,
    validate_odometer,
)


def fuel(id, date, mileage, amount, cost=50.0, partial=False):
    return FuelLog(id, "golf", date, mileage, amount, cost, partial_fill=partial)


def service(id, date, mileage, category, total_cost=100.0):
    return MaintenanceRecord(id, "golf", date, mileage, category, total_cost=total_cost)


def months(*totals):
    return [
        MonthlyExpenseData(month=f"2024-{i + 1:02d}", fuel=t, total=t)
        for i, t in enumerate(totals)
    ]


@pytest.fixture
def vehicle():
    return Vehicle("golf", "Volkswagen", "Golf", 2019, "2020-01-01", 10000, 30000)


@pytest.fixture
def fuel_logs():
    """Four fills; the third is partial. Deliberately not in date order."""
    return [
        fuel("f4", "2024-03-01", 31600, 35.0, cost=61.25),
        fuel("f2", "2024-01-28", 30650, 39.5, cost=69.2),
        fuel("f1", "2024-01-05", 30000, 40.0, cost=70.0),
        fuel("f3", "2024-02-15", 31100, 18.0, cost=32.4, partial=True),
    ]


# =============================================================================
# Fuel efficiency
# =============================================================================


class TestCalculateFuelEfficiency:
    """Tests for calculate_fuel_efficiency."""

    def test_consumption_per_100(self):
        """35 units over 500 distance is 7 per 100."""
        previous = fuel("a", "2024-01-01", 1000, 40)
        current = fuel("b", "2024-01-15", 1500, 35)
        assert calculate_fuel_efficiency(current, previous) == 7.00

    def test_rounds_to_two_decimals(self):
        previous = fuel("a", "2024-01-01", 30000, 40)
        current = fuel("b", "2024-01-15", 30650, 39.5)
        assert calculate_fuel_efficiency(current, previous) == 6.08

    def test_partial_fill_returns_zero(self):
        previous = fuel("a", "2024-01-01", 1000, 40)
        current = fuel("b", "2024-01-15", 1500, 35, partial=True)
        assert calculate_fuel_efficiency(current, previous) == 0

    def test_same_odometer_returns_zero(self):
        previous = fuel("a", "2024-01-01", 1500, 40)
        current = fuel("b", "2024-01-15", 1500, 35)
        assert calculate_fuel_efficiency(current, previous) == 0

    def test_decreasing_odometer_returns_zero(self):
        previous = fuel("a", "2024-01-01", 2000, 40)
        current = fuel("b", "2024-01-15", 1500, 35)
        assert calculate_fuel_efficiency(current, previous) == 0


class TestGetFuelEfficiencyTrend:
    """Tests for get_fuel_efficiency_trend."""

    def test_sorted_by_date_and_skips_partial_fills(self, fuel_logs):
        trend = get_fuel_efficiency_trend(fuel_logs)
        assert [(e.date, e.efficiency, e.cost) for e in trend] == [
            ("2024-01-28", 6.08, 69.2),
            ("2024-03-01", 7.0, 61.25),
        ]

    def test_empty_input(self):
        assert get_fuel_efficiency_trend([]) == []

    def test_single_log(self):
        assert get_fuel_efficiency_trend([fuel("a", "2024-01-01", 1000, 40)]) == []

    def test_length_bounded_by_pairs(self, fuel_logs):
        assert len(get_fuel_efficiency_trend(fuel_logs)) <= len(fuel_logs) - 1

    def test_non_advancing_odometer_omitted(self):
        logs = [
            fuel("a", "2024-01-01", 1000, 40),
            fuel("b", "2024-01-10", 1000, 30),
            fuel("c", "2024-01-20", 1400, 28),
        ]
        trend = get_fuel_efficiency_trend(logs)
        assert [e.date for e in trend] == ["2024-01-20"]

    def test_same_date_keeps_input_order(self):
        """Stable sort: logs on one day stay in the order given."""
        logs = [
            fuel("a", "2024-01-01", 1000, 40),
            fuel("b", "2024-01-01", 1500, 35),
        ]
        trend = get_fuel_efficiency_trend(logs)
        assert len(trend) == 1
        assert trend[0].efficiency == 7.0

    def test_timestamps_with_offsets(self):
        logs = [
            fuel("b", "2024-01-02T08:00:00+02:00", 1500, 35),
            fuel("a", "2024-01-01T08:00:00Z", 1000, 40),
        ]
        trend = get_fuel_efficiency_trend(logs)
        assert [e.efficiency for e in trend] == [7.0]

    def test_is_repeatable(self, fuel_logs):
        assert get_fuel_efficiency_trend(fuel_logs) == get_fuel_efficiency_trend(fuel_logs)


class TestGetBestWorstFuelEconomy:
    """Tests for get_best_worst_fuel_economy."""

    def test_empty_trend(self):
        result = get_best_worst_fuel_economy([fuel("a", "2024-01-01", 1000, 40)])
        assert result.best is None
        assert result.worst is None

    def test_best_is_lowest_consumption(self, fuel_logs):
        result = get_best_worst_fuel_economy(fuel_logs)
        assert result.best.efficiency == 6.08
        assert result.worst.efficiency == 7.0

    def test_best_and_worst_bound_the_trend(self, fuel_logs):
        result = get_best_worst_fuel_economy(fuel_logs)
        for entry in get_fuel_efficiency_trend(fuel_logs):
            assert result.best.efficiency <= entry.efficiency
            assert result.worst.efficiency >= entry.efficiency

    def test_ties_resolve_to_first_entry(self):
        logs = [
            fuel("a", "2024-01-01", 0, 40),
            fuel("b", "2024-01-10", 500, 35),
            fuel("c", "2024-01-20", 1000, 35),
        ]
        result = get_best_worst_fuel_economy(logs)
        assert result.best.date == "2024-01-10"
        assert result.worst.date == "2024-01-10"


class TestCalculateCostPerKm:
    """Tests for calculate_cost_per_km."""

    def test_fewer_than_two_logs(self):
        assert calculate_cost_per_km([]) == 0
        assert calculate_cost_per_km([fuel("a", "2024-01-01", 1000, 40)]) == 0

    def test_total_cost_over_distance(self):
        logs = [
            fuel("a", "2024-01-01", 1000, 40, cost=50),
            fuel("b", "2024-01-10", 2000, 40, cost=50),
        ]
        assert calculate_cost_per_km(logs) == 0.1

    def test_partial_fills_count_towards_spend(self):
        logs = [
            fuel("a", "2024-01-01", 1000, 40, cost=50),
            fuel("b", "2024-01-05", 1400, 10, cost=50, partial=True),
            fuel("c", "2024-01-10", 2000, 40, cost=50),
        ]
        assert calculate_cost_per_km(logs) == 0.15

    def test_distance_follows_date_order(self):
        """A later log with a lower reading gives negative distance, so 0."""
        logs = [
            fuel("a", "2024-01-10", 1000, 40),
            fuel("b", "2024-01-01", 2000, 40),
        ]
        assert calculate_cost_per_km(logs) == 0

    def test_zero_distance(self):
        logs = [
            fuel("a", "2024-01-01", 1000, 40),
            fuel("b", "2024-01-10", 1000, 40),
        ]
        assert calculate_cost_per_km(logs) == 0


# =============================================================================
# Costs
# =============================================================================


class TestGetMaintenanceCostBreakdown:
    """Tests for get_maintenance_cost_breakdown."""

    def test_groups_in_first_seen_order(self):
        records = [
            service("m1", "2024-01-01", 10000, MaintenanceCategory.TIRE_ROTATION, 30),
            service("m2", "2024-02-01", 11000, MaintenanceCategory.OIL_CHANGE, 115),
            service("m3", "2024-03-01", 12000, MaintenanceCategory.TIRE_ROTATION, 35),
        ]
        breakdown = get_maintenance_cost_breakdown(records)
        assert [(b.category, b.total_cost, b.count) for b in breakdown] == [
            (MaintenanceCategory.TIRE_ROTATION, 65, 2),
            (MaintenanceCategory.OIL_CHANGE, 115, 1),
        ]

    def test_counts_sum_to_record_count(self):
        records = [
            service(f"m{i}", "2024-01-01", 1000 * i, category)
            for i, category in enumerate(MaintenanceCategory)
        ]
        breakdown = get_maintenance_cost_breakdown(records)
        assert sum(b.count for b in breakdown) == len(records)

    def test_empty(self):
        assert get_maintenance_cost_breakdown([]) == []


class TestGetMonthlyExpenses:
    """Tests for get_monthly_expenses."""

    def test_buckets_fuel_maintenance_and_insurance(self):
        fuel_logs = [
            fuel("f1", "2024-01-05", 30000, 40, cost=70.0),
            fuel("f2", "2024-01-28", 30650, 40, cost=69.2),
        ]
        records = [service("m1", "2024-02-10", 31300, MaintenanceCategory.OIL_CHANGE, 115)]
        policies = [InsurancePolicy("i1", "golf", 300, "2024-01-01", "2024-03-31")]

        monthly = get_monthly_expenses(fuel_logs, records, policies)

        assert [m.month for m in monthly] == ["2024-01", "2024-02", "2024-03"]
        jan, feb, mar = monthly
        assert jan.fuel == pytest.approx(139.2)
        assert jan.insurance == pytest.approx(100)
        assert jan.total == pytest.approx(239.2)
        assert feb.maintenance == 115
        assert feb.total == pytest.approx(215)
        assert mar.fuel == 0
        assert mar.total == pytest.approx(100)

    def test_sorted_by_month(self):
        fuel_logs = [
            fuel("f1", "2024-03-05", 1000, 40),
            fuel("f2", "2023-11-05", 500, 40),
            fuel("f3", "2024-01-05", 800, 40),
        ]
        monthly = get_monthly_expenses(fuel_logs, [], [])
        assert [m.month for m in monthly] == ["2023-11", "2024-01", "2024-03"]

    def test_month_of_timestamp_uses_utc(self):
        fuel_logs = [fuel("f1", "2024-01-31T23:30:00-02:00", 1000, 40)]
        monthly = get_monthly_expenses(fuel_logs, [], [])
        assert monthly[0].month == "2024-02"

    def test_premium_spread_uses_thirty_day_months(self):
        """365 days is 13 thirty-day months, booked to 12 calendar months."""
        policies = [InsurancePolicy("i1", "golf", 1300, "2024-01-01", "2024-12-31")]
        monthly = get_monthly_expenses([], [], policies)
        assert len(monthly) == 12
        assert all(m.insurance == pytest.approx(100) for m in monthly)

    def test_month_end_start_does_not_skip_february(self):
        policies = [InsurancePolicy("i1", "golf", 300, "2024-01-31", "2024-04-30")]
        monthly = get_monthly_expenses([], [], policies)
        assert [m.month for m in monthly] == ["2024-01", "2024-02", "2024-03", "2024-04"]

    def test_zero_length_policy_books_whole_premium(self):
        policies = [InsurancePolicy("i1", "golf", 250, "2024-05-10", "2024-05-10")]
        monthly = get_monthly_expenses([], [], policies)
        assert len(monthly) == 1
        assert monthly[0].insurance == 250

    def test_policies_without_premium_ignored(self):
        policies = [
            InsurancePolicy("i1", "golf", None, "2024-01-01", "2024-12-31"),
            InsurancePolicy("i2", "golf", 0, "2024-01-01", "2024-12-31"),
        ]
        assert get_monthly_expenses([], [], policies) == []

    def test_expiry_before_start_contributes_nothing(self):
        policies = [InsurancePolicy("i1", "golf", 500, "2024-06-01", "2024-01-01")]
        assert get_monthly_expenses([], [], policies) == []

    def test_accepts_date_objects(self):
        fuel_logs = [fuel("f1", date(2024, 7, 4), 1000, 40, cost=20)]
        monthly = get_monthly_expenses(fuel_logs, [], [])
        assert monthly[0].month == "2024-07"


class TestCalculateTotalCostOfOwnership:
    """Tests for calculate_total_cost_of_ownership."""

    def test_purchase_price_only(self, vehicle):
        tco = calculate_total_cost_of_ownership(
            vehicle, [], [], [], [], as_of=vehicle.purchase_date
        )
        assert tco.depreciation == 0
        assert tco.total == vehicle.purchase_price

    def test_sums_and_depreciation(self, vehicle):
        fuel_logs = [fuel("f1", "2021-01-01", 1000, 40, cost=70), fuel("f2", "2021-02-01", 1500, 40, cost=30)]
        records = [service("m1", "2021-03-01", 2000, MaintenanceCategory.OIL_CHANGE, 200)]
        policies = [
            InsurancePolicy("i1", "golf", 600, "2021-01-01", "2021-12-31"),
            InsurancePolicy("i2", "golf", None, "2022-01-01", "2022-12-31"),
        ]
        mods = [Modification("x1", "golf", 150)]

        tco = calculate_total_cost_of_ownership(
            vehicle, fuel_logs, records, policies, mods, as_of=date(2022, 1, 1)
        )

        expected_depreciation = 10000 * 0.1 * 731 / 365
        assert tco.purchase_price == 10000
        assert tco.total_fuel == 100
        assert tco.total_maintenance == 200
        assert tco.total_insurance == 600
        assert tco.total_modifications == 150
        assert tco.depreciation == pytest.approx(expected_depreciation)
        assert tco.total == pytest.approx(10000 + 100 + 200 + 600 + 150 - expected_depreciation)

    def test_as_of_accepts_datetime(self, vehicle):
        tco = calculate_total_cost_of_ownership(
            vehicle, [], [], [], [], as_of=datetime(2020, 12, 31)
        )
        assert tco.depreciation == pytest.approx(10000 * 0.1 * 365 / 365)


class TestGetExpenseSummary:
    def test_includes_purchase_price(self, vehicle, fuel_logs):
        records = [service("m1", "2024-02-10", 31300, MaintenanceCategory.OIL_CHANGE, 115)]
        summary = get_expense_summary(vehicle, fuel_logs, records)
        assert summary.total_fuel == pytest.approx(232.85)
        assert summary.total_maintenance == 115
        assert summary.total_spent == pytest.approx(10000 + 232.85 + 115)


# =============================================================================
# Checks and alerts
# =============================================================================


class TestValidateOdometer:
    """Tests for validate_odometer."""

    def test_lower_reading_is_flagged(self):
        check = validate_odometer(5, 10)
        assert check.valid is False
        assert check.message

    def test_higher_reading_is_valid(self):
        check = validate_odometer(15, 10)
        assert check.valid is True
        assert check.message is None

    def test_equal_reading_is_valid(self):
        assert validate_odometer(10, 10).valid is True


class TestShouldTriggerExpenseAlert:
    """Tests for should_trigger_expense_alert."""

    def test_needs_two_months(self):
        assert should_trigger_expense_alert([]).alert is False
        assert should_trigger_expense_alert(months(500)).alert is False

    def test_alert_when_twenty_percent_above_average(self):
        result = should_trigger_expense_alert(months(100, 100, 130))
        assert result.alert is True
        assert "€130.00" in result.message
        assert "€100.00" in result.message

    def test_exactly_twenty_percent_does_not_alert(self):
        result = should_trigger_expense_alert(months(100, 100, 120))
        assert result.alert is False
        assert result.message is None

    def test_two_months(self):
        assert should_trigger_expense_alert(months(100, 130)).alert is True

    def test_only_last_three_months_considered(self):
        """An expensive month four months back does not raise the average."""
        assert should_trigger_expense_alert(months(1000, 100, 100, 130)).alert is True

    def test_currency_symbol(self):
        result = should_trigger_expense_alert(months(100, 200), currency="$")
        assert "$200.00" in result.message


class TestSuggestNextService:
    """Tests for suggest_next_service."""

    def test_no_history_suggests_every_tabled_category(self):
        suggestions = suggest_next_service([], 5000)
        assert [s.category for s in suggestions] == list(SERVICE_INTERVALS)
        first = suggestions[0]
        assert first.category == "oil_change"
        assert first.suggested_mileage == 20000
        assert first.reason == "no previous service recorded"

    def test_due_within_lookahead(self):
        records = [service("m1", "2024-01-01", 10000, MaintenanceCategory.OIL_CHANGE)]
        suggestions = suggest_next_service(records, 24000)
        oil = [s for s in suggestions if s.category == MaintenanceCategory.OIL_CHANGE]
        assert len(oil) == 1
        assert oil[0].suggested_mileage == 25000
        assert oil[0].reason == "Due soon (last service at 10000 km)"

    def test_not_due_yet(self):
        records = [service("m1", "2024-01-01", 10000, MaintenanceCategory.OIL_CHANGE)]
        suggestions = suggest_next_service(records, 23999)
        assert MaintenanceCategory.OIL_CHANGE not in [s.category for s in suggestions]

    def test_last_service_is_highest_mileage(self):
        """Mileage, not date, decides which service was last."""
        records = [
            service("m1", "2024-06-01", 5000, MaintenanceCategory.OIL_CHANGE),
            service("m2", "2024-01-01", 10000, MaintenanceCategory.OIL_CHANGE),
        ]
        suggestions = suggest_next_service(records, 24500)
        oil = [s for s in suggestions if s.category == MaintenanceCategory.OIL_CHANGE]
        assert oil[0].suggested_mileage == 25000

    def test_untabled_categories_never_suggested(self):
        records = [service("m1", "2024-01-01", 10000, MaintenanceCategory.BATTERY)]
        categories = [s.category for s in suggest_next_service(records, 500000)]
        assert MaintenanceCategory.BATTERY not in categories
        assert MaintenanceCategory.TRANSMISSION not in categories
        assert MaintenanceCategory.OTHER not in categories

    def test_order_follows_interval_table(self):
        records = [
            service("m1", "2024-01-01", 0, MaintenanceCategory.COOLANT),
            service("m2", "2024-01-01", 0, MaintenanceCategory.OIL_CHANGE),
        ]
        categories = [s.category for s in suggest_next_service(records, 100000)]
        assert categories.index(MaintenanceCategory.OIL_CHANGE) < categories.index(
            MaintenanceCategory.COOLANT
        )


# =============================================================================
# Trips and reminders
# =============================================================================


class TestSummarizeTrips:
    def test_split_by_purpose(self):
        trips = [
            TripLog("t1", "golf", "2024-01-01", 120, TripPurpose.BUSINESS),
            TripLog("t2", "golf", "2024-01-02", 30, TripPurpose.PERSONAL),
            TripLog("t3", "golf", "2024-01-03", 80, TripPurpose.BUSINESS),
        ]
        summary = summarize_trips(trips)
        assert summary.business_distance == 200
        assert summary.personal_distance == 30
        assert summary.total_distance == 230
        assert summary.count == 3

    def test_empty(self):
        summary = summarize_trips([])
        assert summary.total_distance == 0
        assert summary.count == 0


class TestReminders:
    """Tests for sort_reminders and get_overdue_reminders."""

    @pytest.fixture
    def reminders(self):
        return [
            Reminder("r1", "golf", "Tyres", "2024-09-01"),
            Reminder("r2", "golf", "Inspection", "2024-03-01"),
            Reminder("r3", "golf", "Timing belt", "2025-06-01", due_mileage=120000),
            Reminder("r4", "golf", "Wipers", "2024-01-01", completed=True),
        ]

    def test_sort_by_due_date(self, reminders):
        assert [r.id for r in sort_reminders(reminders)] == ["r4", "r2", "r1", "r3"]

    def test_overdue_by_date(self, reminders):
        overdue = get_overdue_reminders(reminders, "2024-06-01")
        assert [r.id for r in overdue] == ["r2"]

    def test_due_date_on_reference_day_is_overdue(self, reminders):
        overdue = get_overdue_reminders(reminders, date(2024, 3, 1))
        assert [r.id for r in overdue] == ["r2"]

    def test_overdue_by_mileage(self, reminders):
        overdue = get_overdue_reminders(reminders, "2024-06-01", current_mileage=120000)
        assert [r.id for r in overdue] == ["r2", "r3"]

    def test_completed_never_overdue(self, reminders):
        overdue = get_overdue_reminders(reminders, "2030-01-01")
        assert "r4" not in [r.id for r in overdue]
