from datetime import datetime, timedelta, timezone
from decimal import Decimal
from types import SimpleNamespace

import pytest

from storefront.domain.enums import GroupBy, Period
from storefront.services.report_service import (
    build_sales_report,
    bucket_key,
    parse_group_by,
    parse_period,
    period_start,
)

NOW = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "period, days",
    [("7d", 7), ("30d", 30), ("90d", 90)],
)
def test_period_start_goes_back_n_days(period, days):
    assert period_start(period, NOW) == NOW - timedelta(days=days)


def test_period_start_one_year():
    assert period_start("1y", NOW) == datetime(2023, 3, 15, 12, 0, tzinfo=timezone.utc)


def test_period_start_leap_day_falls_back_to_feb_28():
    leap = datetime(2024, 2, 29, 8, 0, tzinfo=timezone.utc)
    assert period_start(Period.YEAR, leap) == datetime(2023, 2, 28, 8, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize("value", [None, "", "2w", "forever"])
def test_unknown_period_means_30_days(value):
    assert parse_period(value) == Period.MONTH
    assert period_start(value, NOW) == NOW - timedelta(days=30)


@pytest.mark.parametrize(
    "created_at, group_by, key",
    [
        (datetime(2024, 3, 9, 23, 59), "day", "2024-03-09"),
        (datetime(2024, 3, 1), "week", "2024-W1"),
        (datetime(2024, 3, 7), "week", "2024-W1"),
        (datetime(2024, 3, 8), "week", "2024-W2"),
        (datetime(2024, 3, 31), "week", "2024-W5"),
        (datetime(2024, 3, 9), "month", "2024-03"),
        (datetime(2024, 11, 2), "month", "2024-11"),
    ],
)
def test_bucket_key(created_at, group_by, key):
    assert bucket_key(created_at, group_by) == key


def test_unknown_group_by_means_day():
    assert parse_group_by("hour") == GroupBy.DAY
    assert bucket_key(datetime(2024, 3, 9), "hour") == "2024-03-09"


def _order(created_at, total):
    return SimpleNamespace(created_at=created_at, total=Decimal(total))


def test_sales_report_buckets_and_summary():
    orders = [
        _order(datetime(2024, 3, 1, 9), "100.00"),
        _order(datetime(2024, 3, 1, 18), "50.50"),
        _order(datetime(2024, 3, 3, 10), "200.00"),
    ]

    report = build_sales_report(orders, "day")

    assert [(b.date, b.total, b.count) for b in report.report_data] == [
        ("2024-03-01", Decimal("150.50"), 2),
        ("2024-03-03", Decimal("200.00"), 1),
    ]
    assert report.summary.total_revenue == Decimal("350.50")
    assert report.summary.total_orders == 3
    assert report.summary.total_revenue == sum(b.total for b in report.report_data)
    assert report.summary.total_orders == sum(b.count for b in report.report_data)


def test_sales_report_by_week_merges_days():
    orders = [
        _order(datetime(2024, 3, 2), "10"),
        _order(datetime(2024, 3, 6), "20"),
        _order(datetime(2024, 3, 9), "30"),
    ]

    report = build_sales_report(orders, GroupBy.WEEK)

    assert [(b.date, b.count) for b in report.report_data] == [("2024-W1", 2), ("2024-W2", 1)]
    assert report.summary.average_order_value == Decimal("20")


def test_sales_report_without_orders():
    report = build_sales_report([], "month")

    assert report.report_data == []
    assert report.summary.total_revenue == Decimal("0")
    assert report.summary.total_orders == 0
    assert report.summary.average_order_value == Decimal("0")
