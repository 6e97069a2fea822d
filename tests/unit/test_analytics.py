# ============================================
# Unit Tests for Analytics
# ============================================
"""
Tests for dashboard aggregates over fixed datasets.
"""

from datetime import datetime, timedelta, timezone

import pytest

from mediscan.models import Anomaly, Patient, Scan
from mediscan.services.analytics import (
    AnalyticsService,
    calculate_change,
    compute_analytics,
    default_analytics,
    trend_for,
)


NOW = datetime(2024, 3, 10, 12, 0, tzinfo=timezone.utc)


def scan_at(days_ago, scan_type="brain", status="completed", anomalies=0):
    return Scan(
        id=f"s-{days_ago}-{scan_type}",
        patient_id="p1",
        type=scan_type,
        scan_date=(NOW - timedelta(days=days_ago)).isoformat().replace("+00:00", "Z"),
        status=status,
        anomalies=[Anomaly(id=str(i)) for i in range(anomalies)],
    )


def stat(result, title):
    return next(s for s in result["stats"] if s["title"] == title)


class TestCalculateChange:
    """Tests for percent change strings."""

    @pytest.mark.parametrize("current,previous,expected", [
        (0, 0, "+0.0%"),
        (5, 0, "+100%"),
        (15, 10, "+50.0%"),
        (5, 10, "-50.0%"),
        (10, 10, "+0.0%"),
        (1, 3, "-66.7%"),
    ])
    def test_change_strings(self, current, previous, expected):
        assert calculate_change(current, previous) == expected

    def test_trend(self):
        assert trend_for(3, 1) == "up"
        assert trend_for(1, 3) == "down"
        assert trend_for(2, 2) == "neutral"


class TestComputeAnalytics:
    """Tests for the pure aggregation."""

    def test_current_and_previous_windows(self):
        """Verify scans split into the current and previous 7-day windows."""
        scans = [
            scan_at(1, status="reviewed", anomalies=2),
            scan_at(2, anomalies=1),
            scan_at(3, status="reviewed"),
            scan_at(9, status="reviewed", anomalies=1),
            scan_at(30),
        ]

        result = compute_analytics(scans, [Patient(id="p1"), Patient(id="p2")], "7d", now=NOW)

        assert stat(result, "Total Scans") == {
            "title": "Total Scans", "value": "3", "change": "+200.0%", "trend": "up",
        }
        assert stat(result, "Reports Generated")["value"] == "2"
        assert stat(result, "Reports Generated")["change"] == "+100.0%"
        assert stat(result, "Active Patients") == {
            "title": "Active Patients", "value": "2", "change": "+0.0%", "trend": "neutral",
        }
        assert stat(result, "Anomalies Detected")["value"] == "3"
        assert stat(result, "Anomalies Detected")["change"] == "+200.0%"

    def test_distribution_percentages(self):
        """Verify half-up rounding and per-type counts."""
        scans = [scan_at(1, "brain")] * 1 + [scan_at(1, "lungs")] * 7

        distribution = {d["scanType"]: d for d in compute_analytics(scans, [], "7d", now=NOW)["scanDistribution"]}

        assert distribution["brain"] == {"type": "Brain MRI", "scanType": "brain", "count": 1, "percentage": 13}
        assert distribution["lungs"]["percentage"] == 88
        assert distribution["heart"]["count"] == 0

    def test_distribution_sums_close_to_hundred(self):
        scans = [scan_at(1, "brain"), scan_at(1, "heart"), scan_at(1, "lungs")]

        total = sum(d["percentage"] for d in compute_analytics(scans, [], "7d", now=NOW)["scanDistribution"])

        assert 97 <= total <= 103

    @pytest.mark.parametrize("time_range,days", [("7d", 7), ("30d", 30), ("90d", 90), ("1y", 365)])
    def test_time_series_length(self, time_range, days):
        series = compute_analytics([], [], time_range, now=NOW)["timeSeriesData"]

        assert len(series) == days
        assert series[-1]["date"] == "2024-03-10"
        assert [row["date"] for row in series] == sorted(row["date"] for row in series)

    def test_time_series_buckets(self):
        """Verify scans and anomalies land on their UTC calendar day."""
        scans = [scan_at(0, anomalies=2), scan_at(0), scan_at(2, anomalies=1)]

        series = compute_analytics(scans, [], "7d", now=NOW)["timeSeriesData"]
        by_date = {row["date"]: row for row in series}

        assert by_date["2024-03-10"] == {"date": "2024-03-10", "day": "Sun", "scans": 2, "anomalies": 2}
        assert by_date["2024-03-08"]["scans"] == 1
        assert by_date["2024-03-09"]["scans"] == 0

    def test_stats_and_series_cover_the_same_days(self):
        """Verify every scan counted in the stats has a series bucket."""
        scans = [
            Scan(id="edge", type="brain", scan_date="2024-03-04T00:00:00Z"),
            Scan(id="before", type="brain", scan_date="2024-03-03T21:36:00Z"),
        ]

        result = compute_analytics(scans, [], "7d", now=NOW)

        assert stat(result, "Total Scans")["value"] == "1"
        assert sum(row["scans"] for row in result["timeSeriesData"]) == 1
        assert result["timeSeriesData"][0] == {"date": "2024-03-04", "day": "Mon", "scans": 1, "anomalies": 0}

    def test_unknown_range_falls_back_to_week(self):
        result = compute_analytics([], [], "5y", now=NOW)

        assert result["timeRange"] == "7d"
        assert len(result["timeSeriesData"]) == 7

    def test_unparseable_dates_ignored(self):
        scans = [Scan(id="x", type="brain", scan_date="yesterday"), scan_at(1)]

        assert stat(compute_analytics(scans, [], "7d", now=NOW), "Total Scans")["value"] == "1"

    def test_default_analytics_is_zeroed(self):
        result = default_analytics(now=NOW)

        assert all(s["value"] == "0" for s in result["stats"])
        assert all(d["percentage"] == 0 for d in result["scanDistribution"])
        assert len(result["timeSeriesData"]) == 7


class TestAnalyticsService:
    """Tests for the service wrapper."""

    def test_nothing_stored_returns_default(self, offline_services):
        """Verify demo data never feeds the dashboard figures."""
        first = offline_services.analytics.get_analytics("30d")
        second = offline_services.analytics.get_analytics("30d")

        assert first["timeRange"] == "30d"
        assert all(s["value"] == "0" for s in first["stats"])
        assert len(first["timeSeriesData"]) == 30
        assert first == second

    def test_uses_stored_collections(self, offline_services, png_bytes):
        patient = offline_services.patients.create(Patient(name="Jane Roe", email="jane@example.com"))
        offline_services.scans.create_scan(png_bytes, "a.png", patient.id, "lungs")

        result = offline_services.analytics.get_analytics("7d")

        assert stat(result, "Total Scans")["value"] == "1"
        assert stat(result, "Active Patients")["value"] == "1"
        assert {d["scanType"]: d["count"] for d in result["scanDistribution"]}["lungs"] == 1

    def test_failure_returns_default(self, offline_services, monkeypatch):
        def boom():
            raise RuntimeError("corrupt data")

        monkeypatch.setattr(offline_services.scans, "resolve_all", boom)

        result = offline_services.analytics.get_analytics("30d")

        assert result["timeRange"] == "30d"
        assert all(s["value"] == "0" for s in result["stats"])

    def test_patient_analytics_offline(self, offline_services):
        assert offline_services.analytics.get_patient_analytics("1") is None
