# ============================================
# Analytics Service
# ============================================
"""
Dashboard aggregates over scans and patients.

WINDOWS:
========
    7d, 30d, 90d, 1y (unknown values fall back to 7d)

A window of N days covers the N UTC calendar days ending today. The
"current" period runs from midnight N - 1 days ago up to now and the
"previous" period is the N days before it. Stat cards compare the two. The
time series has exactly N rows, one per day of the current period, oldest
first, so every scan counted in the stats lands in a bucket.

compute_analytics() is pure. AnalyticsService gathers the stored collections
(demo data is ignored) and returns default_analytics() when nothing is
stored or anything goes wrong.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd

from mediscan.api.client import RecordApiClient, RemoteUnavailable
from mediscan.models import SCAN_TYPE_LABELS, SCAN_TYPES, Patient, Scan


logger = logging.getLogger(__name__)

TIME_RANGES = {"7d": 7, "30d": 30, "90d": 90, "1y": 365}
DEFAULT_TIME_RANGE = "7d"

SCAN_COLUMNS = ["scanDate", "type", "status", "anomalies"]


def calculate_change(current: float, previous: float) -> str:
    """
    Signed percent change with one decimal, e.g. "+12.5%" or "-3.0%".

    A zero previous value gives "+0.0%" when current is also zero and
    "+100%" otherwise.
    """
    if previous == 0:
        return "+0.0%" if current == 0 else "+100%"
    change = (current - previous) / previous * 100
    sign = "+" if change >= 0 else ""
    return f"{sign}{change:.1f}%"


def trend_for(current: float, previous: float) -> str:
    if current > previous:
        return "up"
    if current < previous:
        return "down"
    return "neutral"


def _now(now: Optional[datetime]) -> pd.Timestamp:
    stamp = pd.Timestamp(now) if now is not None else pd.Timestamp.now(tz="UTC")
    if stamp.tzinfo is None:
        stamp = stamp.tz_localize("UTC")
    return stamp.tz_convert("UTC")


def _scan_frame(scans: List[Scan]) -> pd.DataFrame:
    """One row per scan with a UTC timestamp and anomaly count."""
    rows = [
        {
            "scanDate": scan.scan_date,
            "type": scan.type,
            "status": scan.status,
            "anomalies": len(scan.anomalies),
        }
        for scan in scans
    ]
    df = pd.DataFrame(rows, columns=SCAN_COLUMNS)
    df["scanDate"] = pd.to_datetime(df["scanDate"], utc=True, errors="coerce", format="ISO8601")
    df["anomalies"] = df["anomalies"].astype(int)
    return df.dropna(subset=["scanDate"])


def _stat(title: str, current: int, previous: int) -> Dict[str, Any]:
    return {
        "title": title,
        "value": f"{current:,}",
        "change": calculate_change(current, previous),
        "trend": trend_for(current, previous),
    }


def _stats(current: pd.DataFrame, previous: pd.DataFrame, patients: List[Patient]) -> List[Dict[str, Any]]:
    return [
        _stat("Total Scans", len(current), len(previous)),
        _stat(
            "Reports Generated",
            int((current["status"] == "reviewed").sum()),
            int((previous["status"] == "reviewed").sum()),
        ),
        {
            "title": "Active Patients",
            "value": f"{len(patients):,}",
            "change": "+0.0%",
            "trend": "neutral",
        },
        _stat(
            "Anomalies Detected",
            int(current["anomalies"].sum()),
            int(previous["anomalies"].sum()),
        ),
    ]


def _distribution(current: pd.DataFrame) -> List[Dict[str, Any]]:
    counts = current["type"].value_counts().reindex(list(SCAN_TYPES), fill_value=0).to_numpy()
    total = counts.sum()
    # Half-up rounding, so 12.5 -> 13
    percentages = np.floor(counts / total * 100 + 0.5) if total else np.zeros(len(counts))

    return [
        {
            "type": SCAN_TYPE_LABELS[scan_type],
            "scanType": scan_type,
            "count": int(count),
            "percentage": int(percentage),
        }
        for scan_type, count, percentage in zip(SCAN_TYPES, counts, percentages)
    ]


def _time_series(current: pd.DataFrame, now: pd.Timestamp, days: int) -> List[Dict[str, Any]]:
    index = pd.date_range(end=now.normalize(), periods=days, freq="D")

    if current.empty:
        daily = pd.DataFrame({"scans": 0, "anomalies": 0}, index=index)
    else:
        daily = (
            current.assign(day=current["scanDate"].dt.normalize())
            .groupby("day")
            .agg(scans=("type", "size"), anomalies=("anomalies", "sum"))
            .reindex(index, fill_value=0)
        )

    return [
        {
            "date": day.strftime("%Y-%m-%d"),
            "day": day.strftime("%a"),
            "scans": int(row["scans"]),
            "anomalies": int(row["anomalies"]),
        }
        for day, row in daily.iterrows()
    ]


def compute_analytics(
    scans: List[Scan],
    patients: List[Patient],
    time_range: str = DEFAULT_TIME_RANGE,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Build the analytics payload.

    Args:
        scans: All scans
        patients: All patients
        time_range: One of TIME_RANGES
        now: Reference time (default current UTC time)

    Returns:
        Dict with timeRange, stats, scanDistribution and timeSeriesData
    """
    if time_range not in TIME_RANGES:
        logger.warning(f"Unknown time range {time_range}, using {DEFAULT_TIME_RANGE}")
        time_range = DEFAULT_TIME_RANGE
    days = TIME_RANGES[time_range]

    now = _now(now)
    window = pd.Timedelta(days=days)
    start = now.normalize() - pd.Timedelta(days=days - 1)

    df = _scan_frame(scans)
    current = df[(df["scanDate"] >= start) & (df["scanDate"] <= now)]
    previous = df[(df["scanDate"] >= start - window) & (df["scanDate"] < start)]

    return {
        "timeRange": time_range,
        "stats": _stats(current, previous, patients),
        "scanDistribution": _distribution(current),
        "timeSeriesData": _time_series(current, now, days),
    }


def default_analytics(time_range: str = DEFAULT_TIME_RANGE, now: Optional[datetime] = None) -> Dict[str, Any]:
    """Zeroed analytics payload for a window (7d when unknown)."""
    return compute_analytics([], [], time_range, now=now)


class AnalyticsService:
    """
    Args:
        scans: ScanService providing scans
        patients: PatientService providing patients
        api: Remote API for per-patient analytics
    """

    def __init__(self, scans, patients, api: Optional[RecordApiClient] = None):
        self.scans = scans
        self.patients = patients
        self.api = api or scans.api

    @staticmethod
    def _stored(service) -> list:
        """Records from a real source; demo data counts as nothing stored."""
        resolved = service.resolve_all()
        if resolved.source in ("demo", "none"):
            return []
        return service.to_records(resolved.value)

    def get_analytics(self, time_range: str = DEFAULT_TIME_RANGE) -> Dict[str, Any]:
        try:
            scans = self._stored(self.scans)
            patients = self._stored(self.patients)
            if not scans and not patients:
                logger.info("No stored scans or patients, returning default analytics")
                return default_analytics(time_range)
            return compute_analytics(scans, patients, time_range)
        except Exception as e:
            logger.error(f"Error computing analytics: {e}")
            return default_analytics(time_range)

    def get_patient_analytics(self, patient_id: str) -> Optional[Dict[str, Any]]:
        try:
            return self.api.get(f"/patients/{patient_id}/analytics")
        except RemoteUnavailable as e:
            logger.error(f"Error fetching analytics for patient {patient_id}: {e}")
            return None
