# ============================================
# Services Module
# ============================================
"""
Record services built on the resolution chain and the local-first write path.

Components:
    - resolution: Ordered read sources (remote, pinned, cache, demo)
    - base: Generic record service (read chain + write path)
    - patients / scans / reports: Entity services
    - analytics: Dashboard aggregates
    - uploads: Concurrent batch scan upload
    - settings: Admin security overview
"""

from dataclasses import dataclass
from typing import Dict, Optional

from mediscan.api.client import RecordApiClient
from mediscan.storage.local_cache import LocalCache
from mediscan.storage.pin_store import PinStore, get_pin_store

from .resolution import Resolved, ResolutionChain, RecordQuery
from .patients import PatientService
from .reports import ReportService
from .scans import ScanService
from .analytics import AnalyticsService, compute_analytics, calculate_change
from .uploads import BatchUploader, UploadItem, UploadOutcome, BatchResult
from .settings import security_overview


@dataclass
class Services:
    patients: PatientService
    scans: ScanService
    reports: ReportService
    analytics: AnalyticsService
    uploader: BatchUploader


def build_services(
    api: Optional[RecordApiClient] = None,
    cache: Optional[LocalCache] = None,
    pin_store: Optional[PinStore] = None,
    pin_index: Optional[Dict[str, str]] = None,
    generator=None,
    max_workers: int = 4,
) -> Services:
    """Wire all services around one API client, cache and pin store."""
    shared = {
        "api": api or RecordApiClient(),
        "cache": cache or LocalCache(),
        "pin_store": pin_store or get_pin_store(),
        "pin_index": pin_index,
    }
    patients = PatientService(**shared)
    reports = ReportService(**shared)
    scans = ScanService(patients=patients, reports=reports, generator=generator, **shared)
    return Services(
        patients=patients,
        scans=scans,
        reports=reports,
        analytics=AnalyticsService(scans, patients),
        uploader=BatchUploader(scans, patients, max_workers=max_workers),
    )


__all__ = [
    "Resolved",
    "ResolutionChain",
    "RecordQuery",
    "PatientService",
    "ReportService",
    "ScanService",
    "AnalyticsService",
    "compute_analytics",
    "calculate_change",
    "BatchUploader",
    "UploadItem",
    "UploadOutcome",
    "BatchResult",
    "security_overview",
    "Services",
    "build_services",
]
