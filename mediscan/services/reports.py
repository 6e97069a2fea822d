# ============================================
# Report Service
# ============================================
"""
Reports generated from scans.

Creating a report uploads two encrypted payloads to the pin store before
the record is written:
    1. the rendered PDF (file envelope) -> Report.pdf_cid
    2. a metadata document with scan details -> Report.metadata_cid
Either upload failing aborts creation.
"""

import time
import logging
from dataclasses import replace
from typing import Any, Dict, List, Optional

from mediscan.analysis.pdf import render_report_pdf
from mediscan.analysis.synthesis import synthesize
from mediscan.api.client import RemoteUnavailable
from mediscan.models import RISK_LEVELS, Anomaly, Report, Scan, generate_id
from mediscan.services.base import RecordService
from mediscan.services.demo import demo_reports
from mediscan.storage.encrypted import (
    get_decrypted_file,
    upload_encrypted_file,
    upload_encrypted_json,
)
from mediscan.storage.local_cache import REPORTS_KEY
from mediscan.utils.crypto import utc_now_iso


logger = logging.getLogger(__name__)

DEFAULT_DOCTOR = "Dr. AI Assistant"


class ReportService(RecordService):
    collection = REPORTS_KEY
    endpoint = "/reports"
    id_prefix = "report"
    record_type = Report

    def demo_records(self) -> List[Dict[str, Any]]:
        return demo_reports()

    def _upload_pdf(self, report: Report, pdf: bytes) -> Optional[str]:
        result = upload_encrypted_file(
            self.pin_store,
            pdf,
            f"report_{report.scan_id}_{int(time.time() * 1000)}.pdf",
            "application/pdf",
            {
                "patientId": report.patient_id,
                "scanId": report.scan_id,
                "fileType": "medical_report",
            },
        )
        if not result.success:
            logger.error(f"Failed to upload report PDF for scan {report.scan_id}: {result.error}")
            return None
        return result.cid

    def _upload_metadata(self, report: Report, anomalies: List[Anomaly]) -> Optional[str]:
        metadata = {
            "scanId": report.scan_id,
            "patientId": report.patient_id,
            "scanType": report.scan_type,
            "date": report.date,
            "anomalies": [a.to_dict() for a in anomalies],
            "findings": report.findings,
            "recommendations": report.recommendations,
            "riskLevel": report.risk_level,
            "doctor": report.doctor,
            "pdfIpfsHash": report.pdf_cid,
        }
        result = upload_encrypted_json(self.pin_store, metadata, f"report_metadata_{report.scan_id}")
        if not result.success:
            logger.error(f"Failed to upload report metadata for scan {report.scan_id}: {result.error}")
            return None
        return result.cid

    def create(self, report: Report, pdf: Optional[bytes] = None, anomalies: Optional[List[Anomaly]] = None):
        """
        Upload the report PDF and metadata, then write the record.

        Args:
            report: Report to store; the stored copy carries pdf_cid and metadata_cid
            pdf: PDF bytes (rendered from the report when omitted)
            anomalies: Scan anomalies to include in the metadata document

        Returns:
            The stored report, or None if an upload failed
        """
        if not report.id:
            report = replace(report, id=generate_id(self.id_prefix))

        pdf_cid = self._upload_pdf(report, pdf if pdf is not None else render_report_pdf(report))
        if pdf_cid is None:
            return None
        report = replace(report, pdf_cid=pdf_cid)

        metadata_cid = self._upload_metadata(report, anomalies or [])
        if metadata_cid is None:
            return None
        return super().create(replace(report, metadata_cid=metadata_cid))

    def create_from_scan(
        self,
        scan: Scan,
        patient_name: str,
        doctor: str = DEFAULT_DOCTOR,
        findings: Optional[str] = None,
        recommendations: Optional[str] = None,
        pdf: Optional[bytes] = None,
        status: str = "reviewed",
    ) -> Optional[Report]:
        """
        Build a report for a scan and store it.

        Risk level always comes from the scan's anomalies. Findings and
        recommendations default to the generated text.
        """
        synthesis = synthesize(scan)
        report = Report(
            id=generate_id(self.id_prefix),
            patient_id=scan.patient_id,
            patient_name=patient_name,
            scan_id=scan.id,
            scan_type=scan.type,
            date=utc_now_iso(),
            doctor=doctor,
            status=status,
            risk_level=synthesis.risk_level,
            findings=findings or synthesis.findings,
            recommendations=recommendations or synthesis.recommendations,
        )
        return self.create(report, pdf=pdf, anomalies=scan.anomalies)

    def update(self, record_id: str, changes: Dict[str, Any], pdf: Optional[bytes] = None):
        """Update a report, replacing its PDF when new bytes are given."""
        if pdf is not None:
            current = self.get_by_id(record_id)
            if current is None:
                logger.error(f"Error updating reports/{record_id}: not found")
                return None
            pdf_cid = self._upload_pdf(current, pdf)
            if pdf_cid is None:
                return None
            changes = {**changes, "pdf_cid": pdf_cid}

        return super().update(record_id, changes)

    def share(self, record_id: str, recipient_email: str) -> bool:
        """
        Ask the remote API to share a report.

        The local status becomes "shared" only after the remote call succeeds.
        """
        try:
            self.api.post(f"{self.endpoint}/{record_id}/share", {"recipientEmail": recipient_email})
        except RemoteUnavailable as e:
            logger.error(f"Error sharing report {record_id}: {e}")
            return False

        self.cache.update_where(self.collection, record_id, {"status": "shared"})
        logger.info(f"Shared report {record_id} with {recipient_email}")
        return True

    def pdf_url(self, cid: str) -> str:
        return self.pin_store.gateway_url(cid)

    def download_pdf(self, report: Report) -> bytes:
        """
        PDF bytes for a report.

        Decrypts the pinned PDF when available, otherwise renders the report
        again from its stored fields.
        """
        if report.pdf_cid:
            result = get_decrypted_file(self.pin_store, report.pdf_cid)
            if result.success:
                return result.data.content
            logger.warning(f"Could not retrieve PDF {report.pdf_cid}, rendering report {report.id}")
        return render_report_pdf(report)

    def search(self, term: str = "", scan_type: str = "all", risk: str = "all") -> List[Report]:
        return search_reports(self.get_all(), term, scan_type, risk)


def search_reports(
    reports: List[Report],
    term: str = "",
    scan_type: str = "all",
    risk: str = "all",
) -> List[Report]:
    """Case-insensitive patient name/id search with scan type and risk filters."""
    term = term.strip().lower()
    matches = []
    for report in reports:
        if term and not (
            term in report.patient_name.lower()
            or term in report.patient_id.lower()
            or term in report.id.lower()
        ):
            continue
        if scan_type != "all" and report.scan_type != scan_type:
            continue
        if risk != "all" and report.risk_level != risk:
            continue
        matches.append(report)
    return matches


def risk_counts(reports: List[Report]) -> Dict[str, int]:
    """Number of reports per risk level."""
    counts = {level: 0 for level in RISK_LEVELS}
    for report in reports:
        if report.risk_level in counts:
            counts[report.risk_level] += 1
    return counts
