# ============================================
# Scan Service
# ============================================
"""
Scan upload, simulated analysis and report creation.

create_scan() runs the full pipeline for one uploaded file:

    validate -> upload image -> analyze -> store scan
             -> create report -> increment patient scan count

A failed image upload aborts with None. A failed report is logged and the
scan is still returned.
"""

import time
import logging
from typing import Any, Dict, List, Optional

from mediscan.analysis.anomalies import AnomalyGenerator, SimulatedAnomalyGenerator
from mediscan.analysis.images import validate_scan_image
from mediscan.models import SCAN_TYPES, Anomaly, Scan, generate_id
from mediscan.services.base import RecordService
from mediscan.services.demo import demo_scans
from mediscan.services.patients import PatientService
from mediscan.services.reports import ReportService
from mediscan.storage.local_cache import SCANS_KEY
from mediscan.storage.pin_store import PinResult
from mediscan.utils.crypto import utc_now_iso
from mediscan.validation import ValidationError


logger = logging.getLogger(__name__)


class ScanService(RecordService):
    """
    Args:
        patients: Patient service used for names and scan counts
        reports: Report service used to create a report per scan
        generator: Anomaly generator (simulated by default)
        **kwargs: api / cache / pin_store / pin_index, shared with the
                  default patient and report services
    """

    collection = SCANS_KEY
    endpoint = "/scans"
    id_prefix = "scan"
    record_type = Scan

    def __init__(
        self,
        patients: Optional[PatientService] = None,
        reports: Optional[ReportService] = None,
        generator: Optional[AnomalyGenerator] = None,
        **kwargs,
    ):
        super().__init__(**kwargs)
        shared = {
            "api": self.api,
            "cache": self.cache,
            "pin_store": self.pin_store,
            "pin_index": kwargs.get("pin_index"),
        }
        self.patients = patients or PatientService(**shared)
        self.reports = reports or ReportService(**shared)
        self.generator = generator or SimulatedAnomalyGenerator()

    def demo_records(self) -> List[Dict[str, Any]]:
        return demo_scans()

    def upload_image(
        self,
        content: bytes,
        filename: str,
        patient_id: str,
        scan_type: str,
        mime_type: Optional[str] = None,
    ) -> PinResult:
        metadata = {
            "patientId": patient_id,
            "scanType": scan_type,
            "scanDate": utc_now_iso(),
            "fileType": "medical_scan",
        }
        if mime_type:
            metadata["mimeType"] = mime_type
        return self.pin_store.upload_file(content, filename, metadata)

    def create_scan(
        self,
        content: bytes,
        filename: str,
        patient_id: str,
        scan_type: str,
    ) -> Optional[Scan]:
        """
        Upload and analyze one scan file.

        Raises:
            ValidationError: Unknown scan type or unacceptable file

        Returns:
            The stored scan, or None if the image upload failed
        """
        if scan_type not in SCAN_TYPES:
            raise ValidationError({"scanType": f"Unknown scan type: {scan_type}"})

        validation = validate_scan_image(content, filename)
        if not validation.is_valid:
            raise ValidationError({"file": validation.error_message})

        upload = self.upload_image(content, filename, patient_id, scan_type, validation.mime_type)
        if not upload.success:
            logger.error(f"Failed to upload image {filename}: {upload.error}")
            return None

        start = time.time()
        anomalies = self.generator.analyze(scan_type)
        logger.info(f"Analyzed {filename} in {time.time() - start:.1f}s")

        scan = self.create(Scan(
            id=generate_id(self.id_prefix),
            patient_id=patient_id,
            type=scan_type,
            scan_date=utc_now_iso(),
            image=self.pin_store.gateway_url(upload.cid),
            image_cid=upload.cid,
            anomalies=anomalies,
            status="completed",
        ))

        patient = self.patients.get_by_id(patient_id)
        patient_name = patient.name if patient else "Unknown Patient"
        if self.reports.create_from_scan(scan, patient_name) is None:
            logger.warning(f"Report creation failed for scan {scan.id}")

        self.patients.record_scan(patient_id)
        return scan

    def update_anomalies(self, scan_id: str, anomalies: List[Anomaly]) -> Optional[Scan]:
        """Pin a new anomaly list and store it on the scan."""
        result = self.pin_store.upload_json(
            {"anomalies": [a.to_dict() for a in anomalies]},
            f"scan_anomalies_{scan_id}",
        )
        if not result.success:
            logger.error(f"Failed to upload anomalies for scan {scan_id}: {result.error}")
            return None

        return self.update(scan_id, {
            "anomalies": list(anomalies),
            "anomalies_cid": result.cid,
            "status": "completed",
        })

    def attach_report_pdf(self, scan_id: str, pdf: bytes) -> Optional[Scan]:
        """Pin a report PDF for the scan and mark the scan reviewed."""
        result = self.pin_store.upload_file(pdf, f"scan_report_{scan_id}.pdf", {
            "scanId": scan_id,
            "fileType": "medical_report",
        })
        if not result.success:
            logger.error(f"Failed to upload report PDF for scan {scan_id}: {result.error}")
            return None

        return self.update(scan_id, {"report_cid": result.cid, "status": "reviewed"})
