# ============================================
# Batch Scan Upload
# ============================================
"""
Process several scan uploads concurrently.

Each item creates a new patient from the entered contact details and runs
the scan pipeline for its file. Items are independent: a failed item does
not stop or roll back the others, and every item gets its own outcome.

PER ITEM:
=========
    1. Validate contact details and the file (no I/O)
    2. Create the patient (totalScans starts at 0)
    3. create_scan() -> upload, analyze, store, report, totalScans += 1
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from mediscan.analysis.images import validate_scan_image
from mediscan.models import SCAN_TYPES, Patient, Scan
from mediscan.services.patients import PatientService
from mediscan.services.scans import ScanService
from mediscan.utils.crypto import utc_now_iso
from mediscan.validation import PatientDetails, ValidationError, validate_patient_details


logger = logging.getLogger(__name__)

DEFAULT_AGE = 25
DEFAULT_GENDER = "male"


@dataclass
class UploadItem:
    content: bytes
    filename: str
    scan_type: str
    patient: PatientDetails


@dataclass
class UploadOutcome:
    filename: str
    success: bool
    patient: Optional[Patient] = None
    scan: Optional[Scan] = None
    error: Optional[str] = None

    def to_dict(self):
        return {
            "filename": self.filename,
            "success": self.success,
            "patient": self.patient.to_dict() if self.patient else None,
            "scan": self.scan.to_dict() if self.scan else None,
            "error": self.error,
        }


@dataclass
class BatchResult:
    outcomes: List[UploadOutcome] = field(default_factory=list)

    @property
    def succeeded(self) -> List[UploadOutcome]:
        return [o for o in self.outcomes if o.success]

    @property
    def failed(self) -> List[UploadOutcome]:
        return [o for o in self.outcomes if not o.success]

    @property
    def all_succeeded(self) -> bool:
        return bool(self.outcomes) and not self.failed

    @property
    def any_succeeded(self) -> bool:
        return bool(self.succeeded)


def _validate_item(item: UploadItem) -> Optional[str]:
    errors = validate_patient_details(item.patient)
    if item.scan_type not in SCAN_TYPES:
        errors["scanType"] = f"Unknown scan type: {item.scan_type}"
    image = validate_scan_image(item.content, item.filename)
    if not image.is_valid:
        errors["file"] = image.error_message
    if errors:
        return str(ValidationError(errors))
    return None


class BatchUploader:
    """
    Args:
        scans: ScanService running the per-file pipeline
        patients: PatientService creating patients (default scans.patients)
        max_workers: Thread pool size
    """

    def __init__(self, scans: ScanService, patients: Optional[PatientService] = None, max_workers: int = 4):
        self.scans = scans
        self.patients = patients or scans.patients
        self.max_workers = max_workers

    def process_item(self, item: UploadItem) -> UploadOutcome:
        error = _validate_item(item)
        if error:
            logger.warning(f"Rejected {item.filename}: {error}")
            return UploadOutcome(filename=item.filename, success=False, error=error)

        details = item.patient
        patient = self.patients.create(Patient(
            name=details.name.strip(),
            age=details.age or DEFAULT_AGE,
            gender=details.gender or DEFAULT_GENDER,
            email=details.email.strip(),
            phone=details.phone.strip(),
            address=details.address,
            last_visit=utc_now_iso(),
            total_scans=0,
            risk_level="low",
            conditions=[],
        ))
        if patient is None:
            return UploadOutcome(filename=item.filename, success=False, error="Failed to create patient")

        try:
            scan = self.scans.create_scan(item.content, item.filename, patient.id, item.scan_type)
        except ValidationError as e:
            return UploadOutcome(filename=item.filename, success=False, patient=patient, error=str(e))
        if scan is None:
            return UploadOutcome(
                filename=item.filename,
                success=False,
                patient=patient,
                error="Failed to upload scan image",
            )

        refreshed = self.patients.get_by_id(patient.id) or patient
        logger.info(f"Processed {item.filename} for patient {patient.id}")
        return UploadOutcome(filename=item.filename, success=True, patient=refreshed, scan=scan)

    def upload(
        self,
        items: List[UploadItem],
        progress: Optional[Callable[[UploadOutcome], None]] = None,
    ) -> BatchResult:
        """
        Process all items in a thread pool.

        Args:
            items: Files with their contact details
            progress: Called once per finished item (e.g. a tqdm update)

        Returns:
            BatchResult with outcomes in input order
        """
        outcomes: List[Optional[UploadOutcome]] = [None] * len(items)

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = {executor.submit(self.process_item, item): i for i, item in enumerate(items)}

            for future in as_completed(futures):
                i = futures[future]
                try:
                    outcome = future.result()
                except Exception as e:
                    logger.error(f"Error processing {items[i].filename}: {e}")
                    outcome = UploadOutcome(filename=items[i].filename, success=False, error=str(e))
                outcomes[i] = outcome
                if progress:
                    progress(outcome)

        result = BatchResult(outcomes=outcomes)
        logger.info(f"Batch upload: {len(result.succeeded)}/{len(items)} succeeded")
        return result


def upload_batch(scans: ScanService, items: List[UploadItem], max_workers: int = 4) -> BatchResult:
    return BatchUploader(scans, max_workers=max_workers).upload(items)
