# ============================================
# Patient Service
# ============================================
"""
Patient records plus their encrypted detail blob.

Each patient created through this service owns an encrypted JSON document
in the pin store holding {medicalHistory, address, notes, createdAt}. Its
content id is kept in Patient.detail_cid (wire key "ipfsHash").
"""

import time
import logging
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from mediscan.api.client import RemoteUnavailable
from mediscan.models import Patient
from mediscan.services.base import RecordService
from mediscan.services.demo import demo_patients
from mediscan.storage.encrypted import get_decrypted, upload_encrypted_json
from mediscan.storage.local_cache import PATIENTS_KEY
from mediscan.utils.crypto import utc_now_iso


logger = logging.getLogger(__name__)

RECENT_VISIT_DAYS = 30


def _parse_time(value: str) -> Optional[datetime]:
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (AttributeError, ValueError):
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


class PatientService(RecordService):
    collection = PATIENTS_KEY
    endpoint = "/patients"
    id_prefix = "patient"
    record_type = Patient

    def demo_records(self) -> List[Dict[str, Any]]:
        return demo_patients()

    def _before_create(self, patient: Patient) -> Optional[Patient]:
        sensitive = {
            "medicalHistory": list(patient.conditions),
            "address": patient.address,
            "notes": "",
            "createdAt": utc_now_iso(),
        }
        result = upload_encrypted_json(self.pin_store, sensitive, f"patient_{int(time.time() * 1000)}")
        if not result.success:
            logger.error(f"Failed to upload patient details for {patient.name}: {result.error}")
            return None

        return replace(patient, detail_cid=result.cid)

    def _before_update(self, current: Patient, updated: Patient, changes: Dict[str, Any]) -> Patient:
        if not current.detail_cid or not ({"conditions", "address"} & set(changes)):
            return updated

        existing = get_decrypted(self.pin_store, current.detail_cid)
        if not existing.success or not isinstance(existing.data, dict):
            logger.warning(f"Could not read details for patient {current.id}, keeping {current.detail_cid}")
            return updated

        details = dict(existing.data)
        if "conditions" in changes:
            details["medicalHistory"] = list(updated.conditions)
        if "address" in changes:
            details["address"] = updated.address
        details["updatedAt"] = utc_now_iso()

        result = upload_encrypted_json(self.pin_store, details, f"patient_update_{int(time.time() * 1000)}")
        if not result.success:
            logger.warning(f"Could not refresh details for patient {current.id}: {result.error}")
            return updated
        return replace(updated, detail_cid=result.cid)

    def record_scan(self, patient_id: str) -> Optional[Patient]:
        """
        Increment totalScans and set lastVisit to now.

        The bump is PUT to the remote API and mirrored into the cache. With
        the API unavailable it is applied to the cached copy only; a patient
        only known remotely is copied into the cache first.
        """
        current = self.get_by_id(patient_id)
        if current is None:
            logger.warning(f"Cannot record scan for unknown patient {patient_id}")
            return None

        bumped = replace(current, total_scans=current.total_scans + 1, last_visit=utc_now_iso())
        try:
            remote = self.api.put(f"{self.endpoint}/{patient_id}", bumped.to_dict())
        except RemoteUnavailable as e:
            logger.warning(f"API unavailable, scan count for patient {patient_id} stored locally only: {e}")
            return self._bump_cached(bumped)

        stored = bumped.merged(remote) if isinstance(remote, dict) else bumped
        self.cache.upsert(self.collection, stored.to_dict())
        return stored

    def _bump_cached(self, bumped: Patient) -> Patient:
        def bump(record: Dict[str, Any]) -> Dict[str, Any]:
            return {
                **record,
                "totalScans": int(record.get("totalScans") or 0) + 1,
                "lastVisit": bumped.last_visit,
            }

        stored = self.cache.modify(self.collection, bumped.id, bump)
        if stored is None:
            stored = self.cache.upsert(self.collection, bumped.to_dict())
        return Patient.from_dict(stored)

    def search(self, term: str = "", gender: str = "all", risk: str = "all") -> List[Patient]:
        return search_patients(self.get_all(), term, gender, risk)

    def summary(self) -> Dict[str, int]:
        return patient_summary(self.get_all())


def search_patients(
    patients: List[Patient],
    term: str = "",
    gender: str = "all",
    risk: str = "all",
) -> List[Patient]:
    """Case-insensitive name/email/id search with gender and risk filters."""
    term = term.strip().lower()
    matches = []
    for patient in patients:
        if term and not (
            term in patient.name.lower()
            or term in patient.email.lower()
            or term in patient.id.lower()
        ):
            continue
        if gender != "all" and patient.gender != gender:
            continue
        if risk != "all" and patient.risk_level != risk:
            continue
        matches.append(patient)
    return matches


def patient_summary(patients: List[Patient], now: Optional[datetime] = None) -> Dict[str, int]:
    """Headline counts for the patient list."""
    now = now or datetime.now(timezone.utc)
    cutoff = now - timedelta(days=RECENT_VISIT_DAYS)

    recent = 0
    for patient in patients:
        visited = _parse_time(patient.last_visit)
        if visited is not None and visited >= cutoff:
            recent += 1

    return {
        "totalPatients": len(patients),
        "highRisk": sum(1 for p in patients if p.risk_level == "high"),
        "recentVisits": recent,
        "totalScans": sum(p.total_scans for p in patients),
    }
