# ============================================
# Record Models
# ============================================
"""
Plain serializable records for patients, scans, anomalies and reports.

Records never hold live references to each other. Relationships are weak
id fields (Scan.patient_id, Report.scan_id, Report.patient_id) resolved by
scanning a collection. Report.patient_name is a snapshot taken when the
report is created and is not kept in sync with Patient.name.

Wire format (remote API, local cache, cloud store) uses camelCase keys;
to_dict()/from_dict() convert between the two.
"""

import random
import string
import time
from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional


SCAN_TYPES = ("brain", "heart", "lungs", "liver")
RISK_LEVELS = ("low", "medium", "high")
GENDERS = ("male", "female")
SCAN_STATUSES = ("processing", "completed", "reviewed")
REPORT_STATUSES = ("pending", "reviewed", "shared")

# Display names used by analytics and demo reports
SCAN_TYPE_LABELS = {
    "brain": "Brain MRI",
    "heart": "Cardiac CT",
    "lungs": "Lung CT",
    "liver": "Liver MRI",
}


def generate_id(prefix: str) -> str:
    """Generate an id like scan_1718000000000_k3j9x0a1b."""
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f"{prefix}_{int(time.time() * 1000)}_{suffix}"


class _Record:
    """
    Shared wire conversion for record dataclasses.

    Subclasses declare WIRE_KEYS mapping attribute name -> wire key for
    attributes whose wire key differs from the camelCase of the name.
    """

    WIRE_KEYS: Dict[str, str] = {}

    @classmethod
    def _wire_key(cls, name: str) -> str:
        if name in cls.WIRE_KEYS:
            return cls.WIRE_KEYS[name]
        head, *rest = name.split("_")
        return head + "".join(part.capitalize() for part in rest)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the camelCase wire shape, omitting unset optional ids."""
        data = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None:
                continue
            if isinstance(value, list):
                value = [v.to_dict() if isinstance(v, _Record) else v for v in value]
            data[self._wire_key(f.name)] = value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]):
        """Build a record from its wire shape, ignoring unknown keys."""
        kwargs = {}
        for f in fields(cls):
            key = cls._wire_key(f.name)
            if key in data:
                kwargs[f.name] = data[key]
        return cls(**kwargs)

    def merged(self, changes: Dict[str, Any]):
        """Return a copy with wire-shaped partial changes applied."""
        current = self.to_dict()
        current.update(changes)
        return type(self).from_dict(current)


@dataclass
class Patient(_Record):
    """A patient with contact details and a risk summary."""

    WIRE_KEYS = {"detail_cid": "ipfsHash"}

    id: str = ""
    name: str = ""
    age: int = 0
    gender: str = "male"
    email: str = ""
    phone: str = ""
    address: str = ""
    last_visit: str = ""
    total_scans: int = 0
    risk_level: str = "low"
    conditions: List[str] = field(default_factory=list)
    detail_cid: Optional[str] = None


@dataclass
class Anomaly(_Record):
    """
    A simulated finding owned by a Scan.

    Attributes:
        severity: low/medium/high (wire key "type")
        confidence: 0.0-1.0, independent of severity
        x, y: image coordinates in [0, 512) (wire key "coordinates")
    """

    WIRE_KEYS = {"severity": "type"}

    id: str = ""
    severity: str = "low"
    title: str = ""
    description: str = ""
    location: str = ""
    confidence: float = 0.0
    x: int = 0
    y: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.severity,
            "title": self.title,
            "description": self.description,
            "location": self.location,
            "confidence": self.confidence,
            "coordinates": {"x": self.x, "y": self.y},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Anomaly":
        coordinates = data.get("coordinates") or {}
        return cls(
            id=data.get("id", ""),
            severity=data.get("type", "low"),
            title=data.get("title", ""),
            description=data.get("description", ""),
            location=data.get("location", ""),
            confidence=float(data.get("confidence", 0.0)),
            x=int(coordinates.get("x", 0)),
            y=int(coordinates.get("y", 0)),
        )


@dataclass
class Scan(_Record):
    """One uploaded scan image and its simulated analysis."""

    WIRE_KEYS = {
        "image_cid": "imageIpfsHash",
        "anomalies_cid": "anomaliesIpfsHash",
        "report_cid": "reportIpfsHash",
    }

    id: str = ""
    patient_id: str = ""
    type: str = "brain"
    scan_date: str = ""
    image: str = ""
    image_cid: Optional[str] = None
    anomalies: List[Anomaly] = field(default_factory=list)
    anomalies_cid: Optional[str] = None
    report_cid: Optional[str] = None
    status: str = "completed"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Scan":
        scan = super().from_dict(data)
        scan.anomalies = [
            a if isinstance(a, Anomaly) else Anomaly.from_dict(a)
            for a in (scan.anomalies or [])
        ]
        return scan


@dataclass
class Report(_Record):
    """Human-readable summary of a Scan."""

    WIRE_KEYS = {"pdf_cid": "pdfIpfsHash", "metadata_cid": "metadataIpfsHash"}

    id: str = ""
    patient_id: str = ""
    patient_name: str = ""
    scan_id: str = ""
    scan_type: str = ""
    date: str = ""
    doctor: str = ""
    status: str = "pending"
    risk_level: str = "low"
    findings: str = ""
    recommendations: str = ""
    pdf_cid: Optional[str] = None
    metadata_cid: Optional[str] = None


__all__ = [
    "SCAN_TYPES",
    "RISK_LEVELS",
    "GENDERS",
    "SCAN_STATUSES",
    "REPORT_STATUSES",
    "SCAN_TYPE_LABELS",
    "generate_id",
    "Patient",
    "Anomaly",
    "Scan",
    "Report",
]
