# ============================================
# Demo Datasets
# ============================================
"""
Demo records served when no other source has data.

Patients and reports are fixed. Scans are random and regenerated on every
call. None of these are ever written back to the local cache.
"""

import random
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from mediscan.analysis.anomalies import SimulatedAnomalyGenerator
from mediscan.models import SCAN_TYPES


DEMO_SCAN_COUNT = 12
DEMO_SCAN_DAYS = 30


def demo_patients() -> List[Dict[str, Any]]:
    return [
        {
            "id": "1",
            "name": "John Doe",
            "email": "john.doe@example.com",
            "age": 45,
            "gender": "male",
            "phone": "+1-555-0123",
            "address": "123 Main St, New York, NY 10001",
            "lastVisit": "2024-01-20T09:15:00Z",
            "totalScans": 5,
            "riskLevel": "medium",
            "conditions": ["Hypertension"],
            "ipfsHash": "QmPatient1Hash",
        },
        {
            "id": "2",
            "name": "Sarah Johnson",
            "email": "sarah.johnson@example.com",
            "age": 32,
            "gender": "female",
            "phone": "+1-555-0125",
            "address": "456 Oak Ave, Los Angeles, CA 90210",
            "lastVisit": "2024-02-15T11:00:00Z",
            "totalScans": 3,
            "riskLevel": "low",
            "conditions": [],
            "ipfsHash": "QmPatient2Hash",
        },
        {
            "id": "3",
            "name": "Michael Chen",
            "email": "michael.chen@example.com",
            "age": 58,
            "gender": "male",
            "phone": "+1-555-0127",
            "address": "789 Pine St, Chicago, IL 60601",
            "lastVisit": "2024-02-10T14:30:00Z",
            "totalScans": 8,
            "riskLevel": "high",
            "conditions": ["Diabetes", "Hypertension"],
            "ipfsHash": "QmPatient3Hash",
        },
        {
            "id": "4",
            "name": "Emily Davis",
            "email": "emily.davis@example.com",
            "age": 28,
            "gender": "female",
            "phone": "+1-555-0128",
            "address": "321 Elm St, Miami, FL 33101",
            "lastVisit": "2024-01-25T16:45:00Z",
            "totalScans": 2,
            "riskLevel": "low",
            "conditions": [],
            "ipfsHash": "QmPatient4Hash",
        },
    ]


def demo_reports() -> List[Dict[str, Any]]:
    return [
        {
            "id": "1",
            "patientId": "1",
            "patientName": "John Doe",
            "scanId": "scan1",
            "scanType": "brain",
            "date": "2024-02-20T10:30:00Z",
            "doctor": "Dr. Smith",
            "status": "reviewed",
            "riskLevel": "low",
            "findings": "Normal brain structure observed. No abnormalities detected.",
            "recommendations": "Continue regular check-ups.",
            "pdfIpfsHash": "QmReport1PDFHash",
            "metadataIpfsHash": "QmReport1MetadataHash",
        },
        {
            "id": "2",
            "patientId": "2",
            "patientName": "Sarah Johnson",
            "scanId": "scan2",
            "scanType": "lungs",
            "date": "2024-02-19T14:45:00Z",
            "doctor": "Dr. Johnson",
            "status": "pending",
            "riskLevel": "medium",
            "findings": "Small nodule detected in upper right lobe. Requires follow-up.",
            "recommendations": "Follow-up CT scan in 3 months. Consider consultation with pulmonologist.",
            "pdfIpfsHash": "QmReport2PDFHash",
            "metadataIpfsHash": "QmReport2MetadataHash",
        },
        {
            "id": "3",
            "patientId": "3",
            "patientName": "Michael Chen",
            "scanId": "scan3",
            "scanType": "heart",
            "date": "2024-02-18T09:15:00Z",
            "doctor": "Dr. Chen",
            "status": "shared",
            "riskLevel": "high",
            "findings": "Mild coronary artery calcification observed.",
            "recommendations": "Lifestyle modifications and statin therapy.",
            "pdfIpfsHash": "QmReport3PDFHash",
            "metadataIpfsHash": "QmReport3MetadataHash",
        },
    ]


def demo_scans(
    rng: Optional[random.Random] = None,
    now: Optional[datetime] = None,
    count: int = DEMO_SCAN_COUNT,
) -> List[Dict[str, Any]]:
    """
    Random scans for the demo patients spread over the last 30 days.

    Args:
        rng: Random source (a fresh unseeded one by default)
        now: Reference time (default current UTC time)
        count: Number of scans
    """
    rng = rng or random.Random()
    now = now or datetime.now(timezone.utc)
    generator = SimulatedAnomalyGenerator(rng=rng, delay=0)
    patient_ids = [p["id"] for p in demo_patients()]

    scans = []
    for i in range(count):
        scan_type = rng.choice(SCAN_TYPES)
        scan_date = now - timedelta(seconds=rng.uniform(0, DEMO_SCAN_DAYS * 86400))
        scans.append({
            "id": f"demo_scan_{i + 1}",
            "patientId": rng.choice(patient_ids),
            "type": scan_type,
            "scanDate": scan_date.isoformat().replace("+00:00", "Z"),
            "image": "",
            "anomalies": [a.to_dict() for a in generator.analyze(scan_type)],
            "status": rng.choice(("completed", "reviewed")),
        })

    scans.sort(key=lambda s: s["scanDate"])
    return scans
