# ============================================
# Report Synthesis
# ============================================
"""
Derive risk level, findings and recommendations from a scan's anomalies.

Risk level and recommendations share one tie-break order:
    any high anomaly   -> "high"
    any medium anomaly -> "medium"
    otherwise          -> "low"
"""

from dataclasses import dataclass
from typing import List

from mediscan.models import Anomaly, Scan


NORMAL_RECOMMENDATION = (
    "Continue with routine follow-up examinations as clinically indicated. "
    "Maintain current health regimen."
)
HIGH_RISK_RECOMMENDATION = (
    "Immediate consultation with specialist recommended. Consider additional "
    "diagnostic imaging and clinical correlation. Follow-up within 1-2 weeks."
)
MEDIUM_RISK_RECOMMENDATION = (
    "Follow-up imaging in 3-6 months recommended. Clinical correlation advised. "
    "Monitor for symptom progression."
)
LOW_RISK_RECOMMENDATION = (
    "Routine follow-up in 6-12 months. Continue current treatment if applicable. "
    "Monitor for any symptom changes."
)


@dataclass
class Synthesis:
    risk_level: str
    findings: str
    recommendations: str


def risk_level_for(anomalies: List[Anomaly]) -> str:
    """Highest severity present, or "low" when there are none."""
    severities = {a.severity for a in anomalies}
    if "high" in severities:
        return "high"
    if "medium" in severities:
        return "medium"
    return "low"


def generate_findings(scan: Scan) -> str:
    if not scan.anomalies:
        return (
            f"{scan.type} scan shows normal structure with no significant "
            "abnormalities detected. All major anatomical features appear "
            "within normal limits."
        )

    descriptions = ". ".join(
        f"{a.severity} severity anomaly detected in {a.location} "
        f"with {a.confidence * 100:.1f}% confidence"
        for a in scan.anomalies
    )
    return (
        f"{scan.type} scan reveals the following findings: {descriptions}. "
        "Further evaluation recommended."
    )


def generate_recommendations(scan: Scan) -> str:
    if not scan.anomalies:
        return NORMAL_RECOMMENDATION
    return {
        "high": HIGH_RISK_RECOMMENDATION,
        "medium": MEDIUM_RISK_RECOMMENDATION,
        "low": LOW_RISK_RECOMMENDATION,
    }[risk_level_for(scan.anomalies)]


def synthesize(scan: Scan) -> Synthesis:
    """Build the report summary for a scan."""
    return Synthesis(
        risk_level=risk_level_for(scan.anomalies),
        findings=generate_findings(scan),
        recommendations=generate_recommendations(scan),
    )
