# ============================================
# Analysis Module
# ============================================
"""
Simulated scan analysis and report generation.

Components:
    - anomalies: AnomalyGenerator interface and the random simulated engine
    - synthesis: Risk level, findings and recommendations for a scan
    - pdf: Fixed-layout PDF rendering of a report
    - images: Scan upload validation

IMPORTANT: The anomaly engine does not inspect images. Its output is random
and must NOT be used for clinical decisions.
"""

from .anomalies import AnomalyGenerator, SimulatedAnomalyGenerator
from .synthesis import Synthesis, synthesize, risk_level_for
from .pdf import render_report_pdf
from .images import validate_scan_image

__all__ = [
    "AnomalyGenerator",
    "SimulatedAnomalyGenerator",
    "Synthesis",
    "synthesize",
    "risk_level_for",
    "render_report_pdf",
    "validate_scan_image",
]
