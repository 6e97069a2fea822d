# ============================================
# Simulated Anomaly Detection
# ============================================
"""
Generate simulated "AI" anomalies for a scan.

IMPORTANT: There is no model here. The image content never influences the
output; anomalies are drawn at random from canned tables. The generator sits
behind the AnomalyGenerator interface so a real model can replace it without
touching callers.

Algorithm per call:
    1. anomaly count uniform in {0, 1, 2, 3}
    2. per anomaly: severity uniform in {low, medium, high}
    3. title/description looked up by (scan type, severity)
    4. location uniform from the scan type's anatomical regions
    5. confidence uniform in [0.7, 1.0]
    6. coordinates uniform integers in [0, 512) x [0, 512)
"""

import time
import random
import logging
from typing import List, Optional

from mediscan.models import Anomaly, RISK_LEVELS, SCAN_TYPES
from mediscan.utils.config import get_analysis_delay


logger = logging.getLogger(__name__)

MAX_ANOMALIES = 3
MIN_CONFIDENCE = 0.7
IMAGE_EXTENT = 512

ANOMALY_TITLES = {
    "brain": {
        "low": "Minor brain tissue variation",
        "medium": "Possible lesion detected",
        "high": "Significant abnormality found",
    },
    "heart": {
        "low": "Mild cardiac irregularity",
        "medium": "Coronary artery narrowing",
        "high": "Critical cardiac anomaly",
    },
    "lungs": {
        "low": "Small lung nodule",
        "medium": "Pulmonary infiltrate",
        "high": "Suspicious mass detected",
    },
    "liver": {
        "low": "Minor hepatic cyst",
        "medium": "Liver lesion identified",
        "high": "Significant hepatic abnormality",
    },
}

ANOMALY_DESCRIPTIONS = {
    "brain": {
        "low": "Small area of altered signal intensity, likely benign variation.",
        "medium": "Focal lesion requiring further evaluation and follow-up.",
        "high": "Large abnormality with characteristics requiring immediate attention.",
    },
    "heart": {
        "low": "Minor variation in cardiac structure within normal limits.",
        "medium": "Moderate stenosis detected, clinical correlation recommended.",
        "high": "Severe abnormality requiring urgent cardiology consultation.",
    },
    "lungs": {
        "low": "Small pulmonary nodule, routine follow-up recommended.",
        "medium": "Infiltrative changes, consider infection or inflammation.",
        "high": "Large mass with concerning characteristics, biopsy recommended.",
    },
    "liver": {
        "low": "Simple hepatic cyst, no immediate concern.",
        "medium": "Focal liver lesion, further characterization needed.",
        "high": "Complex liver abnormality requiring specialist evaluation.",
    },
}

ANOMALY_LOCATIONS = {
    "brain": ["frontal lobe", "parietal lobe", "temporal lobe", "occipital lobe", "cerebellum"],
    "heart": ["left ventricle", "right ventricle", "left atrium", "right atrium", "coronary arteries"],
    "lungs": ["upper right lobe", "middle right lobe", "lower right lobe", "upper left lobe", "lower left lobe"],
    "liver": ["right lobe", "left lobe", "quadrate lobe", "caudate lobe"],
}


class AnomalyGenerator:
    """Produces anomalies for a scan of a given type."""

    def analyze(self, scan_type: str) -> List[Anomaly]:
        raise NotImplementedError


class SimulatedAnomalyGenerator(AnomalyGenerator):
    """
    Random anomaly generator with an artificial processing delay.

    Args:
        rng: Random source; pass random.Random(seed) for reproducible output
        delay: Seconds to block per analysis (default MEDISCAN_ANALYSIS_DELAY)
    """

    def __init__(self, rng: Optional[random.Random] = None, delay: Optional[float] = None):
        self.rng = rng or random.Random()
        self.delay = get_analysis_delay() if delay is None else delay

    def analyze(self, scan_type: str) -> List[Anomaly]:
        if scan_type not in SCAN_TYPES:
            raise ValueError(f"Unknown scan type: {scan_type}")

        if self.delay > 0:
            time.sleep(self.delay)

        stamp = int(time.time() * 1000)
        count = self.rng.randint(0, MAX_ANOMALIES)
        anomalies = []

        for i in range(count):
            severity = self.rng.choice(RISK_LEVELS)
            anomalies.append(Anomaly(
                id=f"anomaly_{stamp}_{i}",
                severity=severity,
                title=ANOMALY_TITLES[scan_type][severity],
                description=ANOMALY_DESCRIPTIONS[scan_type][severity],
                location=self.rng.choice(ANOMALY_LOCATIONS[scan_type]),
                confidence=MIN_CONFIDENCE + self.rng.random() * (1.0 - MIN_CONFIDENCE),
                x=self.rng.randrange(IMAGE_EXTENT),
                y=self.rng.randrange(IMAGE_EXTENT),
            ))

        logger.info(f"Simulated analysis of {scan_type} scan: {count} anomalies")
        return anomalies
