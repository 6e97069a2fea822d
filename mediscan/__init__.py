# ============================================
# MediScan Data Layer - Source Package
# ============================================
"""
Main source package for the MediScan data layer.

Modules:
    - models: Patient, Scan, Anomaly and Report records
    - storage: Local cache and pinned-content cloud storage
    - api: Remote record API client
    - analysis: Simulated anomaly detection, report synthesis, PDF rendering
    - services: Record services, analytics and batch upload
    - utils: Configuration and encryption helpers
"""

__version__ = "0.1.0"
__author__ = "MediScan Team"
