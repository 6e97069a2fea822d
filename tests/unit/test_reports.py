# ============================================
# Unit Tests for the Report Service
# ============================================
"""
Tests for report creation, sharing, PDF retrieval and filtering.
"""

import pytest

from mediscan.models import Anomaly, Report, Scan
from mediscan.services.reports import ReportService, risk_counts, search_reports
from mediscan.storage.encrypted import get_decrypted, get_decrypted_file
from mediscan.storage.pin_store import PinResult


def make_scan(*severities):
    return Scan(
        id="scan_1",
        patient_id="p1",
        type="brain",
        scan_date="2024-03-01T10:00:00.000Z",
        anomalies=[
            Anomaly(id=f"a{i}", severity=s, title="Finding", location="frontal lobe", confidence=0.8)
            for i, s in enumerate(severities)
        ],
    )


@pytest.fixture
def offline(api_down, cache, pin_store):
    return ReportService(api=api_down, cache=cache, pin_store=pin_store, pin_index={})


@pytest.fixture
def online(api, cache, pin_store):
    return ReportService(api=api, cache=cache, pin_store=pin_store, pin_index={})


class TestReportReads:
    """Tests for report resolution."""

    def test_demo_reports_when_api_fails(self, offline):
        """Verify a failing API with an empty cache still yields reports."""
        resolved = offline.resolve_all()

        assert resolved.is_demo
        assert len(resolved.value) == 3
        assert {r.patient_name for r in offline.get_all()} == {"John Doe", "Sarah Johnson", "Michael Chen"}

    def test_cached_reports_preferred_over_demo(self, offline, cache):
        cache.write("reports", [Report(id="r1", patient_id="p1", patient_name="Jane").to_dict()])

        assert [r.id for r in offline.get_all()] == ["r1"]


class TestCreateFromScan:
    """Tests for report generation."""

    def test_risk_follows_highest_severity(self, offline):
        """Verify risk level is derived from anomaly severities."""
        assert offline.create_from_scan(make_scan("low", "high"), "Jane").risk_level == "high"
        assert offline.create_from_scan(make_scan("low", "medium"), "Jane").risk_level == "medium"
        assert offline.create_from_scan(make_scan(), "Jane").risk_level == "low"

    def test_generated_text(self, offline):
        report = offline.create_from_scan(make_scan("medium"), "Jane")

        assert report.findings.startswith("brain scan reveals the following findings:")
        assert "80.0% confidence" in report.findings
        assert report.recommendations.startswith("Follow-up imaging in 3-6 months")

    def test_explicit_text_overrides_generated(self, offline):
        report = offline.create_from_scan(
            make_scan("high"), "Jane", doctor="Dr. Who", findings="Custom", recommendations="Rest",
        )

        assert report.doctor == "Dr. Who"
        assert report.findings == "Custom"
        assert report.recommendations == "Rest"
        assert report.risk_level == "high"

    def test_pdf_and_metadata_pinned_encrypted(self, offline, pin_store):
        """Verify the PDF and metadata document are uploaded and decryptable."""
        report = offline.create_from_scan(make_scan("low"), "Jane")

        pdf = get_decrypted_file(pin_store, report.pdf_cid).data
        assert pdf.content.startswith(b"%PDF")
        assert pdf.mime_type == "application/pdf"

        metadata = get_decrypted(pin_store, report.metadata_cid).data
        assert metadata["scanId"] == "scan_1"
        assert metadata["pdfIpfsHash"] == report.pdf_cid
        assert len(metadata["anomalies"]) == 1

    def test_supplied_pdf_is_used(self, offline, pin_store):
        report = offline.create_from_scan(make_scan(), "Jane", pdf=b"%PDF-1.4 supplied")

        assert get_decrypted_file(pin_store, report.pdf_cid).data.content == b"%PDF-1.4 supplied"

    def test_upload_failure_aborts(self, api_down, cache, failing_pin_store):
        service = ReportService(api=api_down, cache=cache, pin_store=failing_pin_store, pin_index={})

        assert service.create_from_scan(make_scan(), "Jane") is None
        assert cache.read("reports") is None

    def test_aborted_create_leaves_caller_report_untouched(self, offline, pin_store, monkeypatch):
        """Verify a failed metadata upload does not attach cids to the caller's report."""
        report = Report(patient_id="p1", patient_name="Jane", scan_id="scan_1", scan_type="brain")
        monkeypatch.setattr(pin_store, "upload_json", lambda document, name: PinResult.failure("down"))

        assert offline.create(report) is None
        assert report.id == ""
        assert report.pdf_cid is None
        assert report.metadata_cid is None


class TestReportActions:
    """Tests for update, share and PDF download."""

    def test_update_with_new_pdf(self, offline, pin_store):
        report = offline.create_from_scan(make_scan(), "Jane")

        updated = offline.update(report.id, {"status": "pending"}, pdf=b"%PDF-1.4 v2")

        assert updated.status == "pending"
        assert updated.pdf_cid != report.pdf_cid
        assert offline.download_pdf(updated) == b"%PDF-1.4 v2"

    def test_share_marks_shared_only_on_success(self, online, offline, cache):
        """Verify the local status changes only after the remote accepts the share."""
        report = online.create_from_scan(make_scan(), "Jane")

        assert offline.share(report.id, "doctor@example.com") is False
        assert cache.find("reports", report.id)["status"] == "reviewed"

        assert online.share(report.id, "doctor@example.com") is True
        assert cache.find("reports", report.id)["status"] == "shared"

    def test_share_posts_recipient(self, online, remote):
        report = online.create_from_scan(make_scan(), "Jane")

        online.share(report.id, "doctor@example.com")

        method, url, payload = remote.calls[-1]
        assert method == "POST"
        assert url.endswith(f"/reports/{report.id}/share")
        assert payload == {"recipientEmail": "doctor@example.com"}

    def test_download_pdf_renders_when_not_pinned(self, offline):
        """Verify demo reports with unknown cids still produce a PDF."""
        report = offline.get_by_id("2")

        assert offline.download_pdf(report).startswith(b"%PDF")

    def test_pdf_url(self, offline):
        assert offline.pdf_url("bafyabc") == "https://gateway.test/ipfs/bafyabc"


class TestReportQueries:
    """Tests for search and risk counts."""

    def test_search_filters(self, offline):
        reports = offline.get_all()

        assert [r.id for r in search_reports(reports, "michael")] == ["3"]
        assert [r.id for r in search_reports(reports, scan_type="lungs")] == ["2"]
        assert [r.id for r in search_reports(reports, risk="low")] == ["1"]

    def test_risk_counts(self, offline):
        assert risk_counts(offline.get_all()) == {"low": 1, "medium": 1, "high": 1}
