import os
import re
import uuid
import pytest
from datetime import date
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from telehealth.core.config import settings
from telehealth.core.exceptions import AuthorizationError, NotFoundError, StorageError, ValidationError
from telehealth.domain.reports.models import Report, ReportStatus
from telehealth.domain.reports.service import ReportService
from telehealth.services.report_pdf import render_medical_report
from telehealth.domain.auth.models import UserRole
from tests.factories import FIXED_NOW, auth_headers, caller_for, make_user


@pytest.fixture
def reports_dir(tmp_path, monkeypatch):
    """Point report storage at a temporary directory."""
    target = tmp_path / "reports"
    monkeypatch.setattr(settings, "REPORTS_DIR", str(target))
    return target


@pytest.fixture
def service(db_session: Session) -> ReportService:
    return ReportService(db_session)


def create(service, caller, patient, **overrides):
    data = {
        "patient_id": patient.id,
        "report_type": "Blood Test",
        "report_date": date(2030, 1, 8),
        "results": "Hemoglobin 13.5 g/dL",
        "recommendations": "Repeat in six months",
        "notes": None,
    }
    data.update(overrides)
    return service.create_report(caller, now=FIXED_NOW, **data)


@pytest.mark.unit
@pytest.mark.reports
class TestReportPdf:

    def test_renders_pdf_document(self):
        content = render_medical_report(
            patient_name="John Smith",
            report_type="X-Ray",
            report_date=date(2030, 1, 8),
            results="No fracture",
            notes="Dose 5 \u03bcg twice daily"
        )
        assert content.startswith(b"%PDF")
        assert content.rstrip().endswith(b"%%EOF")


@pytest.mark.integration
@pytest.mark.reports
class TestReportService:
    """Test report creation and access."""

    def test_create_stores_pdf(self, db_session, service, provider, patient, reports_dir):
        report = create(service, caller_for(provider), patient)

        assert report.status == ReportStatus.PENDING
        assert report.provider_id == provider.id
        assert re.fullmatch(r"report_\d+_[0-9a-f]{8}\.pdf", os.path.basename(report.pdf_path))
        with open(report.pdf_path, "rb") as f:
            assert f.read(4) == b"%PDF"
        assert os.path.dirname(report.pdf_path) == str(reports_dir)

    @pytest.mark.parametrize("field,override", [
        ("patient_id", {"patient_id": None}),
        ("type", {"report_type": "  "}),
        ("date", {"report_date": None}),
        ("results", {"results": ""}),
    ])
    def test_required_fields(self, db_session, service, provider, patient, reports_dir, field, override):
        with pytest.raises(ValidationError) as exc_info:
            create(service, caller_for(provider), patient, **override)
        assert exc_info.value.field == field
        assert db_session.query(Report).count() == 0

    def test_unknown_patient(self, service, provider, patient, reports_dir):
        with pytest.raises(NotFoundError):
            create(service, caller_for(provider), patient, patient_id=uuid.uuid4())

    def test_only_providers_create(self, service, patient_user, patient, reports_dir):
        with pytest.raises(AuthorizationError):
            create(service, caller_for(patient_user), patient)

    def test_file_failure_writes_no_row(self, db_session, service, provider, patient, tmp_path, monkeypatch):
        """Test an unwritable report directory surfaces StorageError and stores nothing."""
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        monkeypatch.setattr(settings, "REPORTS_DIR", str(blocker / "reports"))

        with pytest.raises(StorageError) as exc_info:
            create(service, caller_for(provider), patient)
        assert exc_info.value.error_code == "STORAGE_ERROR"
        assert db_session.query(Report).count() == 0

    def test_visibility(self, service, provider, other_provider, patient_user, patient, admin_user, reports_dir):
        report = create(service, caller_for(provider), patient)

        assert service.get_report(caller_for(patient_user), report.id).id == report.id
        assert service.get_report(caller_for(admin_user), report.id).id == report.id
        with pytest.raises(NotFoundError):
            service.get_report(caller_for(other_provider), report.id)

    def test_listings(self, service, provider, other_provider, patient_user, patient, reports_dir):
        create(service, caller_for(provider), patient)
        create(service, caller_for(provider), patient, report_type="MRI", report_date=date(2030, 1, 9))
        create(service, caller_for(other_provider), patient)

        mine, total = service.list_provider_reports(caller_for(provider))
        assert total == 2
        assert [r.type for r in mine] == ["MRI", "Blood Test"]

        own, own_total = service.list_patient_reports(caller_for(patient_user))
        assert own_total == 3


@pytest.mark.integration
@pytest.mark.reports
class TestReportStats:
    """Test report counts by status and type."""

    def test_no_reports(self, service, provider, patient_user, patient):
        stats = service.get_provider_report_stats(caller_for(provider))
        assert stats == {
            "total": 0, "pending": 0, "completed": 0, "reviewed": 0,
            "type_breakdown": [], "latest": [],
        }

        own = service.get_patient_report_stats(caller_for(patient_user))
        assert own["total"] == 0
        assert own["pending"] == own["completed"] == own["reviewed"] == 0
        assert own["latest"] is None

    def test_patient_without_record(self, service, db_session):
        account = make_user(db_session, UserRole.PATIENT, "No Record")
        stats = service.get_patient_report_stats(caller_for(account))
        assert stats["total"] == 0
        assert stats["latest"] is None

    def test_provider_stats(self, db_session, service, provider, other_provider, patient, reports_dir):
        caller = caller_for(provider)
        blood = create(service, caller, patient)
        create(service, caller, patient, report_date=date(2030, 1, 6))
        mri = create(service, caller, patient, report_type="MRI", report_date=date(2030, 1, 9))
        create(service, caller_for(other_provider), patient, report_type="X-Ray")

        blood.status = ReportStatus.COMPLETED
        mri.status = ReportStatus.REVIEWED
        db_session.commit()

        stats = service.get_provider_report_stats(caller)
        assert (stats["total"], stats["pending"], stats["completed"], stats["reviewed"]) == (3, 1, 1, 1)
        assert stats["type_breakdown"] == [{"type": "Blood Test", "count": 2}, {"type": "MRI", "count": 1}]
        assert [r["type"] for r in stats["latest"]] == ["MRI", "Blood Test", "Blood Test"]
        assert stats["latest"][0]["patient_name"] == "John Smith"

    def test_latest_capped_at_five(self, service, provider, patient, reports_dir):
        for day in range(1, 8):
            create(service, caller_for(provider), patient, report_date=date(2030, 1, day))

        stats = service.get_provider_report_stats(caller_for(provider))
        assert stats["total"] == 7
        assert [r["date"] for r in stats["latest"]] == [date(2030, 1, day) for day in range(7, 2, -1)]

    def test_patient_stats(self, service, provider, patient_user, patient, reports_dir):
        create(service, caller_for(provider), patient)
        create(service, caller_for(provider), patient, report_type="ECG", report_date=date(2030, 1, 9))

        stats = service.get_patient_report_stats(caller_for(patient_user))
        assert stats["total"] == 2
        assert stats["pending"] == 2
        assert stats["latest"]["type"] == "ECG"
        assert stats["latest"]["provider_name"] == "Dr. Gregory House"


@pytest.mark.integration
@pytest.mark.reports
class TestReportAPI:

    def test_stats_endpoints(self, client: TestClient, patient, patient_headers, provider_headers, reports_dir):
        client.post(
            "/api/v1/reports",
            json={"patient_id": str(patient.id), "type": "ECG", "date": "2030-01-08", "results": "Sinus rhythm"},
            headers=provider_headers
        )

        provider_stats = client.get("/api/v1/reports/stats", headers=provider_headers)
        assert provider_stats.status_code == 200
        assert provider_stats.json()["type_breakdown"] == [{"type": "ECG", "count": 1}]

        own = client.get("/api/v1/reports/patient/me/stats", headers=patient_headers)
        assert own.status_code == 200
        assert own.json()["pending"] == 1
        assert own.json()["latest"]["status"] == "pending"

        assert client.get("/api/v1/reports/stats", headers=patient_headers).status_code == 403

    def test_create_and_download(self, client: TestClient, provider, patient, patient_user, provider_headers, reports_dir):
        response = client.post(
            "/api/v1/reports",
            json={
                "patient_id": str(patient.id),
                "type": "Blood Test",
                "date": "2030-01-08",
                "results": "Within normal range",
            },
            headers=provider_headers
        )
        assert response.status_code == 201
        report = response.json()
        assert report["status"] == "pending"

        download = client.get(f"/api/v1/reports/{report['id']}/pdf", headers=auth_headers(patient_user))
        assert download.status_code == 200
        assert download.headers["content-type"] == "application/pdf"
        assert download.content.startswith(b"%PDF")

    def test_missing_results_named(self, client: TestClient, patient, provider_headers, reports_dir):
        response = client.post(
            "/api/v1/reports",
            json={"patient_id": str(patient.id), "type": "Blood Test", "date": "2030-01-08"},
            headers=provider_headers
        )
        assert response.status_code == 422
        assert response.json()["details"]["field"] == "results"

    def test_patient_lists_own_reports(self, client: TestClient, provider, patient, patient_headers, provider_headers, reports_dir):
        client.post(
            "/api/v1/reports",
            json={"patient_id": str(patient.id), "type": "ECG", "date": "2030-01-08", "results": "Sinus rhythm"},
            headers=provider_headers
        )
        response = client.get("/api/v1/reports/patient/me", headers=patient_headers)
        assert response.status_code == 200
        assert response.json()["total"] == 1
