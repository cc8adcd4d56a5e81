import pytest

from helpers import auth_headers


def test_progress_tables_cover_every_status():
    from cvscreen.app.models.document import DocumentStatus
    from cvscreen.app.models.screening_result import ScreeningStatus
    from cvscreen.app.services.processing_status import DOCUMENT_PROGRESS, SCREENING_PROGRESS

    assert set(DOCUMENT_PROGRESS) == set(DocumentStatus)
    assert set(SCREENING_PROGRESS) == set(ScreeningStatus)


@pytest.mark.parametrize(
    "status,expected",
    [("Uploaded", 25), ("Processing", 50), ("Processed", 100), ("Error", 0), (None, 0)],
)
def test_document_progress(status, expected):
    from cvscreen.app.models.document import DocumentStatus
    from cvscreen.app.services.processing_status import document_progress

    assert document_progress(DocumentStatus(status) if status else None) == expected


@pytest.mark.parametrize(
    "status,expected",
    [("Processing", 50), ("Completed", 100), ("Failed", 0), (None, 0)],
)
def test_screening_progress(status, expected):
    from cvscreen.app.models.screening_result import ScreeningStatus
    from cvscreen.app.services.processing_status import screening_progress

    assert screening_progress(ScreeningStatus(status) if status else None) == expected


def test_overall_progress():
    from cvscreen.app.models.document import DocumentStatus as D
    from cvscreen.app.models.screening_result import ScreeningStatus as S
    from cvscreen.app.services.processing_status import overall_progress

    assert overall_progress(None, None) == 0
    assert overall_progress(D.UPLOADED, None) == 25
    assert overall_progress(D.PROCESSING, S.COMPLETED) == 50
    assert overall_progress(D.PROCESSED, None) == 50
    assert overall_progress(D.PROCESSED, S.PROCESSING) == 75
    assert overall_progress(D.PROCESSED, S.COMPLETED) == 100
    assert overall_progress(D.ERROR, S.FAILED) == 0


def test_status_endpoints_follow_the_pipeline(client, seed, drain):
    headers = auth_headers(seed["owner"])
    alice_id = seed["alice"].id

    before = client.get(f"/processing/applicants/{alice_id}/status", headers=headers)
    assert before.status_code == 200, before.text
    status = before.json()["status"]
    assert status["document"]["status"] is None
    assert status["overall_progress"] == 0

    r = client.post(
        f"/applicants/{alice_id}/documents",
        headers=headers,
        files={"file": ("cv.txt", b"Alice Smith\nPython developer", "text/plain")},
    )
    assert r.status_code == 201, r.text
    assert drain()

    mid = client.get(f"/processing/applicants/{alice_id}/status", headers=headers).json()["status"]
    assert mid["document"]["status"] == "Processed"
    assert mid["document"]["progress_percent"] == 100
    assert mid["screening"]["status"] is None
    assert mid["overall_progress"] == 50

    r = client.post(f"/jobs/{seed['job'].id}/screening", headers=headers, json={"applicant_ids": [alice_id]})
    assert r.status_code == 202, r.text
    assert drain()

    done = client.get(f"/processing/applicants/{alice_id}/status", headers=headers).json()["status"]
    assert done["screening"]["status"] == "Completed"
    assert done["overall_progress"] == 100
    assert done["applicant_status"] == "Screened"
    assert done["last_updated"] is not None

    job_status = client.get(f"/processing/jobs/{seed['job'].id}/status", headers=headers)
    assert job_status.status_code == 200
    rows = job_status.json()["status"]["applicants"]
    assert [row["applicant_id"] for row in rows] == [alice_id, seed["bob"].id]
    assert rows[1]["overall_progress"] == 0

    assert client.get(f"/processing/jobs/{seed['job'].id}/status", headers=auth_headers(seed["other"])).status_code == 403
    assert client.get(f"/processing/applicants/{alice_id}/status", headers=auth_headers(seed["admin"])).status_code == 200
