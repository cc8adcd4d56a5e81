from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..schemas.screening import ScreeningRequest
from ..services.screening import (
    get_screening_result,
    list_results_for_applicant,
    list_screened_applicants,
    public_result,
    start_applicant_screening,
    start_screening,
)
from ..utils.roles import recruiter_or_admin

router = APIRouter(tags=["Screening"])


@router.post("/jobs/{job_id}/screening", status_code=202)
def screen_applicants(
    job_id: int,
    payload: ScreeningRequest,
    db: Session = Depends(get_db),
    user=Depends(recruiter_or_admin),
):
    """Queue one screening per applicant; results start at Processing and are polled."""
    results = start_screening(db, job_id=job_id, applicant_ids=payload.applicant_ids, caller=user)
    return {
        "success": True,
        "message": f"Screening started for {len(results)} applicant(s)",
        "results": [public_result(r) for r in results],
    }


@router.post("/applicants/{applicant_id}/screening", status_code=202)
def screen_applicant(
    applicant_id: int,
    db: Session = Depends(get_db),
    user=Depends(recruiter_or_admin),
):
    result = start_applicant_screening(db, applicant_id=applicant_id, caller=user)
    return {"success": True, "message": "Screening started", "result": public_result(result)}


@router.get("/screening/results/{result_id}")
def get_result(
    result_id: int,
    db: Session = Depends(get_db),
    user=Depends(recruiter_or_admin),
):
    result = get_screening_result(db, result_id=result_id, caller=user)
    return {"success": True, "result": public_result(result)}


@router.get("/screening/applicants/{applicant_id}/results")
def get_applicant_results(
    applicant_id: int,
    db: Session = Depends(get_db),
    user=Depends(recruiter_or_admin),
):
    rows = list_results_for_applicant(db, applicant_id=applicant_id, caller=user)
    return {"success": True, "results": [public_result(r) for r in rows]}


@router.get("/screening/screened-applicants")
def get_screened_applicants(
    db: Session = Depends(get_db),
    user=Depends(recruiter_or_admin),
):
    return {"success": True, "applicants": list_screened_applicants(db, caller=user)}
