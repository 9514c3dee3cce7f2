"""
Health Report Router - API endpoints for the health report ledger.

Mounted under ``/api/v1/doctor``. Permission gates run here; which reports an
actor may see or change is decided by the service layer.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..auth.dependencies import require_doctor_or_admin, require_permission
from ..auth.models import Account, UserRole
from ..core.pagination import PageParams, PageResponse, paginate
from ..core.permissions import Permission
from ..core.responses import ApiResponse
from ..exceptions import ValidationException, PermissionDeniedException
from .models import ReportType, Severity
from .schemas import HealthReportCreate, HealthReportUpdate, HealthReportResponse
from .service import (
    create_report, get_report, update_report, delete_report,
    list_by_doctor, list_by_patient, list_by_relative, list_all,
    get_doctor_for_account
)


router = APIRouter(tags=["Health Reports"])

ReportPage = ApiResponse[PageResponse[HealthReportResponse]]

@router.post("/health-reports/create", response_model=ApiResponse[HealthReportResponse], status_code=status.HTTP_201_CREATED)
def create_health_report_route(
    report_data: HealthReportCreate,
    request: Request,
    current_account: Account = Depends(require_permission(Permission.CREATE_HEALTH_REPORT)),
    db: Session = Depends(get_db)
):
    """
    Create a health report
    
    Doctors author reports under their own profile; admins must name the
    authoring doctor with ``doctor_id``.
    """
    report = create_report(db, current_account, report_data, request=request)
    return ApiResponse(
        message="Health report created successfully",
        data=HealthReportResponse.model_validate(report)
    )

@router.get("/health-reports", response_model=ReportPage)
def list_doctor_health_reports_route(
    doctor_id: Optional[int] = Query(None, description="Doctor to list (admins only)"),
    page_params: PageParams = Depends(),
    current_account: Account = Depends(require_doctor_or_admin),
    db: Session = Depends(get_db)
):
    """
    List reports authored by a doctor
    
    Doctors always get their own reports. Admins choose the doctor with ``doctor_id``.
    """
    if current_account.role == UserRole.DOCTOR:
        doctor = get_doctor_for_account(db, current_account)
        if doctor is None:
            raise PermissionDeniedException("No doctor profile is linked to this account")
        doctor_id = doctor.id
    elif doctor_id is None:
        raise ValidationException("doctor_id is required")
    
    page = paginate(list_by_doctor(db, doctor_id), page_params, HealthReportResponse)
    return ApiResponse(message="Health reports fetched successfully", data=page)

@router.get("/health-reports/all", response_model=ReportPage)
def list_all_health_reports_route(
    report_type: Optional[ReportType] = Query(None),
    severity: Optional[Severity] = Query(None),
    page_params: PageParams = Depends(),
    current_admin: Account = Depends(require_permission(Permission.VIEW_ALL_HEALTH_REPORTS)),
    db: Session = Depends(get_db)
):
    """List every health report (admin only)."""
    page = paginate(list_all(db, report_type, severity), page_params, HealthReportResponse)
    return ApiResponse(message="All health reports fetched successfully", data=page)

@router.get("/health-reports/{report_id}", response_model=ApiResponse[HealthReportResponse])
def get_health_report_route(
    report_id: str,
    current_account: Account = Depends(require_permission(Permission.VIEW_HEALTH_REPORTS)),
    db: Session = Depends(get_db)
):
    """
    Get a health report by its report id
    """
    report = get_report(db, report_id, current_account)
    return ApiResponse(
        message="Health report fetched successfully",
        data=HealthReportResponse.model_validate(report)
    )

@router.put("/health-reports/{report_id}", response_model=ApiResponse[HealthReportResponse])
def update_health_report_route(
    report_id: str,
    report_data: HealthReportUpdate,
    request: Request,
    current_account: Account = Depends(require_permission(Permission.UPDATE_HEALTH_REPORT)),
    db: Session = Depends(get_db)
):
    report = update_report(db, report_id, current_account, report_data, request=request)
    return ApiResponse(
        message="Health report updated successfully",
        data=HealthReportResponse.model_validate(report)
    )

@router.delete("/health-reports/{report_id}", response_model=ApiResponse[None])
def delete_health_report_route(
    report_id: str,
    request: Request,
    current_account: Account = Depends(require_permission(Permission.DELETE_HEALTH_REPORT)),
    db: Session = Depends(get_db)
):
    delete_report(db, report_id, current_account, request=request)
    return ApiResponse(message="Health report deleted successfully")

@router.get("/patients/{patient_id}/health-reports", response_model=ReportPage)
def list_patient_health_reports_route(
    patient_id: int,
    page_params: PageParams = Depends(),
    current_account: Account = Depends(require_permission(Permission.VIEW_HEALTH_REPORTS)),
    db: Session = Depends(get_db)
):
    """
    List reports about a patient
    
    Patients and admins see every report; doctors see the ones they wrote.
    """
    page = paginate(list_by_patient(db, current_account, patient_id), page_params, HealthReportResponse)
    return ApiResponse(message="Patient health reports fetched successfully", data=page)

@router.get("/patients/{patient_id}/relatives/{relative_id}/health-reports", response_model=ReportPage)
def list_relative_health_reports_route(
    patient_id: int,
    relative_id: int,
    page_params: PageParams = Depends(),
    current_account: Account = Depends(require_permission(Permission.VIEW_HEALTH_REPORTS)),
    db: Session = Depends(get_db)
):
    """List reports about one of a patient's relatives."""
    query = list_by_relative(db, current_account, patient_id, relative_id)
    page = paginate(query, page_params, HealthReportResponse)
    return ApiResponse(message="Relative health reports fetched successfully", data=page)
