"""
Health Report Service - Business logic for the health report ledger.

Record-level authorization lives here: the routers only gate by permission,
and these functions decide whether the actor may see or change a given report.
"""
from typing import Any, Dict, Optional, Tuple
import logging

from fastapi import Request, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..auth.models import Account, UserRole
from ..core.audit_service import create_audit_log
from ..doctors.models import Doctor
from ..doctors.service import get_doctor_profile
from ..exceptions import (
    AppException,
    ValidationException,
    ResourceNotFoundException,
    PermissionDeniedException,
)
from ..relatives.models import Relative
from ..relatives.service import get_owned_relative
from .models import HealthReport, ReportType, Severity
from .schemas import HealthReportCreate, HealthReportUpdate
from .utils import generate_report_id

# Set up logging
logger = logging.getLogger(__name__)

MAX_REPORT_ID_ATTEMPTS = 5

# Columns that may not be cleared by an update
REQUIRED_FIELDS = {"report_type", "diagnosis", "findings", "is_normal", "severity", "medications", "attachments"}

def _vital_columns(vitals: Dict[str, Any]) -> Dict[str, Any]:
    """Map a (possibly partial) vitals dump onto the report's vital columns."""
    columns = {}
    blood_pressure = vitals.pop("blood_pressure", None) or {}
    if "systolic" in blood_pressure:
        columns["bp_systolic"] = blood_pressure["systolic"]
    if "diastolic" in blood_pressure:
        columns["bp_diastolic"] = blood_pressure["diastolic"]
    columns.update(vitals)
    return columns

def get_doctor_for_account(db: Session, account: Account) -> Optional[Doctor]:
    """Directory entry of a doctor account, or None for any other account."""
    if account.role != UserRole.DOCTOR:
        return None
    return account.doctor_profile

def is_report_author(report: HealthReport, actor: Account) -> bool:
    return (
        actor.role == UserRole.DOCTOR
        and report.doctor is not None
        and report.doctor.account_id == actor.id
    )

def can_read_report(report: HealthReport, actor: Account) -> bool:
    """
    Whether the actor may read a report.
    
    Readers are the authoring doctor, admins, the patient, and the account
    owning the subject relative (also after the relative was removed).
    """
    if actor.is_admin or is_report_author(report, actor):
        return True
    if report.patient_id is not None and report.patient_id == actor.id:
        return True
    return report.relative_owner_id is not None and report.relative_owner_id == actor.id

def can_modify_report(report: HealthReport, actor: Account) -> bool:
    """Only the authoring doctor or an admin may update or delete a report."""
    return actor.is_admin or is_report_author(report, actor)

def _resolve_author(db: Session, actor: Account, doctor_id: Optional[int]) -> Doctor:
    if actor.role == UserRole.DOCTOR:
        doctor = get_doctor_for_account(db, actor)
        if doctor is None:
            raise PermissionDeniedException("No doctor profile is linked to this account")
        if doctor_id is not None and doctor_id != doctor.id:
            raise PermissionDeniedException("Doctors can only create reports under their own profile")
        return doctor
    if actor.is_admin:
        if doctor_id is None:
            raise ValidationException("doctor_id is required when an admin creates a report")
        return get_doctor_profile(db, doctor_id)
    raise PermissionDeniedException("Only doctors and admins can create health reports")

def _resolve_subject(
    db: Session,
    patient_id: int,
    relative_id: Optional[int]
) -> Tuple[Optional[int], Optional[int], Optional[int]]:
    """
    Resolve the report subject.
    
    Returns:
        Tuple of (patient_id, relative_id, relative_owner_id) to store
        
    Raises:
        ValidationException: If the patient or relative cannot be resolved
    """
    patient = db.query(Account).filter(Account.id == patient_id, Account.role == UserRole.USER).first()
    if not patient:
        raise ValidationException("Patient not found")
    
    if relative_id is None:
        return patient.id, None, None
    
    relative = db.query(Relative).filter(
        Relative.id == relative_id,
        Relative.owner_id == patient.id,
        Relative.detached_at.is_(None)
    ).first()
    if not relative:
        raise ValidationException("Relative not found for this patient")
    return None, relative.id, patient.id

def create_report(
    db: Session,
    actor: Account,
    report_data: HealthReportCreate,
    request: Optional[Request] = None
) -> HealthReport:
    """
    Create a health report.
    
    Args:
        db: Database session
        actor: Doctor authoring the report, or admin acting for a doctor
        report_data: Validated report data
        request: FastAPI request object for audit logging
        
    Returns:
        HealthReport: The created report
        
    Raises:
        PermissionDeniedException: If the actor cannot author reports
        ValidationException: If the author or subject cannot be resolved
        AppException: If no unique report id could be allocated
    """
    doctor = _resolve_author(db, actor, report_data.doctor_id)
    patient_id, relative_id, relative_owner_id = _resolve_subject(
        db, report_data.patient_id, report_data.relative_id
    )
    
    fields = report_data.model_dump(exclude={"patient_id", "relative_id", "doctor_id", "vitals"})
    fields.update(_vital_columns(report_data.vitals.model_dump()))
    
    for attempt in range(1, MAX_REPORT_ID_ATTEMPTS + 1):
        candidate = generate_report_id()
        report = HealthReport(
            report_id=candidate,
            doctor_id=doctor.id,
            patient_id=patient_id,
            relative_id=relative_id,
            relative_owner_id=relative_owner_id,
            **fields
        )
        db.add(report)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            if db.query(HealthReport.id).filter(HealthReport.report_id == candidate).first() is None:
                raise
            logger.warning(f"Report id collision on {candidate} (attempt {attempt})")
            continue
        
        db.refresh(report)
        logger.info(f"Health report {report.report_id} created by account {actor.id}")
        create_audit_log(
            db,
            action="HEALTH_REPORT_CREATED",
            account_id=actor.id,
            request=request,
            details={"report_id": report.report_id, "doctor_id": doctor.id}
        )
        return report
    
    logger.error(f"Could not allocate a unique report id after {MAX_REPORT_ID_ATTEMPTS} attempts")
    raise AppException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Could not create health report"
    )

def _get_report_or_404(db: Session, report_id: str) -> HealthReport:
    report = db.query(HealthReport).filter(HealthReport.report_id == report_id).first()
    if not report:
        raise ResourceNotFoundException("Health report not found")
    return report

def get_report(db: Session, report_id: str, actor: Account) -> HealthReport:
    """
    Get a health report by its public id.
    
    Raises:
        ResourceNotFoundException: If the report does not exist
        PermissionDeniedException: If the actor may not read it
    """
    report = _get_report_or_404(db, report_id)
    if not can_read_report(report, actor):
        logger.warning(f"Account {actor.id} denied read access to report {report_id}")
        raise PermissionDeniedException("You do not have access to this health report")
    return report

def update_report(
    db: Session,
    report_id: str,
    actor: Account,
    report_data: HealthReportUpdate,
    request: Optional[Request] = None
) -> HealthReport:
    """
    Update a health report. Author or admin only.
    """
    report = _get_report_or_404(db, report_id)
    if not can_modify_report(report, actor):
        raise PermissionDeniedException("Only the authoring doctor or an admin can update this health report")
    
    update_data = report_data.model_dump(exclude_unset=True)
    vitals = update_data.pop("vitals", None)
    update_data = {
        field: value for field, value in update_data.items()
        if value is not None or field not in REQUIRED_FIELDS
    }
    if vitals:
        update_data.update(_vital_columns(vitals))
    
    for field, value in update_data.items():
        setattr(report, field, value)
    
    db.commit()
    db.refresh(report)
    
    logger.info(f"Health report {report_id} updated by account {actor.id}")
    create_audit_log(
        db,
        action="HEALTH_REPORT_UPDATED",
        account_id=actor.id,
        request=request,
        details={"report_id": report_id, "fields": sorted(update_data)}
    )
    return report

def delete_report(
    db: Session,
    report_id: str,
    actor: Account,
    request: Optional[Request] = None
) -> None:
    """
    Permanently delete a health report. Author or admin only.
    """
    report = _get_report_or_404(db, report_id)
    if not can_modify_report(report, actor):
        raise PermissionDeniedException("Only the authoring doctor or an admin can delete this health report")
    
    db.delete(report)
    db.commit()
    
    logger.info(f"Health report {report_id} deleted by account {actor.id}")
    create_audit_log(
        db,
        action="HEALTH_REPORT_DELETED",
        account_id=actor.id,
        request=request,
        details={"report_id": report_id}
    )

def _ordered(query):
    return query.order_by(HealthReport.created_at.desc(), HealthReport.report_id.asc())

def _scope_to_actor(db: Session, query, actor: Account, owner_id: int):
    """
    Restrict a subject listing to what the actor may see.
    
    The subject's account and admins see every report; doctors only the ones
    they authored.
    """
    if actor.is_admin or actor.id == owner_id:
        return query
    doctor = get_doctor_for_account(db, actor)
    if doctor is not None:
        return query.filter(HealthReport.doctor_id == doctor.id)
    raise PermissionDeniedException("You do not have access to these health reports")

def list_by_doctor(db: Session, doctor_id: int):
    """Reports authored by a doctor, newest first."""
    return _ordered(db.query(HealthReport).filter(HealthReport.doctor_id == doctor_id))

def list_by_patient(db: Session, actor: Account, patient_id: int):
    """
    Reports about a patient account, newest first.
    
    Raises:
        PermissionDeniedException: If the actor may not list this patient's reports
        ResourceNotFoundException: If the patient does not exist
    """
    if actor.role == UserRole.USER and actor.id != patient_id:
        raise PermissionDeniedException("You do not have access to these health reports")
    
    patient = db.query(Account).filter(Account.id == patient_id, Account.role == UserRole.USER).first()
    if not patient:
        raise ResourceNotFoundException("Patient not found")
    
    query = db.query(HealthReport).filter(HealthReport.patient_id == patient.id)
    return _ordered(_scope_to_actor(db, query, actor, patient.id))

def list_by_relative(db: Session, actor: Account, owner_id: int, relative_id: int):
    """
    Reports about an attached relative, newest first.
    
    Raises:
        PermissionDeniedException: If the actor may not list these reports
        ResourceNotFoundException: If the relative is not attached to the owner
    """
    if actor.role == UserRole.USER and actor.id != owner_id:
        raise PermissionDeniedException("You do not have access to these health reports")
    
    relative = get_owned_relative(db, owner_id, relative_id)
    query = db.query(HealthReport).filter(HealthReport.relative_id == relative.id)
    return _ordered(_scope_to_actor(db, query, actor, owner_id))

def list_all(
    db: Session,
    report_type: Optional[ReportType] = None,
    severity: Optional[Severity] = None
):
    """Every report, newest first, optionally filtered by type and severity."""
    query = db.query(HealthReport)
    if report_type is not None:
        query = query.filter(HealthReport.report_type == report_type)
    if severity is not None:
        query = query.filter(HealthReport.severity == severity)
    return _ordered(query)
