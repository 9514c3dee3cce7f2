"""
Health Report Model - Stores doctor-authored clinical records.

A report addresses exactly one subject: a patient account or one of an
account's relatives. For relative reports the owning account is recorded
alongside, so access survives the relative being detached later.
"""
import enum
from sqlalchemy import (
    Column, Integer, String, Text, Boolean, Float, Date, DateTime, Enum, JSON,
    ForeignKey, CheckConstraint, Index
)
from sqlalchemy.orm import relationship
from ..database import Base
from ..auth.models import utcnow

VITAL_COLUMNS = ("sugar", "bp_systolic", "bp_diastolic", "height", "weight", "temperature", "pulse")

class ReportType(str, enum.Enum):
    """Enum for report types"""
    GENERAL = "general"
    BLOOD_TEST = "blood_test"
    URINE_TEST = "urine_test"
    XRAY = "xray"
    SCAN = "scan"
    PRESCRIPTION = "prescription"
    FOLLOW_UP = "follow_up"

class Severity(str, enum.Enum):
    """Enum for severity tiers"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

class HealthReport(Base):
    """
    Health Report Model - Stores clinical records
    
    Fields:
    - id: Internal primary key
    - report_id: Public identifier (HR-<epoch ms>-<9 base36 chars>), immutable
    - doctor_id: Authoring doctor (directory entry)
    - patient_id: Subject account, when the report is about a patient
    - relative_id: Subject relative, when the report is about a relative
    - relative_owner_id: Account owning the subject relative
    - report_type: Kind of report
    - diagnosis / findings: Clinical text
    - sugar, bp_systolic, bp_diastolic, height (cm), weight (kg), temperature, pulse:
      Vitals, all non-negative
    - is_normal: Normalcy flag
    - severity: low, medium or high
    - hospital_name, notes, follow_up_date: Optional details
    - medications: List of {name, dosage, frequency, duration}
    - attachments: List of {name, url, type}
    - created_at / updated_at: Timestamps
    """
    __tablename__ = "health_reports"

    id = Column(Integer, primary_key=True, index=True)
    report_id = Column(String(40), unique=True, nullable=False)
    doctor_id = Column(Integer, ForeignKey("doctors.id", ondelete="RESTRICT"), nullable=False)
    patient_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=True)
    relative_id = Column(Integer, ForeignKey("relatives.id", ondelete="CASCADE"), nullable=True)
    relative_owner_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=True, index=True)
    report_type = Column(Enum(ReportType, name="report_type"), nullable=False)
    diagnosis = Column(Text, nullable=False)
    findings = Column(Text, nullable=False, default="")
    sugar = Column(Float, nullable=True)
    bp_systolic = Column(Float, nullable=True)
    bp_diastolic = Column(Float, nullable=True)
    height = Column(Float, nullable=True)
    weight = Column(Float, nullable=True)
    temperature = Column(Float, nullable=True)
    pulse = Column(Float, nullable=True)
    is_normal = Column(Boolean, nullable=False, default=True)
    severity = Column(Enum(Severity, name="severity"), nullable=False, default=Severity.LOW)
    hospital_name = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)
    follow_up_date = Column(Date, nullable=True)
    medications = Column(JSON, nullable=False, default=list)
    attachments = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=utcnow)

    __table_args__ = (
        CheckConstraint(
            "(patient_id IS NULL AND relative_id IS NOT NULL) OR "
            "(patient_id IS NOT NULL AND relative_id IS NULL)",
            name="ck_health_reports_single_subject",
        ),
        *(
            CheckConstraint(f"{column} >= 0", name=f"ck_health_reports_{column}_non_negative")
            for column in VITAL_COLUMNS
        ),
        Index("ix_health_reports_patient_created", "patient_id", "created_at"),
        Index("ix_health_reports_relative_created", "relative_id", "created_at"),
        Index("ix_health_reports_doctor_created", "doctor_id", "created_at"),
        Index("ix_health_reports_report_type", "report_type"),
    )

    # Relationships
    doctor = relationship("Doctor")

    def __repr__(self):
        """String representation of the HealthReport model"""
        return f"<HealthReport(report_id='{self.report_id}', doctor_id={self.doctor_id})>"

    @property
    def vitals(self) -> dict:
        """Vitals as a nested structure"""
        return {
            "sugar": self.sugar,
            "blood_pressure": {
                "systolic": self.bp_systolic,
                "diastolic": self.bp_diastolic,
            },
            "height": self.height,
            "weight": self.weight,
            "temperature": self.temperature,
            "pulse": self.pulse,
        }
