"""
Health Report Schemas - Pydantic models for health report validation and serialization.

BMI and formatted blood pressure are derived on the response model from the
stored vitals; they are never accepted as input or persisted.
"""
from typing import List, Optional
from datetime import date, datetime
from pydantic import BaseModel, Field, computed_field

from ..doctors.schemas import DoctorSummary
from .models import ReportType, Severity
from .utils import calculate_bmi, format_blood_pressure

class BloodPressure(BaseModel):
    """Blood pressure reading in mmHg"""
    systolic: Optional[float] = Field(None, ge=0)
    diastolic: Optional[float] = Field(None, ge=0)

class Vitals(BaseModel):
    """
    Vitals Schema
    
    Fields:
    - sugar: Blood sugar
    - blood_pressure: Systolic/diastolic reading
    - height: Height in cm
    - weight: Weight in kg
    - temperature: Body temperature
    - pulse: Pulse rate
    """
    sugar: Optional[float] = Field(None, ge=0)
    blood_pressure: Optional[BloodPressure] = None
    height: Optional[float] = Field(None, ge=0, description="Height in cm")
    weight: Optional[float] = Field(None, ge=0, description="Weight in kg")
    temperature: Optional[float] = Field(None, ge=0)
    pulse: Optional[float] = Field(None, ge=0)

class Medication(BaseModel):
    name: str = Field(..., min_length=1)
    dosage: Optional[str] = None
    frequency: Optional[str] = None
    duration: Optional[str] = None

class Attachment(BaseModel):
    name: str = Field(..., min_length=1)
    url: str = Field(..., min_length=1)
    type: Optional[str] = None

class HealthReportCreate(BaseModel):
    """
    Health Report Create Schema
    
    The subject is ``patient_id`` alone, or ``patient_id`` plus one of that
    patient's relatives. ``doctor_id`` is only used when an admin creates the
    report on a doctor's behalf.
    """
    patient_id: int = Field(..., gt=0)
    relative_id: Optional[int] = Field(None, gt=0)
    doctor_id: Optional[int] = Field(None, gt=0)
    report_type: ReportType
    diagnosis: str = Field(..., min_length=1)
    findings: str = ""
    vitals: Vitals = Field(default_factory=Vitals)
    is_normal: bool = True
    severity: Severity = Severity.LOW
    hospital_name: Optional[str] = Field(None, max_length=255)
    notes: Optional[str] = None
    follow_up_date: Optional[date] = None
    medications: List[Medication] = Field(default_factory=list)
    attachments: List[Attachment] = Field(default_factory=list)

class HealthReportUpdate(BaseModel):
    """
    Health Report Update Schema
    
    Report id, subject and author cannot be changed. Vitals are merged per field.
    """
    report_type: Optional[ReportType] = None
    diagnosis: Optional[str] = Field(None, min_length=1)
    findings: Optional[str] = None
    vitals: Optional[Vitals] = None
    is_normal: Optional[bool] = None
    severity: Optional[Severity] = None
    hospital_name: Optional[str] = Field(None, max_length=255)
    notes: Optional[str] = None
    follow_up_date: Optional[date] = None
    medications: Optional[List[Medication]] = None
    attachments: Optional[List[Attachment]] = None

    class Config:
        extra = "forbid"

class HealthReportResponse(BaseModel):
    """
    Health Report Response Schema - Used when returning report data
    """
    report_id: str
    doctor_id: int
    doctor: Optional[DoctorSummary] = None
    patient_id: Optional[int] = None
    relative_id: Optional[int] = None
    relative_owner_id: Optional[int] = None
    report_type: ReportType
    diagnosis: str
    findings: str
    vitals: Vitals
    is_normal: bool
    severity: Severity
    hospital_name: Optional[str] = None
    notes: Optional[str] = None
    follow_up_date: Optional[date] = None
    medications: List[Medication] = Field(default_factory=list)
    attachments: List[Attachment] = Field(default_factory=list)
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @computed_field
    @property
    def bmi(self) -> Optional[float]:
        return calculate_bmi(self.vitals.height, self.vitals.weight)

    @computed_field
    @property
    def formatted_blood_pressure(self) -> Optional[str]:
        blood_pressure = self.vitals.blood_pressure
        if blood_pressure is None:
            return None
        return format_blood_pressure(blood_pressure.systolic, blood_pressure.diastolic)
