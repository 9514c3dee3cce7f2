"""
Account Model - Stores every login-capable identity.

Admins, doctors and patients/guardians share this table and are told apart by
their role. Relatives and health reports hang off an account but are exposed
here read-only; they are written by their own services.
"""
import enum
from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, Date, DateTime, Enum
from sqlalchemy.orm import relationship, validates
from ..database import Base

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

class UserRole(str, enum.Enum):
    """Enum for account roles"""
    USER = "user"
    ADMIN = "admin"
    DOCTOR = "doctor"

class Gender(str, enum.Enum):
    """Enum for gender"""
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"

class BloodGroup(str, enum.Enum):
    """Enum for blood groups"""
    A_POSITIVE = "A+"
    A_NEGATIVE = "A-"
    B_POSITIVE = "B+"
    B_NEGATIVE = "B-"
    AB_POSITIVE = "AB+"
    AB_NEGATIVE = "AB-"
    O_POSITIVE = "O+"
    O_NEGATIVE = "O-"

class Account(Base):
    """
    Account Model - Stores login-capable identities
    
    Fields:
    - id: Primary key
    - first_name / last_name: Name parts
    - email: Unique email address
    - phone_number: Phone number used for patient login
    - password_hash: bcrypt hash, never serialized
    - date_of_birth: Required for self-registered users
    - gender: Required for self-registered users
    - role: user, admin or doctor; fixed at creation
    - blood_group: Optional blood group
    - password_changed_at: Last password change; credentials issued earlier are rejected
    - created_at / updated_at: Timestamps
    """
    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    phone_number = Column(String(20), index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    date_of_birth = Column(Date, nullable=True)
    gender = Column(Enum(Gender, name="gender"), nullable=True)
    role = Column(Enum(UserRole, name="user_role"), nullable=False, default=UserRole.USER)
    blood_group = Column(Enum(BloodGroup, name="blood_group"), nullable=True)
    password_changed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=utcnow)

    doctor_profile = relationship("Doctor", back_populates="account", uselist=False)

    def __repr__(self):
        """String representation of the Account model"""
        return f"<Account(id={self.id}, email='{self.email}', role='{self.role}')>"

    @validates("role")
    def validate_role(self, key, value):
        """Roles are assigned once; a persisted account keeps its role."""
        value = UserRole(value)
        if self.role is not None and self.role != value:
            raise ValueError("Account role cannot be changed")
        return value

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
