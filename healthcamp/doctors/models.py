"""
Doctor Model - Clinical staff directory.

Each directory entry is tied to a login account with role ``doctor`` and is
the author recorded on health reports.
"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from ..database import Base
from ..auth.models import utcnow

class Doctor(Base):
    """
    Doctor Model - Stores doctor directory information
    
    Fields:
    - id: Primary key for the directory entry
    - account_id: Foreign key to the doctor's login account
    - name: Display name
    - specialization: Medical specialization
    - qualification: Qualification (e.g. MBBS, MD)
    - experience_years: Years of experience, never negative
    - phone_number: Contact number
    - email: Unique contact email (same as the account email)
    - location: Practice location
    - created_at / updated_at: Timestamps
    """
    __tablename__ = "doctors"

    id = Column(Integer, primary_key=True, index=True)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), unique=True, nullable=False)
    name = Column(String(200), nullable=False)
    specialization = Column(String(200), nullable=False)
    qualification = Column(String(200), nullable=False)
    experience_years = Column(Integer, nullable=False, default=0)
    phone_number = Column(String(20), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    location = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=utcnow)

    __table_args__ = (
        CheckConstraint("experience_years >= 0", name="ck_doctors_experience_non_negative"),
    )

    account = relationship("Account", back_populates="doctor_profile")

    def __repr__(self):
        """String representation of the Doctor model"""
        return f"<Doctor(id={self.id}, account_id={self.account_id}, specialization='{self.specialization}')>"
