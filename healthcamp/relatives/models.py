"""
Relative Model - Stores dependents attached to a primary account.

A relative is either a link to another existing account or an inline identity
(name, phone, date of birth) with no login of its own. Rows are only ever
addressed together with their owner.
"""
import enum
from sqlalchemy import Column, Integer, String, Boolean, Date, DateTime, Enum, ForeignKey, Index, text
from sqlalchemy.orm import relationship
from ..database import Base
from ..auth.models import Gender, BloodGroup, utcnow

class RelationshipType(str, enum.Enum):
    """Enum for the relationship of a relative to its owner"""
    PARENT = "parent"
    CHILD = "child"
    SIBLING = "sibling"
    SPOUSE = "spouse"
    GRANDPARENT = "grandparent"
    GRANDCHILD = "grandchild"
    UNCLE = "uncle"
    AUNT = "aunt"
    COUSIN = "cousin"
    OTHER = "other"

class Relative(Base):
    """
    Relative Model - Stores dependents of an account
    
    Fields:
    - id: Primary key
    - owner_id: Account the relative belongs to
    - linked_account_id: Existing account this relative points at, if any
    - is_existing_user: True when linked to an existing account
    - first_name / last_name / phone_number / date_of_birth / gender / blood_group:
      Inline identity, used when not linked
    - relation: Relationship to the owner (stored in the "relationship" column)
    - detached_at: Set when the owner removes the relative
    - created_at / updated_at: Timestamps
    """
    __tablename__ = "relatives"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True)
    linked_account_id = Column(Integer, ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True)
    is_existing_user = Column(Boolean, nullable=False, default=False)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    phone_number = Column(String(20), nullable=True)
    date_of_birth = Column(Date, nullable=True)
    gender = Column(Enum(Gender, name="gender"), nullable=True)
    blood_group = Column(Enum(BloodGroup, name="blood_group"), nullable=True)
    relation = Column("relationship", Enum(RelationshipType, name="relationship_type"), nullable=False)
    detached_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=utcnow)

    __table_args__ = (
        # An account can be linked at most once per owner among attached relatives
        Index(
            "uq_relatives_owner_linked_account",
            "owner_id",
            "linked_account_id",
            unique=True,
            sqlite_where=text("detached_at IS NULL"),
            postgresql_where=text("detached_at IS NULL"),
        ),
    )

    # Relationships
    linked_account = relationship("Account", foreign_keys=[linked_account_id])

    def __repr__(self):
        """String representation of the Relative model"""
        return f"<Relative(id={self.id}, owner_id={self.owner_id}, relationship='{self.relation}')>"

    @property
    def full_name(self) -> str:
        """Name of the relative, taken from the linked account when there is one"""
        if self.is_existing_user and self.linked_account is not None:
            return self.linked_account.full_name
        return f"{self.first_name or ''} {self.last_name or ''}".strip()
