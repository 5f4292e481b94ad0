from datetime import datetime
from sqlalchemy import Column, Integer, BigInteger, String, DateTime, ForeignKey, Text, Boolean, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from case_portal.database import Base

# Parent model
class Parent(Base):
    __tablename__ = "parents"

    parent_id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False, default="")
    username = Column(String(100), unique=True, nullable=False)
    password_hash = Column(Text, nullable=False)
    child_email = Column(String(255))
    contact_number = Column(String(50))
    relationship_type = Column("relationship", String(50))
    department = Column(String(100))
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, server_default=func.now())
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, server_default=func.now())

    # Relationships
    children = relationship("ParentChild", back_populates="parent", order_by="ParentChild.id")
    notifications = relationship("ParentNotification", back_populates="parent")

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip()

# Parent-child link; the child's details are snapshotted when linked
class ParentChild(Base):
    __tablename__ = "parent_children"

    id = Column(Integer, primary_key=True, index=True)
    parent_id = Column(Integer, ForeignKey("parents.parent_id", ondelete="CASCADE"), nullable=False, index=True)
    child_student_id = Column(BigInteger, ForeignKey("students.student_id", ondelete="CASCADE"), nullable=False, index=True)
    child_name = Column(String(255))
    child_email = Column(String(255))
    child_department = Column(String(100), index=True)
    child_semester = Column(Integer)
    child_section = Column(String(20))
    is_primary = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow, server_default=func.now())

    __table_args__ = (
        UniqueConstraint("parent_id", "child_student_id", name="uix_parent_child"),
    )

    parent = relationship("Parent", back_populates="children")

# Personal notifications shown in the parent dashboard
class ParentNotification(Base):
    __tablename__ = "parent_notifications"

    id = Column(Integer, primary_key=True, index=True)
    parent_id = Column(Integer, ForeignKey("parents.parent_id", ondelete="CASCADE"), nullable=False, index=True)
    notification_id = Column(Integer, ForeignKey("notifications.id", ondelete="CASCADE"), index=True)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    type = Column(String(50), default="General")
    priority = Column(String(20), default="Normal")
    is_read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, server_default=func.now())

    parent = relationship("Parent", back_populates="notifications")
