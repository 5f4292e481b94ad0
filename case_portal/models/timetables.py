from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Date, ForeignKey, Boolean, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from case_portal.database import Base

# Timetable model
class Timetable(Base):
    __tablename__ = "timetables"

    id = Column(String(64), primary_key=True)
    name = Column(String(255), nullable=False)
    department = Column(String(100), index=True)
    semester = Column(Integer)
    section = Column(String(20))
    academic_year = Column(String(20))
    faculty_id = Column(Integer)
    faculty_name = Column(String(255))
    effective_from = Column(Date, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, server_default=func.now())
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, server_default=func.now())

    # Relationships
    entries = relationship("TimetableEntry", back_populates="timetable", order_by="TimetableEntry.id")
    assignments = relationship("TimetableAssignment", back_populates="timetable")

# Timetable slot model
class TimetableEntry(Base):
    __tablename__ = "timetable_entries"

    id = Column(Integer, primary_key=True, index=True)
    timetable_id = Column(String(64), ForeignKey("timetables.id", ondelete="CASCADE"), nullable=False, index=True)
    day = Column(String(20), nullable=False)
    period = Column(Integer, nullable=False)
    time = Column(String(50))
    subject = Column(String(150), nullable=False)
    faculty = Column(String(255))
    room = Column(String(50))
    type = Column(String(20), default="lecture", nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, server_default=func.now())

    __table_args__ = (
        CheckConstraint("type IN ('lecture', 'lab', 'tutorial', 'practical')", name="check_entry_type"),
    )

    timetable = relationship("Timetable", back_populates="entries")

# Assignment of a timetable to a department cohort or a faculty member
class TimetableAssignment(Base):
    __tablename__ = "timetable_assignments"

    id = Column(Integer, primary_key=True, index=True)
    timetable_id = Column(String(64), ForeignKey("timetables.id", ondelete="CASCADE"), nullable=False, index=True)
    assignment_type = Column(String(20), nullable=False)
    target_department = Column(String(100))
    target_semester = Column(Integer)
    target_section = Column(String(20))
    faculty_id = Column(Integer)
    faculty_name = Column(String(255))
    assigned_by = Column(String(150))
    is_active = Column(Boolean, default=True, nullable=False)
    assigned_at = Column(DateTime, default=datetime.utcnow, server_default=func.now())

    __table_args__ = (
        CheckConstraint("assignment_type IN ('department', 'faculty')", name="check_assignment_type"),
    )

    timetable = relationship("Timetable", back_populates="assignments")
