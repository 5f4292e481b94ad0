from datetime import datetime
from sqlalchemy import (
    Column, Integer, BigInteger, String, DateTime, Date, ForeignKey, Text, Numeric, Boolean,
    CheckConstraint, UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from case_portal.database import Base

# Student model
class Student(Base):
    __tablename__ = "students"

    # Identifiers are supplied by the institution or generated from the clock
    student_id = Column(BigInteger, primary_key=True, autoincrement=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False, default="")
    email_id = Column(String(255), unique=True, nullable=False)
    password_hash = Column(Text)
    contact_number = Column(String(50))
    department = Column(String(100), index=True)
    semester = Column(Integer)
    section = Column(String(20))
    admission_year = Column(Integer)
    date_of_birth = Column(Date)
    address = Column(Text)
    guardian_name = Column(String(255))
    guardian_phone = Column(String(50))
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, server_default=func.now())
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, server_default=func.now())

    # Relationships
    attendance = relationship("StudentAttendance", back_populates="student")
    marks = relationship("StudentMarks", back_populates="student")
    internal_marks = relationship("InternalMarks", back_populates="student")
    assignments = relationship("StudentAssignment", back_populates="student")
    notifications = relationship("StudentNotification", back_populates="student")

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip()

# Subject model
class Subject(Base):
    __tablename__ = "subjects"

    id = Column(Integer, primary_key=True, index=True)
    subject_code = Column(String(50), unique=True, nullable=False)
    name = Column(String(150), nullable=False)
    credits = Column(Integer, default=3)
    created_at = Column(DateTime, default=datetime.utcnow, server_default=func.now())

# Student attendance model
class StudentAttendance(Base):
    __tablename__ = "student_attendance"

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(BigInteger, ForeignKey("students.student_id", ondelete="CASCADE"), nullable=False, index=True)
    subject_id = Column(Integer, ForeignKey("subjects.id"))
    subject = Column(String(150), default="General")
    date = Column(Date, nullable=False)
    status = Column(String(20), nullable=False)
    marked_by = Column(String(100))
    created_at = Column(DateTime, default=datetime.utcnow, server_default=func.now())

    __table_args__ = (
        CheckConstraint("status IN ('Present', 'Absent', 'Late', 'Excused')", name="check_attendance_status"),
    )

    student = relationship("Student", back_populates="attendance")

# Exam marks model
class StudentMarks(Base):
    __tablename__ = "student_marks"

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(BigInteger, ForeignKey("students.student_id", ondelete="CASCADE"), nullable=False, index=True)
    subject = Column(String(150), nullable=False)
    exam_type = Column(String(50), default="Semester")
    marks = Column(Numeric(6, 2), nullable=False)
    max_marks = Column(Numeric(6, 2), nullable=False, default=100)
    created_at = Column(DateTime, default=datetime.utcnow, server_default=func.now())

    __table_args__ = (
        CheckConstraint("marks >= 0", name="check_marks_positive"),
    )

    student = relationship("Student", back_populates="marks")

# Continuous-assessment marks model
class InternalMarks(Base):
    __tablename__ = "internal_marks"

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(BigInteger, ForeignKey("students.student_id", ondelete="CASCADE"), nullable=False, index=True)
    subject = Column(String(150), nullable=False)
    academic_year = Column(String(20), nullable=False)
    internal1_marks = Column(Numeric(5, 2), nullable=False, default=0)
    internal2_marks = Column(Numeric(5, 2), nullable=False, default=0)
    assignment_marks = Column(Numeric(5, 2), nullable=False, default=0)
    total_marks = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=datetime.utcnow, server_default=func.now())
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, server_default=func.now())

    __table_args__ = (
        UniqueConstraint("student_id", "subject", "academic_year", name="uix_internal_marks_student_subject_year"),
        CheckConstraint("internal1_marks >= 0 AND internal1_marks <= 20", name="check_internal1_range"),
        CheckConstraint("internal2_marks >= 0 AND internal2_marks <= 20", name="check_internal2_range"),
        CheckConstraint("assignment_marks >= 0 AND assignment_marks <= 10", name="check_assignment_range"),
    )

    student = relationship("Student", back_populates="internal_marks")

# Student assignment model
class StudentAssignment(Base):
    __tablename__ = "student_assignments"

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(BigInteger, ForeignKey("students.student_id", ondelete="CASCADE"), nullable=False, index=True)
    subject_id = Column(Integer, ForeignKey("subjects.id"))
    title = Column(String(255), nullable=False)
    description = Column(Text, default="")
    due_date = Column(Date, nullable=False)
    max_marks = Column(Integer, default=100)
    obtained_marks = Column(Integer)
    grade = Column(String(5))
    status = Column(String(20), default="pending", nullable=False)
    submission_link = Column(Text)
    feedback = Column(Text)
    submitted_at = Column(DateTime)
    graded_at = Column(DateTime)
    assigned_by = Column(Integer)
    created_at = Column(DateTime, default=datetime.utcnow, server_default=func.now())

    student = relationship("Student", back_populates="assignments")
    subject = relationship("Subject")

# Personal notifications shown in the student portal
class StudentNotification(Base):
    __tablename__ = "student_notifications"

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(BigInteger, ForeignKey("students.student_id", ondelete="CASCADE"), nullable=False, index=True)
    notification_id = Column(Integer, ForeignKey("notifications.id", ondelete="CASCADE"), index=True)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    type = Column(String(50), default="Info")
    priority = Column(String(20), default="Normal")
    is_read = Column(Boolean, default=False, nullable=False)
    related_id = Column(Integer)
    created_at = Column(DateTime, default=datetime.utcnow, server_default=func.now())

    student = relationship("Student", back_populates="notifications")
