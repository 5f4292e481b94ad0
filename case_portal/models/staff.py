from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Date, ForeignKey, Text, Numeric, Boolean
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from case_portal.database import Base

# Staff model (faculty and administrators)
class Staff(Base):
    __tablename__ = "staff"

    staff_id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False, default="")
    username = Column(String(100), unique=True, nullable=False)
    password_hash = Column(Text)
    email = Column(String(255), unique=True)
    contact_number = Column(String(50))
    department = Column(String(100), index=True)
    block_number = Column(String(20), default="A")
    room_number = Column(String(20), default="101")
    role = Column(String(50), default="Faculty", nullable=False)
    profile_picture = Column(Text)
    availability = Column(String(50), default="Available")
    salary = Column(Numeric(12, 2))
    experience = Column(Integer)
    hire_date = Column(Date)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, server_default=func.now())
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, server_default=func.now())

    # Relationships
    attendance = relationship("StaffAttendance", back_populates="staff")
    leave = relationship("StaffLeave", back_populates="staff")
    notifications = relationship("StaffNotification", back_populates="staff")

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_admin(self):
        return (self.role or "").lower() == "admin"

# Staff attendance model
class StaffAttendance(Base):
    __tablename__ = "staff_attendance"

    id = Column(Integer, primary_key=True, index=True)
    staff_id = Column(Integer, ForeignKey("staff.staff_id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(Date, nullable=False)
    status = Column(String(20), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, server_default=func.now())

    staff = relationship("Staff", back_populates="attendance")

# Staff leave requests
class StaffLeave(Base):
    __tablename__ = "staff_leave"

    id = Column(Integer, primary_key=True, index=True)
    staff_id = Column(Integer, ForeignKey("staff.staff_id", ondelete="CASCADE"), nullable=False, index=True)
    leave_type = Column(String(50), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    reason = Column(Text)
    status = Column(String(20), default="Pending", nullable=False)
    applied_at = Column(DateTime, default=datetime.utcnow, server_default=func.now())

    staff = relationship("Staff", back_populates="leave")

# Personal notifications shown in the staff portal
class StaffNotification(Base):
    __tablename__ = "staff_notifications"

    id = Column(Integer, primary_key=True, index=True)
    staff_id = Column(Integer, ForeignKey("staff.staff_id", ondelete="CASCADE"), nullable=False, index=True)
    notification_id = Column(Integer, ForeignKey("notifications.id", ondelete="CASCADE"), index=True)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    type = Column(String(50), default="Info")
    priority = Column(String(20), default="Normal")
    is_read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, server_default=func.now())

    staff = relationship("Staff", back_populates="notifications")
