from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Date, ForeignKey, Text, Numeric, Boolean
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from case_portal.database import Base

# Event category model
class EventCategory(Base):
    __tablename__ = "event_categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False)
    description = Column(Text)
    color = Column(String(20), default="#3B82F6")
    created_at = Column(DateTime, default=datetime.utcnow, server_default=func.now())

    events = relationship("Event", back_populates="category")

# Event model
class Event(Base):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text)
    event_date = Column(Date, nullable=False, index=True)
    start_time = Column(String(20))
    end_time = Column(String(20))
    venue = Column(String(255))
    organizer = Column(String(255))
    department = Column(String(100))
    category_id = Column(Integer, ForeignKey("event_categories.id", ondelete="SET NULL"))
    max_participants = Column(Integer)
    registration_deadline = Column(Date)
    fee = Column(Numeric(10, 2), default=0)
    priority = Column(String(20), default="Normal")
    is_public = Column(Boolean, default=True, nullable=False)
    status = Column(String(20), default="Upcoming")
    created_at = Column(DateTime, default=datetime.utcnow, server_default=func.now())
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, server_default=func.now())

    # Relationships
    category = relationship("EventCategory", back_populates="events")
    registrations = relationship("EventRegistration", back_populates="event")
    attendees = relationship("EventAttendee", back_populates="event")

# Event registration model
class EventRegistration(Base):
    __tablename__ = "event_registrations"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    participant_name = Column(String(255), nullable=False)
    participant_email = Column(String(255))
    participant_type = Column(String(20), default="student")
    status = Column(String(20), default="Registered")
    registered_at = Column(DateTime, default=datetime.utcnow, server_default=func.now())

    event = relationship("Event", back_populates="registrations")

# Event attendee model
class EventAttendee(Base):
    __tablename__ = "event_attendees"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    attendee_name = Column(String(255), nullable=False)
    attendee_email = Column(String(255))
    checked_in_at = Column(DateTime, default=datetime.utcnow, server_default=func.now())

    event = relationship("Event", back_populates="attendees")
