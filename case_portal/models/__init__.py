# Import all models to ensure they're registered with SQLAlchemy
from case_portal.database import Base
from case_portal.models.notifications import Notification
from case_portal.models.staff import Staff, StaffAttendance, StaffLeave, StaffNotification
from case_portal.models.students import (
    Student, Subject, StudentAttendance, StudentMarks, InternalMarks, StudentAssignment, StudentNotification,
)
from case_portal.models.parents import Parent, ParentChild, ParentNotification
from case_portal.models.events import EventCategory, Event, EventRegistration, EventAttendee
from case_portal.models.notes import Note, Feedback
from case_portal.models.timetables import Timetable, TimetableEntry, TimetableAssignment
