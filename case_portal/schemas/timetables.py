from typing import Optional, Union, List
from pydantic import BaseModel

Identifier = Union[int, str]

class TimetableEntryIn(BaseModel):
    day: Optional[str] = None
    period: Optional[Identifier] = None
    time: Optional[str] = None
    subject: Optional[str] = None
    faculty: Optional[str] = None
    room: Optional[str] = None
    type: Optional[str] = None

class TimetableIn(BaseModel):
    id: Optional[str] = None
    name: Optional[str] = None
    department: Optional[str] = None
    semester: Optional[Identifier] = None
    section: Optional[str] = None
    academic_year: Optional[str] = None
    faculty_id: Optional[Identifier] = None
    faculty_name: Optional[str] = None
    effective_from: Optional[str] = None
    is_active: Optional[bool] = None
    entries: Optional[List[TimetableEntryIn]] = None

class TimetableAssignIn(BaseModel):
    timetable_id: Optional[str] = None
    assignment_type: Optional[str] = None
    target_department: Optional[str] = None
    target_semester: Optional[Identifier] = None
    target_section: Optional[str] = None
    faculty_id: Optional[Identifier] = None
    faculty_name: Optional[str] = None
