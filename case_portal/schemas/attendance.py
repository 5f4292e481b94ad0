from typing import Optional, Union, List
from enum import Enum
from pydantic import BaseModel

Identifier = Union[int, str]

class AttendanceStatusEnum(str, Enum):
    present = "Present"
    absent = "Absent"
    late = "Late"
    excused = "Excused"

class AttendanceRecord(BaseModel):
    studentId: Identifier
    date: str
    status: AttendanceStatusEnum
    subjectId: Optional[Identifier] = None
    subject: Optional[str] = None

class AttendanceCreate(BaseModel):
    bulkData: Optional[List[AttendanceRecord]] = None
    studentId: Optional[Identifier] = None
    date: Optional[str] = None
    status: Optional[AttendanceStatusEnum] = None
    subjectId: Optional[Identifier] = None
    subject: Optional[str] = None

class AttendanceUpdate(BaseModel):
    status: Optional[AttendanceStatusEnum] = None
