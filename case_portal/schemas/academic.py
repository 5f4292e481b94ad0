from typing import Optional, Union, List
from pydantic import BaseModel

Identifier = Union[int, str]
Mark = Union[int, float, str]

# Assignment schemas
class AssignmentItem(BaseModel):
    studentId: Identifier
    subjectId: Optional[Identifier] = None
    title: str
    dueDate: str
    description: Optional[str] = None
    maxMarks: Optional[Identifier] = None

class AssignmentCreate(BaseModel):
    bulkData: Optional[List[AssignmentItem]] = None
    studentId: Optional[Identifier] = None
    subjectId: Optional[Identifier] = None
    title: Optional[str] = None
    dueDate: Optional[str] = None
    description: Optional[str] = None
    maxMarks: Optional[Identifier] = None

class AssignmentUpdate(BaseModel):
    title: Optional[str] = None
    dueDate: Optional[str] = None
    description: Optional[str] = None
    maxMarks: Optional[Identifier] = None
    subjectId: Optional[Identifier] = None
    status: Optional[str] = None
    obtainedMarks: Optional[Identifier] = None
    grade: Optional[str] = None
    feedback: Optional[str] = None
    submissionLink: Optional[str] = None

# Internal mark schemas
class InternalMarksCreate(BaseModel):
    student_id: Optional[Identifier] = None
    subject: Optional[str] = None
    academic_year: Optional[str] = None
    internal1_marks: Optional[Mark] = None
    internal2_marks: Optional[Mark] = None
    assignment_marks: Optional[Mark] = None

class InternalMarksUpdate(BaseModel):
    subject: Optional[str] = None
    academic_year: Optional[str] = None
    internal1_marks: Optional[Mark] = None
    internal2_marks: Optional[Mark] = None
    assignment_marks: Optional[Mark] = None
