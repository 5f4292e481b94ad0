from typing import Optional, Union, Dict
from pydantic import BaseModel

Identifier = Union[int, str]

class StudentCreate(BaseModel):
    student_id: Optional[Identifier] = None
    name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    email_id: Optional[str] = None
    phone: Optional[str] = None
    contact_number: Optional[str] = None
    department: Optional[str] = None
    semester: Optional[Identifier] = None
    section: Optional[str] = None
    admission_year: Optional[Identifier] = None
    date_of_birth: Optional[str] = None
    address: Optional[str] = None
    guardian_name: Optional[str] = None
    guardian_phone: Optional[str] = None
    password: Optional[str] = None

class StudentUpdate(StudentCreate):
    id: Optional[Identifier] = None
    is_active: Optional[bool] = None

class StudentExportFilters(BaseModel):
    department: Optional[str] = None
    semester: Optional[Identifier] = None
    section: Optional[str] = None
    status: Optional[str] = None
    attendance: Optional[str] = None

class StudentExportRequest(BaseModel):
    format: str = "json"
    filters: StudentExportFilters = StudentExportFilters()
    includeFields: Dict[str, bool] = {}
