from typing import Optional, Union
from pydantic import BaseModel

Identifier = Union[int, str]
Number = Union[int, float, str]

class StaffBase(BaseModel):
    first_name: Optional[str] = None
    firstName: Optional[str] = None
    last_name: Optional[str] = None
    lastName: Optional[str] = None
    username: Optional[str] = None
    email: Optional[str] = None
    contact_number: Optional[str] = None
    contactNumber: Optional[str] = None
    phone: Optional[str] = None
    department: Optional[str] = None
    block_number: Optional[str] = None
    blockNumber: Optional[str] = None
    room_number: Optional[str] = None
    roomNumber: Optional[str] = None
    role: Optional[str] = None
    availability: Optional[str] = None
    salary: Optional[Number] = None
    experience: Optional[Number] = None
    hire_date: Optional[str] = None
    hireDate: Optional[str] = None
    profile_picture: Optional[str] = None
    password: Optional[str] = None

class StaffCreate(StaffBase):
    pass

class StaffUpdate(StaffBase):
    staff_id: Optional[Identifier] = None
    is_active: Optional[bool] = None
