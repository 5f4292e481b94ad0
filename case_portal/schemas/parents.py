from typing import Optional, Union
from pydantic import BaseModel

Identifier = Union[int, str]

class ParentBase(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    username: Optional[str] = None
    child_email: Optional[str] = None
    contact_number: Optional[str] = None
    relationship: Optional[str] = None
    department: Optional[str] = None

class ParentCreate(ParentBase):
    password: Optional[str] = None

class ParentUpdate(ParentBase):
    parent_id: Optional[Identifier] = None
    id: Optional[Identifier] = None
    password: Optional[str] = None
    is_active: Optional[bool] = None

class ParentLinkRequest(BaseModel):
    studentId: Identifier
