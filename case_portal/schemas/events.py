from typing import Optional, Union
from pydantic import BaseModel

Identifier = Union[int, str]
Number = Union[int, float, str]

class EventBase(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    event_date: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    venue: Optional[str] = None
    organizer: Optional[str] = None
    department: Optional[str] = None
    category_id: Optional[Identifier] = None
    category_name: Optional[str] = None
    max_participants: Optional[Number] = None
    registration_deadline: Optional[str] = None
    fee: Optional[Number] = None
    priority: Optional[str] = None
    is_public: Optional[bool] = None
    status: Optional[str] = None

class EventCreate(EventBase):
    pass

class EventUpdate(EventBase):
    id: Optional[Identifier] = None
