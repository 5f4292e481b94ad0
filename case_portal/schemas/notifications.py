from typing import Optional, Union, List
from pydantic import BaseModel

Identifier = Union[int, str]

class BroadcastCreate(BaseModel):
    title: Optional[str] = None
    message: Optional[str] = None
    type: str = "info"
    priority: str = "normal"
    targetPortals: List[str] = []

class TargetedSend(BaseModel):
    notificationId: Optional[Identifier] = None
    title: Optional[str] = None
    message: Optional[str] = None
    type: Optional[str] = None
    priority: Optional[str] = None
    department: Optional[str] = None
    section: Optional[str] = None

class InboxAction(BaseModel):
    notificationId: Optional[Identifier] = None
    action: str
