from typing import Optional
from pydantic import BaseModel, EmailStr, Field

class FeedbackCreate(BaseModel):
    name: str = Field(..., min_length=1)
    email: Optional[EmailStr] = None
    category: Optional[str] = "General"
    message: str = Field(..., min_length=1)
    rating: Optional[int] = Field(None, ge=1, le=5)
