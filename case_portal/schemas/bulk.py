from typing import Any, Optional
from pydantic import BaseModel

class BulkOperationRequest(BaseModel):
    operation: str
    type: Optional[str] = None
    data: Any = None
