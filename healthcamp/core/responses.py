"""
Response envelope shared by every endpoint: {success, message?, data?}.
"""
from typing import Generic, Optional, TypeVar
from pydantic import BaseModel

T = TypeVar("T")

class ApiResponse(BaseModel, Generic[T]):
    """
    Standard response envelope.
    
    Fields:
    - success: Whether the operation succeeded
    - message: Human-readable outcome
    - data: Operation payload
    """
    success: bool = True
    message: Optional[str] = None
    data: Optional[T] = None
