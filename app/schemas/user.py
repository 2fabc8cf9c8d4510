from typing import Literal, Optional
from pydantic import BaseModel, ConfigDict

class UserBase(BaseModel):
    username: str

class UserCreate(UserBase):
    password: str
    full_name: str = ""
    email: Optional[str] = None
    role: Literal["student", "faculty"] = "student"

class UserOut(UserBase):
    id: int
    full_name: str
    email: Optional[str] = None
    role: str
    model_config = ConfigDict(from_attributes=True)

class StudentOut(BaseModel):
    id: int
    full_name: str
    email: Optional[str] = None
    model_config = ConfigDict(from_attributes=True)
