from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import List, Optional
from datetime import datetime
from models.users import UserRole

# Shared properties for user models
class UserBase(BaseModel):
    email: EmailStr

# Schema for user authentication credentials
class UserLogin(UserBase):
    password: str = Field(min_length=1)

# Schema for accounts created by an administrator
class UserCreate(UserBase):
    name: str = Field(min_length=1)
    password: str = Field(min_length=6)
    role: UserRole = UserRole.solicitante
    school: Optional[str] = None

# Schema for administrative user updates, all fields optional
class UserUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(default=None, min_length=6)
    role: Optional[UserRole] = None
    school: Optional[str] = None

# Output schema for user profile details, never carries the password hash
class UserResponse(UserBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    role: UserRole
    school: Optional[str] = None
    created_at: Optional[datetime] = None

# Paginated user list
class UserPage(BaseModel):
    items: List[UserResponse]
    total: int
    page: int
    page_size: int

# Login response: bearer token plus the authenticated profile
class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse
