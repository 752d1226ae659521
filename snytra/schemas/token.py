"""
Pydantic schemas for authentication and tokens
"""

from pydantic import BaseModel, Field, EmailStr


class LoginRequest(BaseModel):
    """Login credentials"""
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=100)


class TokenResponse(BaseModel):
    """Token response"""
    access_token: str
    token_type: str = "bearer"
    user_id: int
    role: str
