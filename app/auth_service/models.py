from pydantic import BaseModel, Field

class LoginRequest(BaseModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)

class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int

class CurrentUser(BaseModel):
    """Identity resolved from a verified session token."""
    user_id: str
    email: str
