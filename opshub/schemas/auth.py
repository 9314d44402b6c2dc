from pydantic import BaseModel, EmailStr, Field


class SignupIn(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    email: EmailStr
    password: str = Field(min_length=8, max_length=200)


class LoginIn(BaseModel):
    email: EmailStr
    password: str


class SessionOut(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_at: str
    user_id: str
    role: str


class BootstrapAdminIn(SignupIn):
    pass
