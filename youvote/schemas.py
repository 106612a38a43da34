from pydantic import BaseModel, EmailStr, Field

NAME_PATTERN = "^[a-zA-Z]+$"


class UserBase(BaseModel):
    first_name: str = Field(..., pattern=NAME_PATTERN)
    last_name: str = Field(..., pattern=NAME_PATTERN)
    email: EmailStr


class RegisterRequest(UserBase):
    pass


class AdminCreate(UserBase):
    pass


class VerifyRequest(BaseModel):
    email: EmailStr
    email_code: str = ""


class LoginRequest(BaseModel):
    email: EmailStr


class ValidateLoginRequest(BaseModel):
    email: EmailStr
    login_id: str
    login_password: str
