from pydantic import BaseModel, EmailStr, Field


class RegisterIn(BaseModel):
    username: str = Field(min_length=1, max_length=256)
    email: EmailStr
    password: str = Field(min_length=1)
    confirm_password: str


class LoginIn(BaseModel):
    email: str
    password: str


class LoginOut(BaseModel):
    token: str
    email: str
    must_change_password: bool


class ChangePasswordIn(BaseModel):
    new_password: str = Field(min_length=6)
    confirm_new_password: str


class ForgotPasswordIn(BaseModel):
    email: EmailStr


class ResetPasswordIn(BaseModel):
    email: EmailStr
    token: str = Field(min_length=1)
    new_password: str = Field(min_length=6)
    confirm_new_password: str
