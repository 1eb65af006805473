from pydantic import BaseModel, EmailStr, ConfigDict


class LoginPayload(BaseModel):
    email: EmailStr
    password: str
    model_config = ConfigDict(extra="forbid")


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
