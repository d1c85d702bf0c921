from pydantic import BaseModel

class LoginIn(BaseModel):
    username: str | None = None
    password: str | None = None

class TokenOut(BaseModel):
    token: str

class MessageOut(BaseModel):
    message: str
