from pydantic import BaseModel


class TokenPayload(BaseModel):
    sub: str  # user id
    exp: int
    type: str = "access"
