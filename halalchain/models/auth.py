from sqlmodel import SQLModel


class TokenData(SQLModel):
    address: str
