from sqlmodel import SQLModel, Field


class RoleChange(SQLModel):
    role: str = Field(
        description="producer, halal_authority, distributor or retailer (PRODUCER_ROLE style names accepted)")
    account: str = Field(description="Identity gaining or losing the role")


class RoleCheckRead(SQLModel):
    role: str
    account: str
    has_role: bool


class AdminRead(SQLModel):
    admin_address: str
