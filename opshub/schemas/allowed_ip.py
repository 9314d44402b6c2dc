from pydantic import BaseModel, Field

from opshub.schemas.resource import IpAddress


class AllowedIpCreate(BaseModel):
    ip_address: IpAddress
    description: str | None = Field(default=None, max_length=500)


class AllowedIpOut(BaseModel):
    id: str
    ip_address: str
    description: str | None
    added_by_admin_id: str | None
