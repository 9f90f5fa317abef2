import uuid
from typing import Optional
from pydantic import Field

from .common import ApiModel, TimestampedModel


class SchoolNetworkBase(ApiModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    code: Optional[str] = None
    active: bool = True


class SchoolNetworkCreate(SchoolNetworkBase):
    pass


class SchoolNetworkUpdate(ApiModel):
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    code: Optional[str] = None
    active: Optional[bool] = None


class SchoolNetwork(SchoolNetworkBase, TimestampedModel):
    id: uuid.UUID
    schools_count: int = 0


class SchoolBase(ApiModel):
    name: str = Field(min_length=1)
    code: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    active: bool = True
    network_id: Optional[uuid.UUID] = None


class SchoolCreate(SchoolBase):
    pass


class SchoolUpdate(ApiModel):
    name: Optional[str] = Field(default=None, min_length=1)
    code: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    active: Optional[bool] = None
    network_id: Optional[uuid.UUID] = None


class School(SchoolBase, TimestampedModel):
    id: uuid.UUID
    users_count: int = 0
    students_count: int = 0
    teams_count: int = 0
