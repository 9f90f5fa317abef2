import uuid
from datetime import datetime
from typing import Optional, List, Dict, Any
from pydantic import Field, field_validator

from .common import ApiModel, TimestampedModel, Platform


# === Platform integrations ===

class IntegrationBase(ApiModel):
    platform: Platform
    name: str = Field(min_length=1)
    redirect_uri: Optional[str] = None
    scopes: Optional[str] = None
    tenant_id: Optional[str] = None
    active: bool = True


class IntegrationCreate(IntegrationBase):
    client_id: str = Field(min_length=1)
    client_secret: str = Field(min_length=1)


class IntegrationUpdate(ApiModel):
    name: Optional[str] = Field(default=None, min_length=1)
    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    redirect_uri: Optional[str] = None
    scopes: Optional[str] = None
    tenant_id: Optional[str] = None
    active: Optional[bool] = None


class IntegrationListItem(IntegrationBase, TimestampedModel):
    id: uuid.UUID
    platform: str
    connected: bool = False


class Integration(IntegrationListItem):
    client_id: str


class ClassSync(ApiModel):
    id: uuid.UUID
    external_class_id: str
    class_name: str
    integration_id: uuid.UUID
    last_synced_at: Optional[datetime] = None
    users_count: int = 0


class SyncResult(ApiModel):
    success: bool
    classes_count: int = 0
    students_count: int = 0
    error: Optional[str] = None


class AuthUrlResponse(ApiModel):
    auth_url: str


# === Webhooks ===

class WebhookCreate(ApiModel):
    integration_id: uuid.UUID
    url: str = Field(min_length=1)
    events: List[str] = Field(min_length=1)
    secret: Optional[str] = None

    @field_validator("url")
    @classmethod
    def _url(cls, value):
        if not (value.startswith("http://") or value.startswith("https://")):
            raise ValueError("url must be an http(s) URL")
        return value


class WebhookUpdate(ApiModel):
    url: Optional[str] = None
    events: Optional[List[str]] = None
    secret: Optional[str] = None
    active: Optional[bool] = None


class Webhook(TimestampedModel):
    id: uuid.UUID
    integration_id: uuid.UUID
    url: str
    events: List[str]
    secret: str
    active: bool

    @field_validator("events", mode="before")
    @classmethod
    def _split_events(cls, value):
        if isinstance(value, str):
            return [e.strip() for e in value.split(",") if e.strip()]
        return value


class WebhookTrigger(ApiModel):
    event: str = Field(min_length=1)
    data: Dict[str, Any] = {}


# === LTI ===

class LtiDeploymentCreate(ApiModel):
    integration_id: uuid.UUID
    deployment_id: str = Field(min_length=1)
    issuer: str = Field(min_length=1)
    client_id: str = Field(min_length=1)
    auth_login_url: str = Field(min_length=1)
    auth_token_url: str = Field(min_length=1)
    keyset_url: str = Field(min_length=1)


class LtiDeployment(LtiDeploymentCreate):
    id: uuid.UUID
    active: bool
    created_at: Optional[datetime] = None


class LtiLoginRequest(ApiModel):
    iss: str
    login_hint: str
    target_link_uri: str
    client_id: str
    deployment_id: str = Field(alias="lti_deployment_id")
    lti_message_hint: Optional[str] = None


class LtiLaunchRequest(ApiModel):
    id_token: str
    state: str


class LtiLaunchResult(ApiModel):
    sub: str
    name: Optional[str] = None
    email: Optional[str] = None
    roles: List[str] = []
    context: Optional[Dict[str, Any]] = None
