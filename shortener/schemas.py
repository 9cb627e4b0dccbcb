from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from shortener import validators


class LinkCreate(BaseModel):
    original_url: str
    custom_code: str | None = None

    # JSON bodies use camelCase: {"originalUrl": ..., "customCode": ...}
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    @field_validator("original_url")
    @classmethod
    def check_url(cls, v: str) -> str:
        ok, error = validators.is_valid_url(v)
        if not ok:
            raise ValueError(error)
        return v

    @field_validator("custom_code")
    @classmethod
    def check_code(cls, v: str | None) -> str | None:
        if v is None:
            return v
        ok, error = validators.is_valid_code(v)
        if not ok:
            raise ValueError(error)
        return v


class LinkOut(BaseModel):
    code: str
    original_url: str
    clicks: int
    created_at: datetime
    last_clicked: datetime | None = None

    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)

    # SQLite hands back naive values for timezone-aware columns; they are stored as UTC
    @field_validator("created_at", "last_clicked")
    @classmethod
    def as_utc(cls, v: datetime | None) -> datetime | None:
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


class LinkCreated(LinkOut):
    short_url: str


class ErrorOut(BaseModel):
    error: str
    code: str
    details: str | None = None


class HealthOut(BaseModel):
    ok: bool
    version: str
    timestamp: datetime
    uptime: float
