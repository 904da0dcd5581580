from __future__ import annotations

import re
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# RFC3339 with nanosecond fractions, e.g. 2026-02-23T14:11:45.123456789Z
_FRACTION_RE = re.compile(r"(\.\d{6})\d+")


def _truncate_fraction(value: Any) -> Any:
    if isinstance(value, str):
        return _FRACTION_RE.sub(r"\1", value, count=1)
    return value


class ContentMatch(BaseModel):
    type: str = ""  # "exact", "regex" or "" for none
    pattern: str = ""


class ValidationRules(BaseModel):
    status_codes: List[int] = Field(default_factory=list)
    content_match: Optional[ContentMatch] = None

    @field_validator("status_codes", mode="before")
    @classmethod
    def _none_status_codes(cls, value: Any) -> Any:
        return [] if value is None else value


class SSLSettings(BaseModel):
    expiration_alert_days: List[int] = Field(default_factory=list)

    @field_validator("expiration_alert_days", mode="before")
    @classmethod
    def _none_alert_days(cls, value: Any) -> Any:
        return [] if value is None else value


class EndpointCheck(BaseModel):
    id: Optional[str] = None
    name: str = ""
    url: str = ""
    method: str = "GET"
    interval: int = 0  # nanoseconds
    timeout: int = 0  # nanoseconds
    headers: Dict[str, str] = Field(default_factory=dict)
    validation: ValidationRules = Field(default_factory=ValidationRules)
    ssl: SSLSettings = Field(default_factory=SSLSettings)
    tags: Dict[str, str] = Field(default_factory=dict)

    @field_validator("headers", "tags", mode="before")
    @classmethod
    def _none_mapping(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator("validation", mode="before")
    @classmethod
    def _none_validation(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator("ssl", mode="before")
    @classmethod
    def _none_ssl(cls, value: Any) -> Any:
        return {} if value is None else value

    def to_payload(self) -> dict[str, Any]:
        """Request body for the backend; drafts-to-be-created carry no id."""
        return self.model_dump(exclude_none=True)


class GlobalSettings(BaseModel):
    check_interval: int = 0  # nanoseconds
    request_timeout: int = 0  # nanoseconds


class MonitorConfig(BaseModel):
    # alert_channels, alert_rules, satellites... are kept untouched
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    global_: GlobalSettings = Field(default_factory=GlobalSettings, alias="global")
    endpoints: List[EndpointCheck] = Field(default_factory=list)

    @field_validator("global_", mode="before")
    @classmethod
    def _none_global(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator("endpoints", mode="before")
    @classmethod
    def _none_endpoints(cls, value: Any) -> Any:
        return [] if value is None else value

    def find_endpoint(self, endpoint_id: str) -> EndpointCheck | None:
        for ep in self.endpoints:
            if ep.id == endpoint_id:
                return ep
        return None

    def to_payload(self) -> dict[str, Any]:
        payload = self.model_dump(by_alias=True)
        payload["endpoints"] = [ep.to_payload() for ep in self.endpoints]
        return payload


class CheckResult(BaseModel):
    # History rows from the backend do not repeat the endpoint id.
    endpoint_id: str = ""
    timestamp: datetime
    duration_ns: int = Field(default=0, ge=0)
    status_code: int = 0
    success: bool = False
    error: Optional[str] = None
    cert_expiry: Optional[datetime] = None
    cert_issuer: Optional[str] = None
    cert_subject: Optional[str] = None

    @field_validator("timestamp", "cert_expiry", mode="before")
    @classmethod
    def _parse_rfc3339(cls, value: Any) -> Any:
        return _truncate_fraction(value)

    @field_validator("cert_expiry")
    @classmethod
    def _zero_time_is_absent(cls, value: Optional[datetime]) -> Optional[datetime]:
        # Non-TLS checks carry the zero instant 0001-01-01T00:00:00Z.
        if value is not None and value.year == 1:
            return None
        return value
