from __future__ import annotations

from typing import Any, Literal
from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    status: str = Field(description="Health status")


class ConfigResponse(BaseModel):
    monitor_api_base_url: str
    monitor_api_prefix: str
    timeout_s: float = Field(gt=0)


class RangeOption(BaseModel):
    value: str
    label: str


class OverviewEndpoint(BaseModel):
    id: str | None = None
    name: str
    url: str
    method: str
    interval_s: float


class OverviewResponse(BaseModel):
    total_endpoints: int
    check_interval_s: float
    request_timeout_s: float
    endpoints: list[OverviewEndpoint]
    ranges: list[RangeOption]


class EndpointIdentity(BaseModel):
    id: str
    name: str
    url: str
    method: str


class HistoryQueryInfo(BaseModel):
    duration: str | None = None
    start: str | None = None
    end: str | None = None


class SummaryResponse(BaseModel):
    total: int
    successes: int
    availability_pct: float = Field(ge=0, le=100)
    avg_latency_ms: float
    min_latency_ms: float
    max_latency_ms: float
    health: Literal["healthy", "unhealthy", "unknown"]
    last_result: dict[str, Any] | None = None
    display: dict[str, str] = Field(default_factory=dict)


class SeriesPointResponse(BaseModel):
    timestamp: str
    time: str
    duration_ms: float
    success: int
    status: Literal["success", "failure"]
    color: str
    error: str


class CertificateResponse(BaseModel):
    expires_at: str
    days_remaining: int
    issuer: str | None = None
    subject: str | None = None
    label: str = ""


class StripCell(BaseModel):
    timestamp: str | None = None
    success: bool
    title: str


class AvailabilityStripResponse(BaseModel):
    limit: int
    cells: list[StripCell]
    placeholders: int


class EndpointStatsResponse(BaseModel):
    endpoint: EndpointIdentity
    pending: bool
    query: HistoryQueryInfo | None = None
    summary: SummaryResponse | None = None
    series: list[SeriesPointResponse] = Field(default_factory=list)
    certificate: CertificateResponse | None = None
    availability: AvailabilityStripResponse | None = None


class KeyValueRowIn(BaseModel):
    key: str = ""
    value: str = ""


class KeyValueRowOut(BaseModel):
    row_id: int
    key: str
    value: str


class ContentMatchIn(BaseModel):
    type: str = ""
    pattern: str = ""


class DraftRequest(BaseModel):
    name: str = ""
    url: str = ""
    method: str = "GET"
    interval_s: float | None = Field(default=60, allow_inf_nan=False)
    timeout_s: float | None = Field(default=10, allow_inf_nan=False)
    headers: list[KeyValueRowIn] = Field(default_factory=list)
    status_codes: str = Field(default="200", description="Comma separated, e.g. '200, 201'")
    content_match: ContentMatchIn = Field(default_factory=ContentMatchIn)
    alert_days: str = Field(default="30, 7, 1", description="Comma separated days before expiry")
    tags: list[KeyValueRowIn] = Field(default_factory=list)


class DraftResponse(BaseModel):
    id: str | None = None
    name: str
    url: str
    method: str
    interval_s: float | None = None
    timeout_s: float | None = None
    headers: list[KeyValueRowOut]
    status_codes: str
    content_match: ContentMatchIn
    alert_days: str
    tags: list[KeyValueRowOut]


class SaveResponse(BaseModel):
    ok: bool
    id: str | None = None
    record: dict[str, Any]


class DeleteResponse(BaseModel):
    deleted: bool
    id: str


class ConfigDocumentRequest(BaseModel):
    text: str


class ConfigDocumentResponse(BaseModel):
    text: str
    endpoints: int
