import logging
from contextlib import contextmanager
from typing import Annotated

from fastapi import Depends, FastAPI, HTTPException, Query, Request

from dashboard.aggregation import (
    aggregate,
    availability_strip,
    certificate_summary,
    to_series,
)
from dashboard.api_schemas import (
    ConfigDocumentRequest,
    ConfigDocumentResponse,
    ConfigResponse,
    DeleteResponse,
    DraftRequest,
    DraftResponse,
    EndpointStatsResponse,
    HealthResponse,
    OverviewResponse,
    SaveResponse,
)
from dashboard.clients.monitor_api import (
    EndpointNotFoundError,
    MonitorApiClient,
    MonitorApiError,
    MonitorApiResponseError,
)
from dashboard.config import settings
from dashboard.config_document import (
    ConfigDocumentError,
    dump_config_document,
    parse_config_document,
)
from dashboard.forms import (
    DraftValidationError,
    EndpointDraft,
    confirm_and_delete,
    new_draft,
    ns_to_seconds,
    parse_int_list,
    to_draft,
    to_record,
)
from dashboard.kv_editor import KeyValueRows
from dashboard.models import ContentMatch
from dashboard.ranges import (
    RANGE_OPTIONS,
    InvalidRangeError,
    Pending,
    parse_selection,
    resolve,
)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Endpoint Monitor Dashboard",
    version="1.0.0",
    description=(
        "Dashboard service for an endpoint health monitor: availability and "
        "latency statistics over selectable time ranges, and editing of the "
        "endpoint checks the monitor runs."
    ),
)


def get_client(request: Request) -> MonitorApiClient:
    return MonitorApiClient(cookies=request.cookies)


@contextmanager
def backend_errors():
    try:
        yield
    except EndpointNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except MonitorApiResponseError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.body or str(exc)) from exc
    except MonitorApiError as exc:
        logger.error("Monitor API call failed: %s", exc)
        raise HTTPException(
            status_code=502,
            detail=f"Monitor API unavailable, try again: {exc}",
        ) from exc


def _validation_error(exc: DraftValidationError) -> HTTPException:
    return HTTPException(
        status_code=422,
        detail=[{"field": e.field, "message": e.message} for e in exc.errors],
    )


def _draft_from_request(body: DraftRequest, endpoint_id: str | None = None) -> EndpointDraft:
    return EndpointDraft(
        id=endpoint_id,
        name=body.name,
        url=body.url,
        method=body.method,
        interval_s=body.interval_s,
        timeout_s=body.timeout_s,
        headers=KeyValueRows.from_pairs((r.key, r.value) for r in body.headers),
        status_codes=parse_int_list(body.status_codes),
        content_match=ContentMatch(**body.content_match.model_dump()),
        alert_days=parse_int_list(body.alert_days),
        tags=KeyValueRows.from_pairs((r.key, r.value) for r in body.tags),
    )


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["system"],
    summary="Health Check",
    description="Liveness endpoint used by orchestration health checks.",
)
def health():
    return {"status": "ok"}


@app.get(
    "/config",
    response_model=ConfigResponse,
    tags=["system"],
    summary="Current Effective Config",
    description="Returns non-secret runtime config values.",
)
def config():
    return {
        "monitor_api_base_url": settings.MONITOR_API_BASE_URL,
        "monitor_api_prefix": settings.MONITOR_API_PREFIX,
        "timeout_s": settings.MONITOR_API_TIMEOUT_SECONDS,
    }


@app.get(
    "/api/overview",
    response_model=OverviewResponse,
    tags=["dashboard"],
    summary="Endpoint Overview",
    description="Configured endpoints and the selectable history ranges.",
)
def overview(client: Annotated[MonitorApiClient, Depends(get_client)]):
    with backend_errors():
        cfg = client.get_config()

    return {
        "total_endpoints": len(cfg.endpoints),
        "check_interval_s": ns_to_seconds(cfg.global_.check_interval),
        "request_timeout_s": ns_to_seconds(cfg.global_.request_timeout),
        "endpoints": [
            {
                "id": ep.id,
                "name": ep.name,
                "url": ep.url,
                "method": ep.method,
                "interval_s": ns_to_seconds(ep.interval),
            }
            for ep in cfg.endpoints
        ],
        "ranges": [{"value": value, "label": label} for value, label in RANGE_OPTIONS],
    }


@app.get(
    "/api/endpoints/{endpoint_id}/stats",
    response_model=EndpointStatsResponse,
    tags=["dashboard"],
    summary="Endpoint Statistics",
    description=(
        "Availability, latency and chart series for one endpoint. A custom "
        "range missing a bound reports pending without querying history."
    ),
)
def endpoint_stats(
    endpoint_id: str,
    client: Annotated[MonitorApiClient, Depends(get_client)],
    range_token: Annotated[str | None, Query(alias="range")] = None,
    start: Annotated[str | None, Query(alias="from")] = None,
    end: Annotated[str | None, Query(alias="to")] = None,
):
    try:
        selection = parse_selection(range_token, start, end)
    except InvalidRangeError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    with backend_errors():
        endpoint = client.get_endpoint(endpoint_id)

    identity = {
        "id": endpoint_id,
        "name": endpoint.name,
        "url": endpoint.url,
        "method": endpoint.method,
    }
    query = resolve(selection)
    if isinstance(query, Pending):
        return {"endpoint": identity, "pending": True}

    with backend_errors():
        results = client.get_history(endpoint_id, query)

    cert = certificate_summary(results)
    return {
        "endpoint": identity,
        "pending": False,
        "query": {"duration": query.duration, "start": query.start, "end": query.end},
        "summary": aggregate(results).to_dict(),
        "series": [p.to_dict() for p in to_series(results)],
        "certificate": cert.to_dict() if cert else None,
        "availability": availability_strip(
            results, limit=settings.AVAILABILITY_STRIP_LIMIT
        ),
    }


@app.get(
    "/api/drafts/new",
    response_model=DraftResponse,
    tags=["endpoints"],
    summary="New Endpoint Draft",
    description="Form defaults for a new endpoint check.",
)
def draft_new():
    return new_draft().to_dict()


@app.get(
    "/api/endpoints/{endpoint_id}/draft",
    response_model=DraftResponse,
    tags=["endpoints"],
    summary="Endpoint Draft",
    description="Editable form model for an existing endpoint check.",
)
def endpoint_draft(
    endpoint_id: str,
    client: Annotated[MonitorApiClient, Depends(get_client)],
):
    with backend_errors():
        endpoint = client.get_endpoint(endpoint_id)
    return to_draft(endpoint).to_dict()


@app.post(
    "/api/endpoints",
    response_model=SaveResponse,
    tags=["endpoints"],
    summary="Create Endpoint",
    description="Validates a draft and creates the endpoint check.",
)
def create_endpoint(
    body: DraftRequest,
    client: Annotated[MonitorApiClient, Depends(get_client)],
):
    try:
        record = to_record(_draft_from_request(body))
    except DraftValidationError as exc:
        raise _validation_error(exc) from exc

    with backend_errors():
        client.create_endpoint(record)
    return {"ok": True, "id": None, "record": record.to_payload()}


@app.put(
    "/api/endpoints/{endpoint_id}",
    response_model=SaveResponse,
    tags=["endpoints"],
    summary="Update Endpoint",
    description="Validates a draft and replaces the endpoint check with the same id.",
)
def update_endpoint(
    endpoint_id: str,
    body: DraftRequest,
    client: Annotated[MonitorApiClient, Depends(get_client)],
):
    try:
        record = to_record(_draft_from_request(body, endpoint_id=endpoint_id))
    except DraftValidationError as exc:
        raise _validation_error(exc) from exc

    with backend_errors():
        client.update_endpoint(endpoint_id, record)
    return {"ok": True, "id": endpoint_id, "record": record.to_payload()}


@app.delete(
    "/api/endpoints/{endpoint_id}",
    response_model=DeleteResponse,
    tags=["endpoints"],
    summary="Delete Endpoint",
    description="Deletes the endpoint check once confirm=true; otherwise nothing happens.",
)
def delete_endpoint(
    endpoint_id: str,
    client: Annotated[MonitorApiClient, Depends(get_client)],
    confirm: Annotated[bool, Query(description="User confirmed the deletion")] = False,
):
    with backend_errors():
        deleted = confirm_and_delete(client.delete_endpoint, endpoint_id, lambda: confirm)
    return {"deleted": deleted, "id": endpoint_id}


@app.get(
    "/api/config/document",
    response_model=ConfigDocumentResponse,
    tags=["config"],
    summary="Config Document",
    description="The whole monitor config as an editable YAML document.",
)
def config_document(client: Annotated[MonitorApiClient, Depends(get_client)]):
    with backend_errors():
        cfg = client.get_config()
    return {"text": dump_config_document(cfg), "endpoints": len(cfg.endpoints)}


@app.put(
    "/api/config/document",
    response_model=ConfigDocumentResponse,
    tags=["config"],
    summary="Replace Config",
    description="Parses an edited config document and submits it as the whole config.",
)
def replace_config_document(
    body: ConfigDocumentRequest,
    client: Annotated[MonitorApiClient, Depends(get_client)],
):
    try:
        cfg = parse_config_document(body.text)
    except ConfigDocumentError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    with backend_errors():
        client.replace_config(cfg)
    return {"text": dump_config_document(cfg), "endpoints": len(cfg.endpoints)}
