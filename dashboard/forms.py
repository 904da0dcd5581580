from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Callable

from dashboard.kv_editor import BlankKeyError, DuplicateKeyError, KeyValueRows
from dashboard.models import (
    ContentMatch,
    EndpointCheck,
    SSLSettings,
    ValidationRules,
)

logger = logging.getLogger(__name__)

NANOS_PER_SECOND = 1_000_000_000
# Durations are int64 nanoseconds on the backend.
MAX_DURATION_S = (2**63 - 1) // NANOS_PER_SECOND

HTTP_METHODS = ("GET", "POST", "PUT", "HEAD", "DELETE", "PATCH")
CONTENT_MATCH_TYPES = ("", "exact", "regex")

DEFAULT_INTERVAL_S = 60
DEFAULT_TIMEOUT_S = 10
DEFAULT_STATUS_CODES = (200,)
DEFAULT_ALERT_DAYS = (30, 7, 1)

_LEADING_INT_RE = re.compile(r"[+-]?\d+")


@dataclass
class EndpointDraft:
    id: str | None = None
    name: str = ""
    url: str = ""
    method: str = "GET"
    interval_s: float | None = DEFAULT_INTERVAL_S
    timeout_s: float | None = DEFAULT_TIMEOUT_S
    headers: KeyValueRows = field(default_factory=KeyValueRows)
    status_codes: list[int] = field(default_factory=lambda: list(DEFAULT_STATUS_CODES))
    content_match: ContentMatch = field(default_factory=ContentMatch)
    alert_days: list[int] = field(default_factory=lambda: list(DEFAULT_ALERT_DAYS))
    tags: KeyValueRows = field(default_factory=KeyValueRows)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "url": self.url,
            "method": self.method,
            "interval_s": self.interval_s,
            "timeout_s": self.timeout_s,
            "headers": self.headers.pairs(),
            "status_codes": format_int_list(self.status_codes),
            "content_match": self.content_match.model_dump(),
            "alert_days": format_int_list(self.alert_days),
            "tags": self.tags.pairs(),
        }


@dataclass
class FieldError:
    field: str
    message: str


class DraftValidationError(ValueError):
    def __init__(self, errors: list[FieldError]) -> None:
        self.errors = errors
        super().__init__("; ".join(f"{e.field}: {e.message}" for e in errors))


def ns_to_seconds(ns: int) -> int | float:
    # Whole seconds stay ints; anything else is kept as a float.
    if ns % NANOS_PER_SECOND == 0:
        return ns // NANOS_PER_SECOND
    return ns / NANOS_PER_SECOND


def seconds_to_ns(seconds: float) -> int:
    if isinstance(seconds, int):
        return seconds * NANOS_PER_SECOND
    return int(round(seconds * NANOS_PER_SECOND))


def parse_int_list(text: str | None) -> list[int]:
    """Parse "200, 201" style input.

    Tokens without a leading integer are dropped silently and "201x"
    reads as 201, so configs typed by hand keep working.
    """
    values: list[int] = []
    for token in (text or "").split(","):
        m = _LEADING_INT_RE.match(token.strip())
        if m:
            values.append(int(m.group()))
    return values


def format_int_list(values: list[int]) -> str:
    return ", ".join(str(v) for v in values)


def new_draft() -> EndpointDraft:
    return EndpointDraft()


def to_draft(record: EndpointCheck) -> EndpointDraft:
    cm = record.validation.content_match
    return EndpointDraft(
        id=record.id,
        name=record.name,
        url=record.url,
        method=record.method,
        interval_s=ns_to_seconds(record.interval),
        timeout_s=ns_to_seconds(record.timeout),
        headers=KeyValueRows.from_mapping(record.headers),
        status_codes=list(record.validation.status_codes),
        content_match=ContentMatch(type=cm.type, pattern=cm.pattern) if cm else ContentMatch(),
        alert_days=list(record.ssl.expiration_alert_days),
        tags=KeyValueRows.from_mapping(record.tags),
    )


def normalize_content_match(cm: ContentMatch | None) -> ContentMatch | None:
    """Content validation is only persisted when it has a pattern.

    Without a pattern the whole object is dropped, whatever its type says.
    A pattern left behind after the type was set back to "none" goes too.
    """
    if cm is None or not cm.pattern or not cm.type:
        return None
    return ContentMatch(type=cm.type, pattern=cm.pattern)


def _mapping_or_error(
    rows: KeyValueRows, field_name: str, errors: list[FieldError]
) -> dict[str, str]:
    try:
        return rows.to_mapping()
    except DuplicateKeyError as exc:
        errors.append(FieldError(field_name, f"duplicate keys: {', '.join(exc.keys)}"))
    except BlankKeyError as exc:
        errors.append(FieldError(field_name, str(exc)))
    return {}


def _in_duration_range(seconds: float, minimum: float) -> bool:
    # NaN fails every comparison and infinity is above the bound.
    return minimum <= seconds <= MAX_DURATION_S


def validate_draft(draft: EndpointDraft) -> list[FieldError]:
    errors: list[FieldError] = []
    if not draft.name.strip():
        errors.append(FieldError("name", "name is required"))
    if not draft.url.strip():
        errors.append(FieldError("url", "url is required"))
    if draft.method not in HTTP_METHODS:
        errors.append(FieldError("method", f"unsupported method {draft.method!r}"))
    if draft.interval_s is None or not _in_duration_range(draft.interval_s, 1):
        errors.append(
            FieldError(
                "interval_s", f"interval must be between 1 and {MAX_DURATION_S} seconds"
            )
        )
    if draft.timeout_s is not None and not _in_duration_range(draft.timeout_s, 0):
        errors.append(
            FieldError("timeout_s", f"timeout must be between 0 and {MAX_DURATION_S} seconds")
        )
    if draft.content_match.type not in CONTENT_MATCH_TYPES:
        errors.append(
            FieldError("content_match", f"unknown match type {draft.content_match.type!r}")
        )
    _mapping_or_error(draft.headers, "headers", errors)
    _mapping_or_error(draft.tags, "tags", errors)
    return errors


def to_record(draft: EndpointDraft) -> EndpointCheck:
    errors = validate_draft(draft)
    if errors:
        logger.info("Rejected endpoint draft: %s", errors)
        raise DraftValidationError(errors)

    return EndpointCheck(
        id=draft.id,
        name=draft.name,
        url=draft.url,
        method=draft.method,
        interval=seconds_to_ns(draft.interval_s),
        # Unset or zero timeout falls back to the default.
        timeout=seconds_to_ns(draft.timeout_s or DEFAULT_TIMEOUT_S),
        headers=draft.headers.to_mapping(),
        validation=ValidationRules(
            status_codes=list(draft.status_codes),
            content_match=normalize_content_match(draft.content_match),
        ),
        ssl=SSLSettings(expiration_alert_days=list(draft.alert_days)),
        tags=draft.tags.to_mapping(),
    )


def confirm_and_delete(
    delete: Callable[[str], None],
    endpoint_id: str,
    confirm: Callable[[], bool],
) -> bool:
    """Run `delete` only once the user said yes. A no is not an error."""
    if not confirm():
        return False
    delete(endpoint_id)
    return True
