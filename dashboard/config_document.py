from __future__ import annotations

import yaml
from pydantic import ValidationError

from dashboard.models import MonitorConfig


class ConfigDocumentError(ValueError):
    pass


def dump_config_document(config: MonitorConfig) -> str:
    return yaml.safe_dump(
        config.to_payload(),
        sort_keys=False,
        default_flow_style=False,
        allow_unicode=True,
    )


def parse_config_document(text: str) -> MonitorConfig:
    """Parse an edited config document. JSON input is accepted too."""
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigDocumentError(f"Invalid config document: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigDocumentError("Invalid config document: expected a mapping")

    try:
        config = MonitorConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigDocumentError(f"Invalid config document: {exc}") from exc

    seen = set()
    for ep in config.endpoints:
        if ep.id is None:
            continue
        if ep.id in seen:
            raise ConfigDocumentError(f"Duplicate endpoint id: {ep.id}")
        seen.add(ep.id)
    return config
