from __future__ import annotations
import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import jsonschema

from ..extraction.client import DEFAULT_AI_BASE_URL
from ..fetchers.content import DEFAULT_USER_AGENT

_SCHEMA_PATH = Path(__file__).parent / "schemas" / "import-settings.schema.json"

DEFAULT_API_BASE_URL = "http://localhost:3000"

ENV_OVERRIDES = {
    "FAIR_IMPORTER_API_URL": "api_base_url",
    "FAIR_IMPORTER_API_TOKEN": "api_token",
    "CLOUDFLARE_ACCOUNT_ID": "ai_account_id",
    "CLOUDFLARE_API_TOKEN": "ai_api_token",
    "FAIR_IMPORTER_AI_URL": "ai_base_url",
}


class ConfigValidationError(Exception):
    pass


@dataclass
class ImportSettings:
    api_base_url: str = DEFAULT_API_BASE_URL
    api_token: Optional[str] = None
    ai_account_id: Optional[str] = None
    ai_api_token: Optional[str] = None
    ai_base_url: str = DEFAULT_AI_BASE_URL
    fetch_timeout: int = 15
    user_agent: str = DEFAULT_USER_AGENT

    @property
    def has_ai_credentials(self) -> bool:
        return bool(self.ai_account_id and self.ai_api_token)


def load_settings(
    config_path: Optional[Union[str, Path]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> ImportSettings:
    """
    Build settings from an optional JSON file plus environment overrides.

    Environment variables win over the file. The merged result is validated
    against the bundled JSON schema.
    """
    data: Dict[str, Any] = {}
    if config_path is not None:
        path = Path(config_path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with path.open() as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ConfigValidationError(f"Config file '{path}' must contain a JSON object")
        source = str(path)
    else:
        source = "environment"

    env = os.environ if environ is None else environ
    for variable, key in ENV_OVERRIDES.items():
        value = env.get(variable)
        if value:
            data[key] = value

    _validate_schema(data, source)
    return ImportSettings(**data)


def _validate_schema(data: dict, source: str) -> None:
    with _SCHEMA_PATH.open() as f:
        schema = json.load(f)
    try:
        jsonschema.validate(data, schema)
    except jsonschema.ValidationError as exc:
        raise ConfigValidationError(
            f"Settings from '{source}' failed schema validation: {exc.message}"
        ) from exc
