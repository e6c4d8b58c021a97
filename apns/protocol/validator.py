from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

import jsonschema

from .errors import EncodingError

SCHEMA_DIR = Path(__file__).parent / "schemas"
PAYLOAD_SCHEMA = "aps.json"


@lru_cache(maxsize=4)
def load_schema(name: str = PAYLOAD_SCHEMA) -> Optional[dict]:
    """Load a bundled JSON schema if present."""
    path = SCHEMA_DIR / name
    if not path.exists():
        return None
    with path.open("r", encoding="utf-8") as fp:
        return json.load(fp)


def validate_payload(message: Dict[str, Any], schema: Optional[dict] = None) -> None:
    """Ensure a notification dictionary carries a well-formed aps section."""
    if not isinstance(message, dict):
        raise EncodingError(f"Notification payload must be a JSON object, got {type(message).__name__}")
    if not schema:
        schema = load_schema()
    if schema:
        try:
            jsonschema.validate(instance=message, schema=schema)
        except jsonschema.ValidationError as exc:
            raise EncodingError(f"Payload schema validation failed: {exc.message}") from exc


__all__ = ["load_schema", "validate_payload"]
