"""Response envelope shared by every endpoint.

Learn: Every response — success or failure — has the same outer shape:
{success, message, data?, errors?}. Clients branch on `success` and
never have to guess where the payload lives.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for API schemas: snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def _dump(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    if isinstance(value, dict):
        return {k: _dump(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_dump(v) for v in value]
    return value


def ok(message: str, data: Any = None) -> dict:
    """Build a success envelope. Pydantic models in `data` dump by alias."""
    body: dict[str, Any] = {"success": True, "message": message}
    if data is not None:
        body["data"] = _dump(data)
    return body


def fail(message: str, errors: Optional[list[dict]] = None, **extra: Any) -> dict:
    """Build a failure envelope. `extra` carries dev-only diagnostics."""
    body: dict[str, Any] = {"success": False, "message": message}
    if errors:
        body["errors"] = errors
    body.update(extra)
    return body
