from typing import Any
from typing import Dict

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for wire models – snake_case in Python, camelCase on the wire.

    Browser clients send ``documentId`` / ``eventType``; FastAPI serialises
    response models by alias so the same names come back out.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def success(data: Any) -> Dict[str, Any]:
    """Wrap *data* in the ``{"success": true, "data": ...}`` envelope."""

    return {"success": True, "data": _dump(data)}


def _dump(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True, mode="json")
    if isinstance(value, list):
        return [_dump(item) for item in value]
    if isinstance(value, dict):
        return {key: _dump(item) for key, item in value.items()}
    return value
