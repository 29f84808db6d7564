"""Shared Pydantic base for request bodies (camelCase on the wire)"""
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, StrictStr
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Accepts camelCase keys (and snake_case field names); unknown keys are ignored"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def to_payload(self) -> dict:
        """Fields the client actually sent, keyed the way the API names them"""
        return self.model_dump(by_alias=True, exclude_unset=True)


def coerce_id(value: Any) -> Any:
    """Content ids arrive as strings or as bare numbers; store them as strings"""
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return str(value)
    return value


ContentId = Annotated[StrictStr, BeforeValidator(coerce_id)]
