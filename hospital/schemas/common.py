from typing import Any, Optional

from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

class CamelModel(BaseModel):
    """Schema whose JSON keys are camelCase."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

def success_response(message: Optional[str] = None, **data: Any) -> dict:
    """Build the uniform success envelope."""
    body = {"status": "success"}
    if message:
        body["message"] = message
    if data:
        body["data"] = jsonable_encoder(data, by_alias=True)
    return body

def error_response(message: str) -> dict:
    return {"status": "error", "message": message}
