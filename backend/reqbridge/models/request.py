import uuid
from datetime import datetime, timezone
from enum import Enum as PyEnum

from pydantic import BaseModel, Field, model_validator
from pydantic.alias_generators import to_camel


def new_id() -> str:
    return str(uuid.uuid4())


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class HttpMethod(str, PyEnum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"


class BodyType(str, PyEnum):
    NONE = "none"
    JSON = "json"
    FORM_DATA = "form-data"
    URLENCODED = "x-www-form-urlencoded"
    RAW = "raw"
    BINARY = "binary"


class CamelModel(BaseModel):
    # Native JSON uses camelCase keys (formData, preRequestScript, createdAt)
    model_config = {"alias_generator": to_camel, "populate_by_name": True}


class KeyValue(CamelModel):
    """One header, query param, form field or variable."""

    id: str = Field(default_factory=new_id)
    key: str = ""
    value: str = ""
    enabled: bool = True
    description: str | None = None


class RequestBody(CamelModel):
    """Body of a request.

    ``content`` belongs to json and raw bodies, ``form_data`` to form-data and
    urlencoded bodies. Fields that do not match ``type`` are dropped on
    validation.
    """

    type: BodyType = BodyType.NONE
    content: str | None = None
    form_data: list[KeyValue] | None = None

    @model_validator(mode="after")
    def _drop_fields_foreign_to_type(self) -> "RequestBody":
        if self.type not in (BodyType.FORM_DATA, BodyType.URLENCODED):
            self.form_data = None
        if self.type not in (BodyType.JSON, BodyType.RAW):
            self.content = None
        return self


class Script(CamelModel):
    enabled: bool = True
    content: str = ""


class ApiRequest(CamelModel):
    """A single HTTP request.

    ``url`` never carries a query string once params have been extracted;
    ``params`` is the only source of the query string.
    """

    id: str = Field(default_factory=new_id)
    name: str = "New Request"
    method: HttpMethod = HttpMethod.GET
    url: str = ""
    headers: list[KeyValue] = Field(default_factory=list)
    params: list[KeyValue] = Field(default_factory=list)
    body: RequestBody | None = None
    pre_request_script: Script | None = None
    test_script: Script | None = None
    created_at: str | None = None
    updated_at: str | None = None
