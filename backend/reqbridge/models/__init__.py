from reqbridge.models.request import (
    ApiRequest,
    BodyType,
    HttpMethod,
    KeyValue,
    RequestBody,
    Script,
)
from reqbridge.models.collection import Collection, Folder

__all__ = [
    "ApiRequest",
    "BodyType",
    "HttpMethod",
    "KeyValue",
    "RequestBody",
    "Script",
    "Collection",
    "Folder",
]
