"""
Import/Export service for Postman Collection v2.1 and native collection files.
"""
import json
import logging
import re
from typing import Any
from urllib.parse import parse_qsl

from pydantic import ValidationError

from reqbridge.models.collection import Collection, Folder
from reqbridge.models.request import (
    ApiRequest,
    BodyType,
    HttpMethod,
    KeyValue,
    RequestBody,
    Script,
    utc_now_iso,
)

logger = logging.getLogger(__name__)

POSTMAN_SCHEMA_URL = "https://schema.getpostman.com/json/collection/v2.1.0/collection.json"


class CollectionFormatError(ValueError):
    """Raised when an imported document matches no known collection format."""


# ────────────────────────────────────────────────────────────
# Postman Export
# ────────────────────────────────────────────────────────────

def _export_key_values(items: list[KeyValue]) -> list[dict[str, Any]]:
    result: list[dict[str, Any]] = []
    for kv in items:
        entry: dict[str, Any] = {"key": kv.key, "value": kv.value, "disabled": not kv.enabled}
        if kv.description:
            entry["description"] = kv.description
        result.append(entry)
    return result


def _export_body(body: RequestBody | None) -> dict[str, Any] | None:
    if body is None:
        return None

    if body.type == BodyType.JSON:
        return {
            "mode": "raw",
            "raw": body.content or "",
            "options": {"raw": {"language": "json"}},
        }
    if body.type == BodyType.RAW:
        return {"mode": "raw", "raw": body.content or ""}
    if body.type == BodyType.FORM_DATA:
        return {"mode": "formdata", "formdata": _export_key_values(body.form_data or [])}
    if body.type == BodyType.URLENCODED:
        return {"mode": "urlencoded", "urlencoded": _export_key_values(body.form_data or [])}

    return None


def _export_events(pre_request: Script | None, test: Script | None) -> list[dict[str, Any]]:
    events: list[dict[str, Any]] = []
    for listen, script in (("prerequest", pre_request), ("test", test)):
        if script is None or not script.content.strip():
            continue
        event: dict[str, Any] = {
            "listen": listen,
            "script": {"type": "text/javascript", "exec": script.content.split("\n")},
        }
        if not script.enabled:
            event["disabled"] = True
        events.append(event)
    return events


def _export_request(request: ApiRequest) -> dict[str, Any]:
    postman_request: dict[str, Any] = {
        "method": request.method.value,
        "header": _export_key_values(request.headers),
        "url": {
            "raw": request.url,
            "query": _export_key_values(request.params),
        },
    }

    body = _export_body(request.body)
    if body is not None:
        postman_request["body"] = body

    item: dict[str, Any] = {"name": request.name, "request": postman_request}

    events = _export_events(request.pre_request_script, request.test_script)
    if events:
        item["event"] = events

    return item


def _export_folder(folder: Folder) -> dict[str, Any]:
    item: dict[str, Any] = {"name": folder.name}
    if folder.description is not None:
        item["description"] = folder.description
    item["item"] = [_export_request(r) for r in folder.requests] + [
        _export_folder(f) for f in folder.folders
    ]
    return item


def export_to_postman(collection: Collection) -> dict[str, Any]:
    """Export a collection to a Postman Collection v2.1 document."""
    info: dict[str, Any] = {"name": collection.name}
    if collection.description is not None:
        info["description"] = collection.description
    info["schema"] = POSTMAN_SCHEMA_URL

    postman: dict[str, Any] = {
        "info": info,
        "item": [_export_request(r) for r in collection.requests]
        + [_export_folder(f) for f in collection.folders],
        "variable": [
            {"key": v.key, "value": v.value, "disabled": not v.enabled}
            for v in collection.variables
        ],
    }

    events = _export_events(collection.pre_request_script, collection.test_script)
    if events:
        postman["event"] = events

    return postman


# ────────────────────────────────────────────────────────────
# Postman Collection v2.1 Parser
# ────────────────────────────────────────────────────────────

def _as_list(value: Any) -> list:
    return value if isinstance(value, list) else []


def _as_dict(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _description(value: Any) -> str | None:
    # Postman allows either a plain string or {"content": ..., "type": ...}
    if isinstance(value, dict):
        value = value.get("content")
    return None if value is None else _text(value)


def _import_key_values(entries: Any) -> list[KeyValue]:
    result: list[KeyValue] = []
    for entry in _as_list(entries):
        if not isinstance(entry, dict):
            continue
        result.append(KeyValue(
            key=_text(entry.get("key")),
            value=_text(entry.get("value")),
            enabled=not entry.get("disabled", False),
            description=_description(entry.get("description")),
        ))
    return result


def _raw_from_parts(url: dict) -> str:
    host = url.get("host")
    path = url.get("path")
    host_text = ".".join(_text(h) for h in host) if isinstance(host, list) else _text(host)
    path_text = "/".join(_text(p) for p in path) if isinstance(path, list) else _text(path)
    if not host_text:
        return ""
    raw = f"{url['protocol']}://{host_text}" if url.get("protocol") else host_text
    if url.get("port"):
        raw += f":{url['port']}"
    if path_text:
        raw += "/" + path_text.lstrip("/")
    return raw


def _import_url(url: Any) -> tuple[str, list[KeyValue]]:
    """Split a Postman url (string or object) into a base url and params."""
    if isinstance(url, str):
        return url, []
    if not isinstance(url, dict):
        return "", []

    raw = _text(url.get("raw")) or _raw_from_parts(url)
    base, _, query_string = raw.partition("?")

    if isinstance(url.get("query"), list):
        params = _import_key_values(url["query"])
    else:
        params = [
            KeyValue(key=k, value=v)
            for k, v in parse_qsl(query_string.split("#", 1)[0], keep_blank_values=True)
        ]

    return base, params


def _import_body(body: Any) -> RequestBody:
    body = _as_dict(body)
    mode = body.get("mode")

    if mode == "raw":
        language = _as_dict(_as_dict(body.get("options")).get("raw")).get("language")
        return RequestBody(
            type=BodyType.JSON if language == "json" else BodyType.RAW,
            content=_text(body.get("raw")),
        )
    if mode == "formdata":
        return RequestBody(type=BodyType.FORM_DATA, form_data=_import_key_values(body.get("formdata")))
    if mode == "urlencoded":
        return RequestBody(type=BodyType.URLENCODED, form_data=_import_key_values(body.get("urlencoded")))

    return RequestBody(type=BodyType.NONE)


def _import_scripts(events: Any) -> tuple[Script | None, Script | None]:
    """Return (pre_request_script, test_script) from a Postman event array."""
    pre_request: Script | None = None
    test: Script | None = None
    for event in _as_list(events):
        if not isinstance(event, dict):
            continue
        exec_lines = _as_dict(event.get("script")).get("exec")
        if isinstance(exec_lines, list):
            content = "\n".join(_text(line) for line in exec_lines)
        else:
            content = _text(exec_lines)
        if not content.strip():
            continue

        script = Script(enabled=not event.get("disabled", False), content=content)
        if event.get("listen") == "prerequest":
            pre_request = script
        elif event.get("listen") == "test":
            test = script
    return pre_request, test


def _import_method(value: Any) -> HttpMethod:
    try:
        return HttpMethod(_text(value or "GET").upper())
    except ValueError:
        logger.debug("Unsupported method %r, falling back to GET", value)
        return HttpMethod.GET


def _import_request(item: dict, now: str) -> ApiRequest | None:
    req_data = item["request"]
    name = _text(item.get("name")) or "Request"

    if isinstance(req_data, str):
        # Simple URL string
        return ApiRequest(
            name=name,
            method=HttpMethod.GET,
            url=req_data,
            body=RequestBody(type=BodyType.NONE),
            created_at=now,
            updated_at=now,
        )
    if not isinstance(req_data, dict):
        return None

    url, params = _import_url(req_data.get("url"))
    pre_request, test = _import_scripts(item.get("event"))

    return ApiRequest(
        name=name,
        method=_import_method(req_data.get("method")),
        url=url,
        headers=_import_key_values(req_data.get("header")),
        params=params,
        body=_import_body(req_data.get("body")),
        pre_request_script=pre_request,
        test_script=test,
        created_at=now,
        updated_at=now,
    )


def _import_items(items: Any, now: str) -> tuple[list[ApiRequest], list[Folder]]:
    """Recursively split Postman items into requests and folders."""
    requests: list[ApiRequest] = []
    folders: list[Folder] = []

    for item in _as_list(items):
        if not isinstance(item, dict):
            continue
        if "request" in item:
            request = _import_request(item, now)
            if request is not None:
                requests.append(request)
        elif isinstance(item.get("item"), list):
            child_requests, child_folders = _import_items(item["item"], now)
            folders.append(Folder(
                name=_text(item.get("name")) or "Folder",
                description=_description(item.get("description")),
                requests=child_requests,
                folders=child_folders,
            ))
        else:
            logger.debug("Dropping Postman item %r: neither request nor folder", item.get("name"))

    return requests, folders


def import_from_postman(doc: dict[str, Any]) -> Collection:
    """Import a Postman Collection v2.1 document. Every id is freshly generated."""
    now = utc_now_iso()
    info = _as_dict(doc.get("info"))
    requests, folders = _import_items(doc.get("item"), now)
    pre_request, test = _import_scripts(doc.get("event"))

    collection = Collection(
        name=_text(info.get("name")) or "Imported Collection",
        description=_description(info.get("description")),
        requests=requests,
        folders=folders,
        variables=_import_key_values(doc.get("variable")),
        pre_request_script=pre_request,
        test_script=test,
        created_at=now,
        updated_at=now,
    )

    logger.info(
        "Imported Postman collection %r: %d requests, %d top-level folders",
        collection.name,
        sum(1 for _ in collection.iter_requests()),
        len(collection.folders),
    )
    return collection


# ────────────────────────────────────────────────────────────
# File import / export
# ────────────────────────────────────────────────────────────

def parse_imported_file(content: str) -> Collection:
    """Parse an uploaded collection file, detecting Postman vs native format.

    Raises ``json.JSONDecodeError`` for invalid JSON and ``CollectionFormatError``
    when the document matches neither format.
    """
    parsed = json.loads(content)

    if isinstance(parsed, dict):
        schema = _as_dict(parsed.get("info")).get("schema")
        if isinstance(schema, str) and "getpostman.com" in schema:
            return import_from_postman(parsed)

        if parsed.get("id") and "requests" in parsed:
            try:
                return Collection.model_validate(parsed)
            except ValidationError as e:
                raise CollectionFormatError(
                    f"Unrecognized collection format: native collection failed validation "
                    f"({e.error_count()} errors)"
                ) from e

    raise CollectionFormatError("Unrecognized collection format")


def export_filename(collection: Collection, fmt: str = "native") -> str:
    base = re.sub(r"\s+", "_", collection.name)
    return f"{base}_postman.json" if fmt == "postman" else f"{base}.json"


def serialize_collection(collection: Collection, fmt: str = "native") -> tuple[str, str]:
    """Render a collection as a downloadable JSON file: (filename, text)."""
    if fmt == "postman":
        data = export_to_postman(collection)
    elif fmt == "native":
        data = collection.model_dump(mode="json", by_alias=True, exclude_none=True)
    else:
        raise ValueError(f"Unsupported export format: {fmt}. Supported: ['native', 'postman']")

    return export_filename(collection, fmt), json.dumps(data, indent=2, ensure_ascii=False)
