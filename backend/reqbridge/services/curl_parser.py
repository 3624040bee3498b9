"""
cURL import: shell-style tokenizer and the flag walker that turns a curl
command line into an ApiRequest.
"""
import base64
import json
import logging
import re
from dataclasses import dataclass, replace
from typing import Callable
from urllib.parse import parse_qsl, urlsplit

from reqbridge.models.request import (
    ApiRequest,
    BodyType,
    HttpMethod,
    KeyValue,
    RequestBody,
    utc_now_iso,
)

logger = logging.getLogger(__name__)

_URL_RE = re.compile(r"^https?://")
_EDGE_QUOTES_RE = re.compile(r"^['\"]|['\"]$")
_DEFAULT_PORTS = {"http": 80, "https": 443}

# Flags known to take no argument; any other unknown flag swallows the next
# token as its value.
_NO_VALUE_FLAGS = frozenset({
    "-o", "--output", "-L", "--location", "-k", "--insecure",
    "-v", "--verbose", "-s", "--silent", "-S", "--show-error",
    "-i", "--include", "-G", "--get",
})


# ────────────────────────────────────────────────────────────
# Tokenizer
# ────────────────────────────────────────────────────────────

def tokenize(text: str) -> list[str]:
    """Split a command line into arguments, honouring quotes and backslashes.

    Quotes are stripped, whitespace inside quotes is kept, and a backslash
    escapes the next character everywhere except inside single quotes.
    Unbalanced quoting never raises; the open quote just runs to the end.
    """
    tokens: list[str] = []
    current: list[str] = []
    quote: str | None = None
    escape = False

    for char in text:
        if escape:
            current.append(char)
            escape = False
            continue

        if char == "\\" and quote != "'":
            escape = True
            continue

        if quote:
            if char == quote:
                quote = None
            else:
                current.append(char)
        elif char in ("'", '"'):
            quote = char
        elif char in (" ", "\t"):
            if current:
                tokens.append("".join(current))
                current = []
        else:
            current.append(char)

    if current:
        tokens.append("".join(current))

    return tokens


# ────────────────────────────────────────────────────────────
# Parser state
# ────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class _CurlState:
    method: HttpMethod = HttpMethod.GET
    explicit_method: bool = False
    url: str = ""
    headers: tuple[KeyValue, ...] = ()
    params: tuple[KeyValue, ...] = ()
    body: RequestBody | None = None


def _promoted(state: _CurlState) -> HttpMethod:
    if state.method == HttpMethod.GET and not state.explicit_method:
        return HttpMethod.POST
    return state.method


def _split_pair(text: str, sep: str) -> tuple[str, str] | None:
    if sep not in text:
        return None
    key, value = text.split(sep, 1)
    return key.strip(), value.strip()


def _add_header(state: _CurlState, key: str, value: str) -> _CurlState:
    return replace(state, headers=state.headers + (KeyValue(key=key, value=value),))


def _split_location(url: str) -> tuple[str, str, list[tuple[str, str]]] | None:
    """Return (origin, pathname, query pairs) for an absolute URL, or None."""
    try:
        parts = urlsplit(url)
        port = parts.port
    except ValueError:
        return None
    if not parts.scheme or not parts.hostname:
        return None

    host = parts.hostname
    if ":" in host:
        host = f"[{host}]"
    if port is not None and port != _DEFAULT_PORTS.get(parts.scheme.lower()):
        host = f"{host}:{port}"

    origin = f"{parts.scheme.lower()}://{host}"
    query = parse_qsl(parts.query, keep_blank_values=True)
    return origin, parts.path or "/", query


# ────────────────────────────────────────────────────────────
# Flag handlers
# ────────────────────────────────────────────────────────────

def _on_method(state: _CurlState, value: str) -> _CurlState:
    try:
        method = HttpMethod(value.upper())
    except ValueError:
        logger.debug("Ignoring unsupported method %r", value)
        return state
    return replace(state, method=method, explicit_method=True)


def _on_header(state: _CurlState, value: str) -> _CurlState:
    pair = _split_pair(value, ":")
    if pair is None:
        return state
    return _add_header(state, *pair)


def _reject_constant(name: str):
    # NaN and Infinity are not JSON
    raise ValueError(f"Invalid JSON constant: {name}")


def _on_data(state: _CurlState, value: str) -> _CurlState:
    try:
        json.loads(value, parse_constant=_reject_constant)
        body_type = BodyType.JSON
    except ValueError:
        body_type = BodyType.RAW
    return replace(
        state,
        body=RequestBody(type=body_type, content=value),
        method=_promoted(state),
    )


def _form_handler(body_type: BodyType) -> Callable[[_CurlState, str], _CurlState]:
    def handler(state: _CurlState, value: str) -> _CurlState:
        fields: list[KeyValue] = []
        if state.body is not None and state.body.type == body_type:
            fields = list(state.body.form_data or [])
        pair = _split_pair(value, "=")
        if pair is not None:
            fields.append(KeyValue(key=pair[0], value=pair[1]))
        return replace(
            state,
            body=RequestBody(type=body_type, form_data=fields),
            method=_promoted(state),
        )

    return handler


def _on_user(state: _CurlState, value: str) -> _CurlState:
    encoded = base64.b64encode(value.encode("utf-8")).decode("ascii")
    return _add_header(state, "Authorization", f"Basic {encoded}")


def _on_compressed(state: _CurlState) -> _CurlState:
    if any(h.key.lower() == "accept-encoding" for h in state.headers):
        return state
    return _add_header(state, "Accept-Encoding", "gzip, deflate, br")


def _on_url(state: _CurlState, token: str) -> _CurlState:
    candidate = _EDGE_QUOTES_RE.sub("", token)
    if not (_URL_RE.match(candidate) or "." in candidate or candidate.startswith("localhost")):
        return state

    location = _split_location(candidate if candidate.startswith("http") else f"http://{candidate}")
    if location is None:
        return replace(state, url=candidate, params=())

    origin, path, query = location
    params = tuple(KeyValue(key=k, value=v) for k, v in query)
    return replace(state, url=f"{origin}{path}", params=params)


_VALUE_HANDLERS: dict[str, Callable[[_CurlState, str], _CurlState]] = {
    "-X": _on_method,
    "--request": _on_method,
    "-H": _on_header,
    "--header": _on_header,
    "-d": _on_data,
    "--data": _on_data,
    "--data-raw": _on_data,
    "--data-binary": _on_data,
    "--data-ascii": _on_data,
    "-F": _form_handler(BodyType.FORM_DATA),
    "--form": _form_handler(BodyType.FORM_DATA),
    "--data-urlencode": _form_handler(BodyType.URLENCODED),
    "-A": lambda state, value: _add_header(state, "User-Agent", value),
    "--user-agent": lambda state, value: _add_header(state, "User-Agent", value),
    "-u": _on_user,
    "--user": _on_user,
    "-b": lambda state, value: _add_header(state, "Cookie", value),
    "--cookie": lambda state, value: _add_header(state, "Cookie", value),
    "-e": lambda state, value: _add_header(state, "Referer", value),
    "--referer": lambda state, value: _add_header(state, "Referer", value),
}


# ────────────────────────────────────────────────────────────
# cURL Parser
# ────────────────────────────────────────────────────────────

def _normalize(command: str) -> str:
    text = re.sub(r"\\\r?\n", " ", command)
    text = re.sub(r"\s+", " ", text).strip()
    if text.startswith("$ "):
        text = text[2:].lstrip()
    if text.lower().startswith("curl "):
        text = text[5:].strip()
    elif text.lower() == "curl":
        text = ""
    return text


def _finalize(state: _CurlState) -> ApiRequest:
    method = state.method.value
    name = "Imported Request"
    if state.url:
        location = _split_location(state.url if state.url.startswith("http") else f"http://{state.url}")
        name = f"{method} {location[1]}" if location else f"{method} Request"

    now = utc_now_iso()
    return ApiRequest(
        name=name,
        method=state.method,
        url=state.url,
        headers=list(state.headers),
        params=list(state.params),
        body=state.body or RequestBody(type=BodyType.NONE),
        created_at=now,
        updated_at=now,
    )


def parse_curl(command: str) -> ApiRequest:
    """Parse a cURL command string into an ApiRequest.

    Never raises on malformed input: unknown flags are skipped on a best-effort
    basis and a command without a URL yields ``url == ""``.
    """
    tokens = tokenize(_normalize(command))
    state = _CurlState()

    i = 0
    while i < len(tokens):
        token = tokens[i]
        handler = _VALUE_HANDLERS.get(token)

        if handler is not None:
            i += 1
            if i < len(tokens):
                state = handler(state, tokens[i])
        elif token == "--compressed":
            state = _on_compressed(state)
        elif not token.startswith("-") or _URL_RE.match(token):
            state = _on_url(state, token)
        elif token not in _NO_VALUE_FLAGS and i + 1 < len(tokens) and not tokens[i + 1].startswith("-"):
            i += 1  # best-effort: treat the next token as this flag's value
        i += 1

    request = _finalize(state)
    logger.debug(
        "Parsed cURL command: %d tokens -> %s %s", len(tokens), request.method.value, request.url
    )
    return request
