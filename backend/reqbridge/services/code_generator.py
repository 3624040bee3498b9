"""
Code snippet generator: renders an ApiRequest as a snippet for one of nine
languages/tools.
"""
import json
import logging
from enum import Enum as PyEnum
from typing import Callable
from urllib.parse import parse_qsl, quote, urlencode, urlsplit, urlunsplit

from pydantic import Field

from reqbridge.models.request import ApiRequest, BodyType, CamelModel, HttpMethod

logger = logging.getLogger(__name__)

# Characters encodeURIComponent leaves alone
_URI_COMPONENT_SAFE = "-_.!~*'()"

_CONTROL_ESCAPES = {"\n": "\\n", "\r": "\\r", "\t": "\\t"}


class CodeLanguage(str, PyEnum):
    CURL = "curl"
    FETCH = "fetch"
    AXIOS = "axios"
    PYTHON = "python"
    GO = "go"
    PHP = "php"
    RUBY = "ruby"
    CSHARP = "csharp"
    JAVA = "java"


class CodeGenOptions(CamelModel):
    # Accepts indentSize/useSingleQuotes as well as the snake_case names
    indent_size: int = Field(default=2, ge=1, le=8)
    use_single_quotes: bool = False


class UnsupportedLanguageError(ValueError):
    pass


def _escape_quote(s: str, q: str) -> str:
    """Escape ``s`` for a C-style string literal delimited by ``q``."""
    s = s.replace("\\", "\\\\").replace(q, "\\" + q)
    for char, escaped in _CONTROL_ESCAPES.items():
        s = s.replace(char, escaped)
    return s


def _escape_double_quote(s: str) -> str:
    return _escape_quote(s, '"')


def _escape_single_quote(s: str) -> str:
    # Ruby single-quoted literals only know \\ and \'
    return s.replace("\\", "\\\\").replace("'", "\\'")


def _escape_php_string(s: str) -> str:
    return _escape_double_quote(s).replace("$", "\\$")


def _capitalize(s: str) -> str:
    return s[:1].upper() + s[1:]


def _encode_component(s: str) -> str:
    return quote(s, safe=_URI_COMPONENT_SAFE)


# ── Shared request preparation ──

def _set_query_param(pairs: list[tuple[str, str]], key: str, value: str) -> list[tuple[str, str]]:
    """Replace the first ``key`` pair (dropping later duplicates) or append it."""
    result: list[tuple[str, str]] = []
    replaced = False
    for k, v in pairs:
        if k != key:
            result.append((k, v))
        elif not replaced:
            result.append((key, value))
            replaced = True
    if not replaced:
        result.append((key, value))
    return result


def build_full_url(request: ApiRequest) -> str:
    """Return the request URL with every enabled param merged into the query string."""
    if not request.url:
        return ""

    enabled = [p for p in request.params if p.enabled and p.key]
    if not enabled:
        return request.url

    try:
        parts = urlsplit(request.url)
    except ValueError:
        parts = None

    if parts is not None and parts.scheme and parts.netloc:
        pairs = parse_qsl(parts.query, keep_blank_values=True)
        for p in enabled:
            pairs = _set_query_param(pairs, p.key, p.value)
        return urlunsplit(parts._replace(path=parts.path or "/", query=urlencode(pairs)))

    qs = "&".join(f"{_encode_component(p.key)}={_encode_component(p.value)}" for p in enabled)
    separator = "&" if "?" in request.url else "?"
    return f"{request.url}{separator}{qs}"


def get_enabled_headers(request: ApiRequest) -> dict[str, str]:
    """Enabled, non-empty headers in order (last one wins), plus an implied Content-Type."""
    headers: dict[str, str] = {}
    for h in request.headers:
        if h.enabled and h.key:
            headers[h.key] = h.value

    has_content_type = any(k.lower() == "content-type" for k in headers)
    body_type = request.body.type if request.body else BodyType.NONE
    if not has_content_type:
        if body_type == BodyType.JSON:
            headers["Content-Type"] = "application/json"
        elif body_type == BodyType.URLENCODED:
            headers["Content-Type"] = "application/x-www-form-urlencoded"

    return headers


def get_body(request: ApiRequest) -> str | None:
    body = request.body
    if body is None or body.type in (BodyType.NONE, BodyType.BINARY):
        return None

    if body.type in (BodyType.JSON, BodyType.RAW):
        return body.content or None

    fields = [f for f in (body.form_data or []) if f.enabled and f.key]
    if body.type == BodyType.URLENCODED:
        return "&".join(f"{_encode_component(f.key)}={_encode_component(f.value)}" for f in fields)

    # form-data is flattened to a JSON object rather than a multipart payload
    return json.dumps({f.key: f.value for f in fields}, separators=(",", ":"), ensure_ascii=False)


def _is_json_body(request: ApiRequest) -> bool:
    return request.body is not None and request.body.type == BodyType.JSON


def _content_type(headers: dict[str, str]) -> str | None:
    return next((v for k, v in headers.items() if k.lower() == "content-type"), None)


# ── Generators ──

def generate_curl(request: ApiRequest, options: CodeGenOptions) -> str:
    url = build_full_url(request)
    headers = get_enabled_headers(request)
    body = get_body(request)

    parts = ["curl"]

    if request.method != HttpMethod.GET:
        parts.append(f"-X {request.method.value}")

    parts.append(f"'{url}'")

    for k, v in headers.items():
        parts.append(f"-H '{k}: {v}'")

    if body:
        escaped_body = body.replace("'", "'\\''")
        parts.append(f"-d '{escaped_body}'")

    return " \\\n  ".join(parts)


def _js_header_block(headers: dict[str, str], indent: str, q: str) -> list[str]:
    lines = [f"{indent}headers: {{"]
    items = list(headers.items())
    for index, (k, v) in enumerate(items):
        comma = "," if index < len(items) - 1 else ""
        lines.append(f"{indent}{indent}{q}{k}{q}: {q}{_escape_quote(v, q)}{q}{comma}")
    lines.append(f"{indent}}},")
    return lines


def generate_javascript_fetch(request: ApiRequest, options: CodeGenOptions) -> str:
    indent = " " * options.indent_size
    q = "'" if options.use_single_quotes else '"'
    url = build_full_url(request)
    headers = get_enabled_headers(request)
    body = get_body(request)

    lines = [f"fetch({q}{url}{q}, {{"]
    lines.append(f"{indent}method: {q}{request.method.value}{q},")

    if headers:
        lines.extend(_js_header_block(headers, indent, q))

    if body:
        if _is_json_body(request):
            lines.append(f"{indent}body: JSON.stringify({body}),")
        else:
            lines.append(f"{indent}body: {q}{_escape_quote(body, q)}{q},")

    lines.append("})")
    lines.append(f"{indent}.then(response => response.json())")
    lines.append(f"{indent}.then(data => console.log(data))")
    lines.append(f"{indent}.catch(error => console.error({q}Error:{q}, error));")

    return "\n".join(lines)


def generate_javascript_axios(request: ApiRequest, options: CodeGenOptions) -> str:
    indent = " " * options.indent_size
    q = "'" if options.use_single_quotes else '"'
    url = build_full_url(request)
    headers = get_enabled_headers(request)
    body = get_body(request)

    lines = ["axios({"]
    lines.append(f"{indent}method: {q}{request.method.value.lower()}{q},")
    lines.append(f"{indent}url: {q}{url}{q},")

    if headers:
        lines.extend(_js_header_block(headers, indent, q))

    if body:
        if _is_json_body(request):
            lines.append(f"{indent}data: {body},")
        else:
            lines.append(f"{indent}data: {q}{_escape_quote(body, q)}{q},")

    lines.append("})")
    lines.append(f"{indent}.then(response => console.log(response.data))")
    lines.append(f"{indent}.catch(error => console.error(error));")

    return "\n".join(lines)


def generate_python_requests(request: ApiRequest, options: CodeGenOptions) -> str:
    url = build_full_url(request)
    headers = get_enabled_headers(request)
    body = get_body(request)
    is_json = _is_json_body(request)

    lines = ["import requests", ""]

    if headers:
        lines.append("headers = {")
        for k, v in headers.items():
            lines.append(f'    "{_escape_double_quote(k)}": "{_escape_double_quote(v)}",')
        lines.append("}")
        lines.append("")

    if body and is_json:
        lines.append(f"payload = {body}")
        lines.append("")

    call = f'response = requests.{request.method.value.lower()}("{_escape_double_quote(url)}"'
    if headers:
        call += ", headers=headers"
    if body:
        if is_json:
            call += ", json=payload"
        else:
            call += f', data="{_escape_double_quote(body)}"'
    call += ")"

    lines.append(call)
    lines.append("")
    lines.append("print(response.status_code)")
    lines.append("print(response.json())")

    return "\n".join(lines)


def generate_go(request: ApiRequest, options: CodeGenOptions) -> str:
    url = build_full_url(request)
    headers = get_enabled_headers(request)
    body = get_body(request)
    method = request.method.value

    lines = ["package main", "", "import (", '\t"fmt"', '\t"io"', '\t"net/http"']
    if body:
        lines.append('\t"strings"')
    lines.extend([")", ""])
    lines.append("func main() {")

    if body:
        literal = json.dumps(body) if "`" in body else f"`{body}`"
        lines.append(f"\tpayload := strings.NewReader({literal})")
        lines.append(f'\treq, err := http.NewRequest("{method}", "{_escape_double_quote(url)}", payload)')
    else:
        lines.append(f'\treq, err := http.NewRequest("{method}", "{_escape_double_quote(url)}", nil)')

    lines.append("\tif err != nil {")
    lines.append("\t\tpanic(err)")
    lines.append("\t}")
    lines.append("")

    for k, v in headers.items():
        lines.append(f'\treq.Header.Add("{_escape_double_quote(k)}", "{_escape_double_quote(v)}")')

    lines.append("")
    lines.append("\tclient := &http.Client{}")
    lines.append("\tresp, err := client.Do(req)")
    lines.append("\tif err != nil {")
    lines.append("\t\tpanic(err)")
    lines.append("\t}")
    lines.append("\tdefer resp.Body.Close()")
    lines.append("")
    lines.append("\trespBody, _ := io.ReadAll(resp.Body)")
    lines.append("\tfmt.Println(string(respBody))")
    lines.append("}")

    return "\n".join(lines)


def generate_php(request: ApiRequest, options: CodeGenOptions) -> str:
    url = build_full_url(request)
    headers = get_enabled_headers(request)
    body = get_body(request)

    lines = ["<?php", "", "$curl = curl_init();", ""]
    lines.append("curl_setopt_array($curl, [")
    lines.append(f'    CURLOPT_URL => "{_escape_php_string(url)}",')
    lines.append("    CURLOPT_RETURNTRANSFER => true,")
    lines.append(f'    CURLOPT_CUSTOMREQUEST => "{request.method.value}",')

    if headers:
        lines.append("    CURLOPT_HTTPHEADER => [")
        for k, v in headers.items():
            header_line = _escape_php_string(f"{k}: {v}")
            lines.append(f'        "{header_line}",')
        lines.append("    ],")

    if body:
        lines.append(f'    CURLOPT_POSTFIELDS => "{_escape_php_string(body)}",')

    lines.append("]);")
    lines.append("")
    lines.append("$response = curl_exec($curl);")
    lines.append("$err = curl_error($curl);")
    lines.append("")
    lines.append("curl_close($curl);")
    lines.append("")
    lines.append("if ($err) {")
    lines.append('    echo "Error: " . $err;')
    lines.append("} else {")
    lines.append("    echo $response;")
    lines.append("}")

    return "\n".join(lines)


def generate_ruby(request: ApiRequest, options: CodeGenOptions) -> str:
    url = build_full_url(request)
    headers = get_enabled_headers(request)
    body = get_body(request)

    lines = ["require 'net/http'", "require 'uri'", "require 'json'", ""]
    lines.append(f'uri = URI.parse("{_escape_double_quote(url)}")')
    lines.append("http = Net::HTTP.new(uri.host, uri.port)")
    lines.append("http.use_ssl = uri.scheme == 'https'")
    lines.append("")
    lines.append(f"request = Net::HTTP::{_capitalize(request.method.value.lower())}.new(uri.request_uri)")

    for k, v in headers.items():
        lines.append(f'request["{_escape_double_quote(k)}"] = "{_escape_double_quote(v)}"')

    if body:
        lines.append(f"request.body = '{_escape_single_quote(body)}'")

    lines.append("")
    lines.append("response = http.request(request)")
    lines.append("puts response.code")
    lines.append("puts response.body")

    return "\n".join(lines)


_CSHARP_SHORTCUT_VERBS = {"GET", "DELETE", "POST", "PUT", "PATCH"}
_CSHARP_CONTENT_VERBS = {"POST", "PUT", "PATCH"}


def generate_csharp(request: ApiRequest, options: CodeGenOptions) -> str:
    url = _escape_double_quote(build_full_url(request))
    headers = get_enabled_headers(request)
    body = get_body(request)
    method = request.method.value
    verb = _capitalize(method.lower())

    lines = [
        "using System;",
        "using System.Net.Http;",
        "using System.Threading.Tasks;",
        "",
        "class Program",
        "{",
        "    static async Task Main()",
        "    {",
        "        using var client = new HttpClient();",
        "",
    ]

    for k, v in headers.items():
        if k.lower() != "content-type":
            lines.append(f'        client.DefaultRequestHeaders.Add("{_escape_double_quote(k)}", "{_escape_double_quote(v)}");')

    if body:
        media_type = (_content_type(headers) or "text/plain").split(";")[0].strip()
        verbatim = body.replace('"', '""')
        lines.append(
            f'        var content = new StringContent(@"{verbatim}", '
            f'System.Text.Encoding.UTF8, "{media_type}");'
        )

    if method in _CSHARP_CONTENT_VERBS:
        content_arg = "content" if body else "null"
        lines.append(f'        var response = await client.{verb}Async("{url}", {content_arg});')
    elif method in _CSHARP_SHORTCUT_VERBS and not body:
        lines.append(f'        var response = await client.{verb}Async("{url}");')
    else:
        lines.append(f'        var request = new HttpRequestMessage(HttpMethod.{verb}, "{url}");')
        if body:
            lines.append("        request.Content = content;")
        lines.append("        var response = await client.SendAsync(request);")

    lines.append("")
    lines.append("        Console.WriteLine(response.StatusCode);")
    lines.append("        Console.WriteLine(await response.Content.ReadAsStringAsync());")
    lines.append("    }")
    lines.append("}")

    return "\n".join(lines)


def generate_java(request: ApiRequest, options: CodeGenOptions) -> str:
    url = build_full_url(request)
    headers = get_enabled_headers(request)
    body = get_body(request)
    method = request.method.value

    lines = [
        "import java.net.URI;",
        "import java.net.http.HttpClient;",
        "import java.net.http.HttpRequest;",
        "import java.net.http.HttpResponse;",
        "",
        "public class Main {",
        "    public static void main(String[] args) throws Exception {",
        "        HttpClient client = HttpClient.newHttpClient();",
        "",
        "        HttpRequest request = HttpRequest.newBuilder()",
        f'            .uri(URI.create("{_escape_double_quote(url)}"))',
    ]

    for k, v in headers.items():
        lines.append(f'            .header("{_escape_double_quote(k)}", "{_escape_double_quote(v)}")')

    if body:
        lines.append(
            f'            .method("{method}", HttpRequest.BodyPublishers.ofString("{_escape_double_quote(body)}"))'
        )
    else:
        lines.append(f'            .method("{method}", HttpRequest.BodyPublishers.noBody())')

    lines.append("            .build();")
    lines.append("")
    lines.append("        HttpResponse<String> response = client.send(request, HttpResponse.BodyHandlers.ofString());")
    lines.append("")
    lines.append("        System.out.println(response.statusCode());")
    lines.append("        System.out.println(response.body());")
    lines.append("    }")
    lines.append("}")

    return "\n".join(lines)


# ── Master dispatcher ──

GENERATORS: dict[CodeLanguage, Callable[[ApiRequest, CodeGenOptions], str]] = {
    CodeLanguage.CURL: generate_curl,
    CodeLanguage.FETCH: generate_javascript_fetch,
    CodeLanguage.AXIOS: generate_javascript_axios,
    CodeLanguage.PYTHON: generate_python_requests,
    CodeLanguage.GO: generate_go,
    CodeLanguage.PHP: generate_php,
    CodeLanguage.RUBY: generate_ruby,
    CodeLanguage.CSHARP: generate_csharp,
    CodeLanguage.JAVA: generate_java,
}

LANGUAGE_LABELS = {
    CodeLanguage.CURL: "cURL",
    CodeLanguage.FETCH: "JavaScript (Fetch)",
    CodeLanguage.AXIOS: "JavaScript (Axios)",
    CodeLanguage.PYTHON: "Python (Requests)",
    CodeLanguage.GO: "Go",
    CodeLanguage.PHP: "PHP (cURL)",
    CodeLanguage.RUBY: "Ruby",
    CodeLanguage.CSHARP: "C# (.NET)",
    CodeLanguage.JAVA: "Java (HttpClient)",
}


def generate_code(
    request: ApiRequest,
    language: CodeLanguage | str,
    options: CodeGenOptions | None = None,
) -> str:
    try:
        lang = CodeLanguage(language)
    except ValueError:
        raise UnsupportedLanguageError(
            f"Unsupported language: {language}. Supported: {[l.value for l in CodeLanguage]}"
        ) from None

    logger.debug("Generating %s snippet for %s %s", lang.value, request.method.value, request.url)
    return GENERATORS[lang](request, options or CodeGenOptions())
