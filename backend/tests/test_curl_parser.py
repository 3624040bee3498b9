"""
Tests for the cURL importer.

Covers the quote-aware tokenizer and the flag walker that builds an
ApiRequest from a command line.
"""

import base64

import pytest

from reqbridge.models import BodyType, HttpMethod
from reqbridge.services.curl_parser import parse_curl, tokenize


class TestTokenize:
    """Test suite for the shell-style tokenizer."""

    def test_splits_on_whitespace(self):
        assert tokenize("-X POST https://x.com") == ["-X", "POST", "https://x.com"]

    def test_collapses_repeated_whitespace(self):
        assert tokenize("a   b\t\tc") == ["a", "b", "c"]

    def test_single_quotes_keep_spaces(self):
        assert tokenize("-H 'Content-Type: application/json'") == ["-H", "Content-Type: application/json"]

    def test_double_quotes_keep_spaces(self):
        assert tokenize('-A "Mozilla/5.0 (X11)"') == ["-A", "Mozilla/5.0 (X11)"]

    def test_other_quote_style_is_literal(self):
        assert tokenize("""-d '{"a": 1}'""") == ["-d", '{"a": 1}']
        assert tokenize('''say "it's"''') == ["say", "it's"]

    def test_backslash_escapes_outside_quotes(self):
        assert tokenize(r"a\ b c") == ["a b", "c"]

    def test_backslash_escapes_inside_double_quotes(self):
        assert tokenize(r'"{\"a\":1}"') == ['{"a":1}']

    def test_backslash_before_ordinary_char_in_double_quotes(self):
        assert tokenize(r'"C:\tmp"') == ["C:tmp"]

    def test_backslash_is_literal_inside_single_quotes(self):
        assert tokenize(r"'a\nb'") == [r"a\nb"]

    def test_adjacent_quoted_segments_join(self):
        assert tokenize("""'it'"'"'s'""") == ["it's"]

    def test_unterminated_quote_degrades_gracefully(self):
        assert tokenize("-d 'unterminated value") == ["-d", "unterminated value"]

    def test_empty_input(self):
        assert tokenize("") == []
        assert tokenize("   ") == []

    def test_empty_quotes_produce_no_token(self):
        assert tokenize("a '' b") == ["a", "b"]


class TestParseCurlBasics:
    """Test suite for URL, method and header handling."""

    def test_simple_get(self):
        result = parse_curl("curl https://api.example.com/users")
        assert result.method == HttpMethod.GET
        assert result.url == "https://api.example.com/users"
        assert result.body.type == BodyType.NONE

    def test_method_flag(self):
        result = parse_curl("curl -X POST https://api.example.com/users")
        assert result.method == HttpMethod.POST

    def test_long_method_flag_is_uppercased(self):
        result = parse_curl("curl --request patch https://api.example.com/users/1")
        assert result.method == HttpMethod.PATCH

    def test_headers(self):
        result = parse_curl(
            "curl https://api.example.com \\\n"
            "  -H 'Content-Type: application/json' \\\n"
            "  -H 'Authorization: Bearer token123'"
        )
        assert [(h.key, h.value) for h in result.headers] == [
            ("Content-Type", "application/json"),
            ("Authorization", "Bearer token123"),
        ]
        assert all(h.enabled for h in result.headers)

    def test_header_value_with_colons(self):
        result = parse_curl("curl -H 'X-Time: 12:30:00' https://x.com")
        assert result.headers[0].key == "X-Time"
        assert result.headers[0].value == "12:30:00"

    def test_header_without_colon_is_ignored(self):
        result = parse_curl("curl -H 'nonsense' https://x.com")
        assert result.headers == []

    def test_double_quoted_url(self):
        assert parse_curl('curl "https://api.example.com/users"').url == "https://api.example.com/users"

    def test_single_quoted_url(self):
        assert parse_curl("curl 'https://api.example.com/users'").url == "https://api.example.com/users"

    def test_url_without_path_gets_root(self):
        assert parse_curl("curl https://api.example.com").url == "https://api.example.com/"

    def test_scheme_less_url(self):
        result = parse_curl("curl localhost:3000/api/items")
        assert result.url == "http://localhost:3000/api/items"

    def test_curl_prefix_is_case_insensitive(self):
        assert parse_curl("CURL https://x.com/a").url == "https://x.com/a"

    def test_shell_prompt_is_stripped(self):
        assert parse_curl("$ curl https://x.com/a").url == "https://x.com/a"

    def test_missing_url(self):
        result = parse_curl("curl -X POST")
        assert result.url == ""
        assert result.name == "Imported Request"

    def test_empty_command(self):
        result = parse_curl("")
        assert result.url == ""
        assert result.method == HttpMethod.GET

    def test_timestamps_are_stamped(self):
        result = parse_curl("curl https://x.com/a")
        assert result.created_at
        assert result.created_at == result.updated_at


class TestParseCurlQuery:
    """Test suite for splitting the query string into params."""

    def test_query_split(self):
        result = parse_curl("curl 'https://api.example.com/search?q=test&page=1'")
        assert result.url == "https://api.example.com/search"
        assert [(p.key, p.value, p.enabled) for p in result.params] == [
            ("q", "test", True),
            ("page", "1", True),
        ]

    def test_query_values_are_decoded(self):
        result = parse_curl("curl 'https://x.com/s?q=hello+world&tag=a%26b&empty='")
        assert [(p.key, p.value) for p in result.params] == [
            ("q", "hello world"),
            ("tag", "a&b"),
            ("empty", ""),
        ]

    def test_param_ids_are_unique(self):
        result = parse_curl("curl 'https://x.com/s?a=1&b=2&c=3'")
        assert len({p.id for p in result.params}) == 3


class TestParseCurlBody:
    """Test suite for body flags and method promotion."""

    def test_json_body(self):
        result = parse_curl(
            "curl -X POST https://api.example.com/users \\\n"
            "  -H 'Content-Type: application/json' \\\n"
            """  -d '{"name": "John", "email": "john@example.com"}'"""
        )
        assert result.method == HttpMethod.POST
        assert result.body.type == BodyType.JSON
        assert result.body.content == '{"name": "John", "email": "john@example.com"}'

    def test_json_classification(self):
        assert parse_curl("""curl -d '{"a":1}' url.com""").body.type == BodyType.JSON
        assert parse_curl("curl -d 'not json' url.com").body.type == BodyType.RAW

    @pytest.mark.parametrize("value", ["NaN", "Infinity", "-Infinity", "[1, NaN]"])
    def test_non_json_constants_are_raw(self, value):
        result = parse_curl(f"curl -d '{value}' https://x.com")
        assert result.body.type == BodyType.RAW
        assert result.body.content == value

    def test_body_promotes_get_to_post(self):
        assert parse_curl("curl -d '{}' https://x.com").method == HttpMethod.POST

    @pytest.mark.parametrize("command", [
        "curl -X PUT -d '{}' https://x.com",
        "curl -d '{}' -X PUT https://x.com",
        "curl -d '{}' https://x.com -X PUT",
    ])
    def test_explicit_method_wins(self, command):
        assert parse_curl(command).method == HttpMethod.PUT

    def test_explicit_get_is_not_promoted(self):
        assert parse_curl("curl -X GET -d 'q=1' https://x.com").method == HttpMethod.GET

    @pytest.mark.parametrize("flag", ["--data", "--data-raw", "--data-binary"])
    def test_data_aliases(self, flag):
        result = parse_curl(f"curl {flag} 'payload' https://x.com")
        assert result.body.content == "payload"
        assert result.method == HttpMethod.POST

    def test_form_fields(self):
        result = parse_curl(
            "curl -X POST https://api.example.com/upload \\\n"
            "  -F 'file=@photo.jpg' \\\n"
            "  -F 'description=My photo'"
        )
        assert result.body.type == BodyType.FORM_DATA
        assert [(f.key, f.value) for f in result.body.form_data] == [
            ("file", "@photo.jpg"),
            ("description", "My photo"),
        ]
        assert result.body.content is None

    def test_form_promotes_to_post(self):
        assert parse_curl("curl -F 'a=1' https://x.com").method == HttpMethod.POST

    def test_urlencoded_fields(self):
        result = parse_curl(
            "curl https://api.example.com/login \\\n"
            "  --data-urlencode 'username=john' \\\n"
            "  --data-urlencode 'password=secret'"
        )
        assert result.method == HttpMethod.POST
        assert result.body.type == BodyType.URLENCODED
        assert [(f.key, f.value) for f in result.body.form_data] == [
            ("username", "john"),
            ("password", "secret"),
        ]

    def test_switching_form_kind_resets_fields(self):
        result = parse_curl("curl --data-urlencode 'a=1' -F 'b=2' https://x.com")
        assert result.body.type == BodyType.FORM_DATA
        assert [f.key for f in result.body.form_data] == ["b"]


class TestParseCurlShortcutFlags:
    """Test suite for flags that expand into headers."""

    def test_basic_auth(self):
        result = parse_curl("curl -u username:password https://api.example.com")
        auth = next(h for h in result.headers if h.key == "Authorization")
        expected = base64.b64encode(b"username:password").decode()
        assert auth.value == f"Basic {expected}"

    def test_cookie(self):
        result = parse_curl('curl -b "session=abc123" https://api.example.com')
        cookie = next(h for h in result.headers if h.key == "Cookie")
        assert cookie.value == "session=abc123"

    def test_user_agent(self):
        result = parse_curl('curl -A "Mozilla/5.0" https://api.example.com')
        ua = next(h for h in result.headers if h.key == "User-Agent")
        assert ua.value == "Mozilla/5.0"

    def test_referer(self):
        result = parse_curl("curl -e https://from.example.com https://api.example.com/a")
        assert result.url == "https://api.example.com/a"
        assert next(h for h in result.headers if h.key == "Referer").value == "https://from.example.com"

    def test_compressed(self):
        result = parse_curl("curl --compressed https://api.example.com")
        encoding = next(h for h in result.headers if h.key == "Accept-Encoding")
        assert encoding.value == "gzip, deflate, br"

    def test_compressed_keeps_existing_header(self):
        result = parse_curl("curl -H 'accept-encoding: identity' --compressed https://x.com")
        assert [(h.key, h.value) for h in result.headers] == [("accept-encoding", "identity")]


class TestParseCurlUnknownFlags:
    """Test suite for the best-effort handling of unrecognised flags."""

    def test_unknown_flag_value_is_skipped(self):
        result = parse_curl("curl --max-time 10 https://x.com/a")
        assert result.url == "https://x.com/a"

    def test_known_no_value_flags_do_not_swallow(self):
        result = parse_curl("curl -L -k -s https://x.com/a")
        assert result.url == "https://x.com/a"

    def test_unknown_flag_followed_by_flag(self):
        result = parse_curl("curl --http2 -X DELETE https://x.com/a")
        assert result.method == HttpMethod.DELETE
        assert result.url == "https://x.com/a"

    def test_unknown_flag_can_swallow_url(self):
        # Known limitation: the next token is taken as the flag's value
        result = parse_curl("curl --fail-with-body https://x.com/a")
        assert result.url == ""


class TestParseCurlNaming:
    """Test suite for request name derivation and full commands."""

    def test_name_from_path(self):
        result = parse_curl("curl -X DELETE https://api.example.com/users/123")
        assert result.name == "DELETE /users/123"

    def test_name_for_root(self):
        assert parse_curl("curl https://api.example.com").name == "GET /"

    def test_line_continuations(self):
        result = parse_curl(
            "curl \\\n"
            "  -X POST \\\n"
            "  -H 'Content-Type: application/json' \\\n"
            """  -d '{"name": "test"}' \\\n"""
            "  https://api.example.com/users"
        )
        assert result.method == HttpMethod.POST
        assert result.url == "https://api.example.com/users"
        assert result.body.content == '{"name": "test"}'

    def test_windows_line_continuations(self):
        result = parse_curl("curl \\\r\n  -X PUT \\\r\n  https://x.com/items/1")
        assert result.method == HttpMethod.PUT
        assert result.url == "https://x.com/items/1"

    def test_real_world_stripe_example(self):
        result = parse_curl(
            "curl 'https://api.stripe.com/v1/charges' \\\n"
            "  -u sk_test_xxx: \\\n"
            "  -H 'Content-Type: application/x-www-form-urlencoded' \\\n"
            "  -d 'amount=2000' \\\n"
            "  -d 'currency=usd' \\\n"
            "  -d 'source=tok_visa'"
        )
        assert result.method == HttpMethod.POST
        assert result.url == "https://api.stripe.com/v1/charges"
        assert any(h.key == "Authorization" for h in result.headers)
        assert result.name == "POST /v1/charges"
