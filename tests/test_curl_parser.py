"""Tests for importing curl commands into request templates."""

import base64

import pytest

from reqcraft.curl_parser import FILE_PLACEHOLDER, ParseError, parse_curl, split_url
from reqcraft.models import BasicAuth, BearerAuth, BodyType, NoAuth


def _headers(request):
    return [(h.key, h.value) for h in request.headers]


def _pairs(rows):
    return [(r.key, r.value) for r in rows]


class TestErrors:
    def test_must_start_with_curl(self):
        with pytest.raises(ParseError, match="start with 'curl'"):
            parse_curl("wget http://x.test")

    def test_empty_command(self):
        with pytest.raises(ParseError):
            parse_curl("   ")

    def test_no_url(self):
        with pytest.raises(ParseError, match="Could not find a URL in the command."):
            parse_curl("curl -X POST -H 'Accept: */*'")


class TestUrl:
    def test_end_to_end_json_post(self):
        request = parse_curl(
            "curl -X POST https://x.test/p?a=1 -H 'Content-Type: application/json' -d '{\"k\":1}'",
        )
        assert request.method == "POST"
        assert request.url == "https://x.test/p"
        assert _pairs(request.params) == [("a", "1")]
        assert all(p.enabled for p in request.params)
        assert _headers(request) == [("Content-Type", "application/json")]
        assert request.body_type == BodyType.RAW
        assert request.body == '{"k":1}'

    def test_explicit_url_flag_wins(self):
        request = parse_curl("curl -L --url 'https://a.test/x' https://b.test/y")
        assert request.url == "https://a.test/x"

    def test_skips_values_of_value_flags(self):
        request = parse_curl("curl -H 'X-A: 1' -o out.json -X GET http://x.test")
        assert request.url == "http://x.test"

    def test_placeholders_survive(self):
        request = parse_curl("curl '{{base}}/users?page={{page}}'")
        assert request.url == "{{base}}/users"
        assert _pairs(request.params) == [("page", "{{page}}")]

    def test_query_is_percent_decoded(self):
        request = parse_curl("curl 'http://x.test/s?q=a+b&tag=%23one&empty'")
        assert _pairs(request.params) == [("q", "a b"), ("tag", "#one"), ("empty", "")]

    def test_split_url_drops_fragment(self):
        assert split_url("http://x.test/p#top") == ("http://x.test/p", [])


class TestMethod:
    def test_default_get(self):
        assert parse_curl("curl http://x.test").method == "GET"

    def test_data_implies_post(self):
        assert parse_curl("curl http://x.test -d a=1").method == "POST"

    def test_explicit_method_kept_with_data(self):
        assert parse_curl("curl -X put http://x.test -d a=1").method == "PUT"

    def test_request_long_flag(self):
        assert parse_curl("curl --request DELETE http://x.test").method == "DELETE"


class TestHeaders:
    def test_multiple_headers_trimmed(self):
        request = parse_curl("curl http://x.test -H 'Accept:  text/plain ' --header \"X-Id: 7\"")
        assert _headers(request) == [("Accept", "text/plain"), ("X-Id", "7")]

    def test_header_without_colon_skipped(self):
        request = parse_curl("curl http://x.test -H 'broken' -H 'Ok: yes'")
        assert _headers(request) == [("Ok", "yes")]

    def test_header_value_with_colon(self):
        request = parse_curl("curl http://x.test -H 'Referer: http://a.test:8080/'")
        assert _headers(request) == [("Referer", "http://a.test:8080/")]

    def test_unknown_flags_ignored(self):
        request = parse_curl("curl -s -k --compressed http://x.test -H 'A: b'")
        assert request.url == "http://x.test"
        assert _headers(request) == [("A", "b")]


class TestBody:
    def test_urlencoded_by_default(self):
        request = parse_curl("curl http://x.test -d 'a=1&b=two+words' --data c=%26")
        assert request.body_type == BodyType.URL_ENCODED
        assert _pairs(request.form_data) == [("a", "1"), ("b", "two words"), ("c", "&")]
        assert request.body == ""

    def test_json_parts_joined_with_ampersand(self):
        request = parse_curl(
            "curl http://x.test -H 'content-type: application/json; charset=utf-8' -d '{' -d '}'",
        )
        assert request.body_type == BodyType.RAW
        assert request.body == "{&}"

    def test_form_fields(self):
        request = parse_curl("curl http://x.test --form 'name=Ann Lee' -F age=30")
        assert request.body_type == BodyType.FORM_DATA
        assert request.method == "POST"
        assert _pairs(request.form_data) == [("name", "Ann Lee"), ("age", "30")]

    def test_form_file_stored_disabled(self):
        request = parse_curl("curl http://x.test --form 'doc=@/tmp/a.pdf' --form n=1")
        doc = request.form_data[0]
        assert doc.key == "doc"
        assert doc.enabled is False
        assert doc.value == FILE_PLACEHOLDER.format(path="/tmp/a.pdf")
        assert request.form_data[1].enabled is True

    def test_json_flag(self):
        request = parse_curl("curl http://x.test --json '{\"a\":1}'")
        assert request.method == "POST"
        assert request.body_type == BodyType.RAW
        assert request.body == '{"a":1}'
        assert ("Content-Type", "application/json") in _headers(request)
        assert ("Accept", "application/json") in _headers(request)

    def test_multiline_command(self):
        command = (
            "curl --request PATCH \\\n"
            "  --url 'https://x.test/items/1' \\\n"
            "  --header 'Content-Type: application/json' \\\n"
            "  --data '{\"name\": \"it'\\''s\"}'"
        )
        request = parse_curl(command)
        assert request.method == "PATCH"
        assert request.url == "https://x.test/items/1"
        assert request.body == '{"name": "it\'s"}'


class TestAuth:
    def test_user_flag(self):
        request = parse_curl("curl -u alice:s3:cret http://x.test")
        assert request.auth == BasicAuth(username="alice", password="s3:cret")

    def test_user_without_password(self):
        request = parse_curl("curl --user alice http://x.test")
        assert request.auth == BasicAuth(username="alice", password="")

    def test_bearer_header(self):
        request = parse_curl("curl http://x.test -H 'Authorization: Bearer abc.def'")
        assert request.auth == BearerAuth(token="abc.def")
        assert ("Authorization", "Bearer abc.def") in _headers(request)

    def test_basic_header_decoded(self):
        token = base64.b64encode(b"bob:pw").decode()
        request = parse_curl(f"curl http://x.test -H 'Authorization: Basic {token}'")
        assert request.auth == BasicAuth(username="bob", password="pw")

    def test_basic_header_undecodable(self):
        request = parse_curl("curl http://x.test -H 'Authorization: Basic !!!notbase64'")
        assert request.auth == NoAuth()

    def test_user_flag_beats_header(self):
        request = parse_curl(
            "curl -u alice:pw http://x.test -H 'Authorization: Bearer abc'",
        )
        assert request.auth == BasicAuth(username="alice", password="pw")

    def test_no_auth(self):
        assert parse_curl("curl http://x.test").auth == NoAuth()
