"""
Unit tests for HTTP response encoding.
"""

import json

import pytest

from orderboard.http.response import (
    CORS_HEADERS,
    HTTPResponse,
    bad_request,
    created,
    error_response,
    internal_error,
    json_response,
    message_response,
    not_found,
    ok,
    preflight_response,
)
from orderboard.http.status_codes import HTTPStatus


def header_lines(raw: bytes) -> list:
    head, _, _ = raw.partition(b"\r\n\r\n")
    return head.decode("utf-8").split("\r\n")


class TestHTTPResponse:
    """Tests for HTTPResponse class."""

    def test_status_line(self):
        response = HTTPResponse(status=HTTPStatus.NOT_FOUND)
        assert response.status_line == "HTTP/1.1 404 Not Found"

    def test_to_bytes_sets_content_length(self):
        response = HTTPResponse(status=HTTPStatus.OK).set_body("hello")

        raw = response.to_bytes()

        assert b"Content-Length: 5\r\n" in raw
        assert raw.endswith(b"\r\n\r\nhello")

    def test_content_length_counts_bytes(self):
        response = HTTPResponse().set_body("é")

        assert b"Content-Length: 2\r\n" in response.to_bytes()

    def test_no_date_or_server_header(self):
        raw = ok("[]").to_bytes()

        assert b"Date:" not in raw
        assert b"Server:" not in raw
        assert b"Connection:" not in raw

    def test_set_header_chaining(self):
        response = HTTPResponse().set_header("X-A", "1").set_header("X-B", "2")

        assert response.headers == {"X-A": "1", "X-B": "2"}


class TestJSONResponses:
    """Tests for the response constructors."""

    def test_json_header_block_order(self):
        raw = json_response(HTTPStatus.OK, "[]").to_bytes()

        assert header_lines(raw) == [
            "HTTP/1.1 200 OK",
            "Content-Type: application/json",
            "Access-Control-Allow-Origin: *",
            "Access-Control-Allow-Methods: GET, POST, DELETE, OPTIONS",
            "Access-Control-Allow-Headers: Content-Type, Origin, Accept",
            "Content-Length: 2",
        ]

    def test_body_sent_verbatim(self):
        response = created('{"id":"x"}')

        assert response.status == HTTPStatus.CREATED
        assert response.text == '{"id":"x"}'

    def test_preflight(self):
        raw = preflight_response().to_bytes()

        assert header_lines(raw) == [
            "HTTP/1.1 204 No Content",
            "Access-Control-Allow-Origin: *",
            "Access-Control-Allow-Methods: GET, POST, DELETE, OPTIONS",
            "Access-Control-Allow-Headers: Content-Type, Origin, Accept",
            "Access-Control-Max-Age: 86400",
            "Content-Length: 0",
        ]
        assert raw.endswith(b"\r\n\r\n")

    def test_error_body_shape(self):
        response = error_response(HTTPStatus.BAD_REQUEST, "Missing request body")

        assert response.text == '{"error": "Missing request body"}'

    def test_message_body_shape(self):
        response = message_response(HTTPStatus.OK, "Order x deleted successfully")

        assert json.loads(response.text) == {"message": "Order x deleted successfully"}

    @pytest.mark.parametrize("factory,status", [
        (bad_request, HTTPStatus.BAD_REQUEST),
        (not_found, HTTPStatus.NOT_FOUND),
        (internal_error, HTTPStatus.INTERNAL_SERVER_ERROR),
    ])
    def test_error_helpers(self, factory, status):
        response = factory("boom")

        assert response.status == status
        assert json.loads(response.text) == {"error": "boom"}
        for name, value in CORS_HEADERS.items():
            assert response.headers[name] == value


class TestHTTPStatus:
    """Tests for HTTPStatus enum."""

    def test_status_phrases(self):
        assert HTTPStatus.OK.phrase == "OK"
        assert HTTPStatus.CREATED.phrase == "Created"
        assert HTTPStatus.NO_CONTENT.phrase == "No Content"
        assert HTTPStatus.INTERNAL_SERVER_ERROR.phrase == "Internal Server Error"

    def test_formats_as_number(self):
        assert f"{HTTPStatus.CREATED}" == "201"
        assert str(HTTPStatus.NOT_FOUND) == "404"
