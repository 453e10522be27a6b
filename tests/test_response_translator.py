"""Tests for captured response → outbound event translation."""

import base64

import httpx
import pytest

from core.errors import ResponseReadError
from server.invoker import ResponseRecorder
from server.response_translator import encode_body, from_response


class FailingStream(httpx.SyncByteStream):
    """Body stream that breaks halfway through."""

    def __iter__(self):
        yield b"partial"
        raise httpx.ReadError("connection reset")


def captured(status_code=200, headers=(), body=b"") -> httpx.Response:
    recorder = ResponseRecorder()
    recorder.write_header(status_code, headers)
    recorder.write(body)
    return recorder.result()


class TestEncodeBody:
    """Test text/base64 body selection."""

    def test_utf8_text_is_kept(self):
        """Test that valid UTF-8 stays text."""
        assert encode_body("héllo wörld".encode("utf-8")) == ("héllo wörld", False)

    def test_binary_is_base64(self):
        """Test that invalid UTF-8 is base64-encoded."""
        raw = b"\xff\xd8\xff\xe0\x00\x10JFIF"

        body, is_base64 = encode_body(raw)

        assert is_base64 is True
        assert base64.b64decode(body) == raw

    def test_empty_body_is_text(self):
        """Test that an empty body is emitted as empty text."""
        assert encode_body(b"") == ("", False)


class TestFromResponse:
    """Test from_response()."""

    def test_hello_world(self):
        """Test the plain 200 Hello World example."""
        result = from_response(captured(200, body=b"Hello World!"))

        assert result.status_code == 200
        assert result.body == "Hello World!"
        assert result.is_base64_encoded is False

    def test_binary_round_trip(self):
        """Test that arbitrary bytes survive base64 encoding."""
        raw = bytes(range(256))

        result = from_response(captured(200, [("Content-Type", "application/octet-stream")], raw))

        assert result.is_base64_encoded is True
        assert base64.b64decode(result.body) == raw

    def test_content_type_is_not_consulted(self):
        """Test that a binary content type does not force base64 on text bytes."""
        result = from_response(captured(200, [("Content-Type", "image/png")], b"plain text"))

        assert result.is_base64_encoded is False
        assert result.body == "plain text"

    def test_single_value_headers_are_empty(self):
        """Test that response headers only travel as multi-value headers."""
        result = from_response(captured(200, [("Content-Type", "text/plain")], b"ok"))

        assert result.headers == {}
        assert result.multi_value_headers == {"Content-Type": ["text/plain"]}

    def test_repeated_headers_are_grouped_in_order(self):
        """Test that repeated headers keep every value in emission order."""
        headers = [
            ("Set-Cookie", "a=1"),
            ("X-Trace", "t"),
            ("Set-Cookie", "b=2"),
        ]

        result = from_response(captured(204, headers))

        assert result.status_code == 204
        assert result.multi_value_headers == {"Set-Cookie": ["a=1", "b=2"], "X-Trace": ["t"]}

    def test_compressed_body_is_not_decoded(self):
        """Test that Content-Encoding does not trigger decompression."""
        gzip_magic = b"\x1f\x8b\x08\x00\x00\x00\x00\x00"

        result = from_response(captured(200, [("Content-Encoding", "gzip")], gzip_magic))

        assert result.is_base64_encoded is True
        assert base64.b64decode(result.body) == gzip_magic

    def test_status_description_is_blank(self):
        """Test that the generic response leaves statusDescription empty."""
        assert from_response(captured(404, body=b"missing")).status_description == ""

    def test_failing_stream_raises_response_read_error(self):
        """Test that an undrainable body raises ResponseReadError."""
        response = httpx.Response(200, stream=FailingStream())

        with pytest.raises(ResponseReadError) as exc_info:
            from_response(response)

        assert exc_info.value.phase == "response"
        assert isinstance(exc_info.value.__cause__, httpx.ReadError)

    def test_consumed_stream_raises_response_read_error(self):
        """Test that a response read twice raises ResponseReadError."""
        response = captured(200, body=b"once")
        from_response(response)

        with pytest.raises(ResponseReadError):
            from_response(response)
