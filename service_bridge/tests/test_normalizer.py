"""
Unit tests for the bridge response normalizer.
"""

import json

import pytest

from shared.errors import BridgeHtmlError, UpstreamFailureError, UpstreamShapeError
from service_bridge.app.adapters.bridge_client import BridgeResponse
from service_bridge.app.domain.models import NormalizedRecord
from service_bridge.app.domain.normalizer import (
    KIND_HTML,
    KIND_HTTP,
    KIND_SHAPE,
    NormalizationFailure,
    acknowledges,
    is_json_media_type,
    normalize_response,
)


def json_response(payload, status=200, content_type="application/json"):
    return BridgeResponse(status_code=status, content_type=content_type, text=json.dumps(payload), url="http://bridge.test")


class TestNormalizeResponse:
    """Test cases for normalize_response."""

    @pytest.mark.parametrize(
        "payload, expected_name, expected_text",
        [
            ({"ok": True, "text": "t"}, None, "t"),
            ({"text": "t"}, None, "t"),
            ({"data": {"name": "n", "text": "t"}}, "n", "t"),
        ],
    )
    def test_known_shapes(self, payload, expected_name, expected_text):
        record = normalize_response("ca1", json_response(payload))

        assert isinstance(record, NormalizedRecord)
        assert record.ok is True
        assert record.alias == "ca1"
        assert record.name == expected_name
        assert record.text == expected_text

    def test_data_fields_win_over_top_level(self):
        payload = {"data": {"name": "n", "text": "t"}, "text": "x", "name": "y"}

        record = normalize_response("ca1", json_response(payload))

        assert record.name == "n"
        assert record.text == "t"

    def test_top_level_name_used_when_data_lacks_it(self):
        record = normalize_response("ca1", json_response({"data": {"text": "t"}, "name": "top"}))

        assert record.name == "top"

    def test_ok_without_text_yields_empty_text(self):
        record = normalize_response("ca1", json_response({"ok": True}))

        assert isinstance(record, NormalizedRecord)
        assert record.text == ""

    def test_ok_false_with_text_is_success(self):
        """Success is the ok/text/data.text disjunction, so text overrides ok: false."""
        record = normalize_response("ca1", json_response({"ok": False, "text": "still here"}))

        assert isinstance(record, NormalizedRecord)
        assert record.text == "still here"

    def test_null_data_text_falls_through_to_top_level(self):
        record = normalize_response("ca1", json_response({"data": {"text": None}, "text": "x"}))

        assert record.text == "x"

    def test_empty_data_text_is_kept_over_top_level(self):
        """An empty string is present, not missing, so data.text still wins."""
        record = normalize_response("ca1", json_response({"data": {"text": ""}, "text": "x"}))

        assert isinstance(record, NormalizedRecord)
        assert record.text == ""

    @pytest.mark.parametrize(
        "payload",
        [
            {"ok": False},
            {"ok": False, "text": ""},
            {"data": {"name": "n"}},
            {"error": "no such alias"},
            {},
        ],
    )
    def test_missing_success_signal_is_shape_failure(self, payload):
        result = normalize_response("ca1", json_response(payload))

        assert isinstance(result, NormalizationFailure)
        assert result.kind == KIND_SHAPE
        assert result.source == payload
        assert isinstance(result.to_error(), UpstreamShapeError)

    def test_non_object_json_is_shape_failure(self):
        result = normalize_response("ca1", json_response(["text"]))

        assert isinstance(result, NormalizationFailure)
        assert result.kind == KIND_SHAPE

    def test_unparseable_json_is_shape_failure(self):
        response = BridgeResponse(200, "application/json", "{not json", "http://bridge.test")

        result = normalize_response("ca1", response)

        assert result.kind == KIND_SHAPE
        assert result.source == {}

    def test_error_status_fails_regardless_of_body(self):
        result = normalize_response("ca1", json_response({"ok": True, "text": "t"}, status=500))

        assert isinstance(result, NormalizationFailure)
        assert result.kind == KIND_HTTP
        assert result.status == 500

        error = result.to_error()
        assert type(error) is UpstreamFailureError
        assert error.status_code == 502
        assert error.details["status"] == 500
        assert error.details["source"] == {"ok": True, "text": "t"}

    def test_html_body_is_bridge_html_failure(self):
        body = "<html>" + "x" * 1000 + "</html>"
        response = BridgeResponse(200, "text/html; charset=utf-8", body, "http://bridge.test")

        result = normalize_response("ca1", response)

        assert result.kind == KIND_HTML
        assert result.content_type == "text/html; charset=utf-8"
        assert result.body_preview == body[:500]

        error = result.to_error()
        assert isinstance(error, BridgeHtmlError)
        assert error.code == "bridge_html"
        assert error.details["bodyPreview"] == body[:500]
        assert error.details["contentType"] == "text/html; charset=utf-8"
        assert "source" not in error.details

    def test_missing_content_type_is_bridge_html_failure(self):
        response = BridgeResponse(200, "", '{"text": "t"}', "http://bridge.test")

        assert normalize_response("ca1", response).kind == KIND_HTML

    def test_non_string_fields_are_stringified(self):
        record = normalize_response("ca1", json_response({"data": {"name": 7, "text": 42}}))

        assert record.name == "7"
        assert record.text == "42"


class TestMediaTypes:
    """Test cases for JSON media type detection."""

    @pytest.mark.parametrize(
        "content_type",
        ["application/json", "application/json; charset=utf-8", "Application/JSON", "application/problem+json"],
    )
    def test_json_media_types(self, content_type):
        assert is_json_media_type(content_type)

    @pytest.mark.parametrize("content_type", ["text/html", "text/plain", "", None, "application/jsonp"])
    def test_other_media_types(self, content_type):
        assert not is_json_media_type(content_type)


class TestAcknowledges:
    """Test cases for side-effect acknowledgements."""

    def test_ok_payload_acknowledges(self):
        assert acknowledges(json_response({"ok": True}))

    def test_text_without_ok_does_not_acknowledge(self):
        assert not acknowledges(json_response({"text": "t"}))

    def test_error_status_does_not_acknowledge(self):
        assert not acknowledges(json_response({"ok": True}, status=500))

    def test_html_does_not_acknowledge(self):
        assert not acknowledges(BridgeResponse(200, "text/html", "<html/>", "http://bridge.test"))
