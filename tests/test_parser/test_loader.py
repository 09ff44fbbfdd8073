"""Tests for sdkforge.parser.loader."""

from __future__ import annotations

import io
import json
import textwrap
from pathlib import Path
from unittest.mock import patch

import httpx
import pytest

from sdkforge.exceptions import ParseError
from sdkforge.parser.loader import load_document, parse_document

FIXTURES_DIR = Path(__file__).parent.parent / "fixtures"


def _response(status: int = 200, **kwargs) -> httpx.Response:
    return httpx.Response(
        status_code=status,
        request=httpx.Request("GET", "https://example.com/spec"),
        **kwargs,
    )


# ---------------------------------------------------------------------------
# load_document dispatch
# ---------------------------------------------------------------------------


class TestLoadDocument:
    """load_document routes to the correct reader."""

    def test_loads_json_file(self) -> None:
        result = load_document(str(FIXTURES_DIR / "petstore.json"))
        assert result["openapi"] == "3.0.3"

    def test_accepts_path_objects(self) -> None:
        result = load_document(FIXTURES_DIR / "postman_collection.json")
        assert result["info"]["name"] == "Acme API"

    def test_loads_yaml_file(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "spec.yaml"
        yaml_file.write_text(
            textwrap.dedent("""\
                openapi: "3.1.0"
                info:
                  title: YAML Test
                  version: "1.0.0"
                paths: {}
            """),
            encoding="utf-8",
        )
        assert load_document(str(yaml_file))["info"]["title"] == "YAML Test"

    def test_sniffs_yaml_without_extension(self, tmp_path: Path) -> None:
        spec = tmp_path / "spec"
        spec.write_text("info:\n  name: Sniffed\nitem: []\n", encoding="utf-8")
        assert load_document(spec)["info"]["name"] == "Sniffed"

    def test_mapping_is_copied(self) -> None:
        original = {"info": {"name": "x"}, "item": []}
        result = load_document(original)
        assert result == original
        assert result is not original

    def test_loads_from_stdin(self) -> None:
        payload = json.dumps({"info": {"name": "stdin"}, "item": []})
        with patch("sdkforge.parser.loader.sys") as mock_sys:
            mock_sys.stdin = io.StringIO(payload)
            result = load_document("-")
        assert result["info"]["name"] == "stdin"

    def test_empty_stdin_raises(self) -> None:
        with patch("sdkforge.parser.loader.sys") as mock_sys:
            mock_sys.stdin = io.StringIO("  \n")
            with pytest.raises(ParseError, match="empty"):
                load_document("-")


class TestLoadFromFile:
    def test_file_not_found_raises(self) -> None:
        with pytest.raises(ParseError, match="not found"):
            load_document("/nonexistent/path/to/spec.json")

    def test_empty_file_raises(self, tmp_path: Path) -> None:
        empty = tmp_path / "empty.json"
        empty.write_text("", encoding="utf-8")
        with pytest.raises(ParseError, match="empty"):
            load_document(str(empty))

    def test_invalid_json_file_raises(self, tmp_path: Path) -> None:
        bad = tmp_path / "bad.json"
        bad.write_text("{invalid json", encoding="utf-8")
        with pytest.raises(ParseError, match="Invalid JSON"):
            load_document(str(bad))

    def test_non_object_raises(self, tmp_path: Path) -> None:
        array_file = tmp_path / "array.json"
        array_file.write_text("[1, 2, 3]", encoding="utf-8")
        with pytest.raises(ParseError, match="must be a JSON/YAML object"):
            load_document(str(array_file))


class TestLoadFromUrl:
    def test_loads_json_from_url(self) -> None:
        response = _response(json={"openapi": "3.0.3", "info": {"title": "Remote"}})
        with patch("sdkforge.parser.loader.httpx.get", return_value=response):
            result = load_document("https://example.com/spec.json")
        assert result["info"]["title"] == "Remote"

    def test_loads_yaml_from_url(self) -> None:
        response = _response(
            text="openapi: '3.0.3'\ninfo:\n  title: Remote YAML\n",
            headers={"content-type": "application/yaml"},
        )
        with patch("sdkforge.parser.loader.httpx.get", return_value=response):
            result = load_document("https://example.com/spec.yaml")
        assert result["info"]["title"] == "Remote YAML"

    def test_http_error_raises(self) -> None:
        with patch("sdkforge.parser.loader.httpx.get", return_value=_response(404)):
            with pytest.raises(ParseError, match="HTTP 404"):
                load_document("https://example.com/missing.json")

    def test_connection_error_raises(self) -> None:
        error = httpx.ConnectError("refused")
        with patch("sdkforge.parser.loader.httpx.get", side_effect=error):
            with pytest.raises(ParseError, match="Failed to fetch"):
                load_document("https://example.com/spec.json")


class TestParseDocument:
    def test_json_first(self) -> None:
        assert parse_document('{"a": 1}') == {"a": 1}

    def test_yaml_fallback(self) -> None:
        assert parse_document("a: 1\nb: [x]\n") == {"a": 1, "b": ["x"]}

    def test_yaml_hint_skips_json(self) -> None:
        assert parse_document("a: 1", hint="yaml") == {"a": 1}

    def test_scalar_document_raises(self) -> None:
        with pytest.raises(ParseError, match="must be a JSON/YAML object"):
            parse_document("just words")

    def test_unparseable_raises_with_both_errors(self) -> None:
        with pytest.raises(ParseError, match="JSON or YAML"):
            parse_document("{a: [1, 2")
