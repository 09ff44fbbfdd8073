"""Tests for sdkforge.generator.naming."""

from __future__ import annotations

import pytest

from sdkforge.generator.naming import (
    camel_case,
    field_name,
    pascal_case,
    singular,
    snake_case,
    split_words,
    unique_name,
)


class TestSplitWords:
    @pytest.mark.parametrize(
        "name, words",
        [
            ("getPetById", ["get", "Pet", "By", "Id"]),
            ("X-Request-ID", ["X", "Request", "ID"]),
            ("user_accounts", ["user", "accounts"]),
            ("HTTPServer", ["HTTP", "Server"]),
            ("v2 items", ["v", "2", "items"]),
        ],
    )
    def test_split(self, name: str, words: list[str]) -> None:
        assert split_words(name) == words


class TestCasing:
    @pytest.mark.parametrize(
        "name, expected",
        [
            ("User accounts", "UserAccounts"),
            ("getPetById", "GetPetById"),
            ("pets", "Pets"),
            ("X-Request-ID", "XRequestId"),
            ("2fa codes", "_2FaCodes"),
        ],
    )
    def test_pascal_case(self, name: str, expected: str) -> None:
        assert pascal_case(name) == expected

    def test_pascal_case_default(self) -> None:
        assert pascal_case("!!!") == "Unnamed"
        assert pascal_case("", default="") == ""

    @pytest.mark.parametrize(
        "name, expected",
        [
            ("List users", "listUsers"),
            ("getPetById", "getPetById"),
            ("Import", "import_"),
            ("", "unnamed"),
        ],
    )
    def test_camel_case(self, name: str, expected: str) -> None:
        assert camel_case(name) == expected

    @pytest.mark.parametrize(
        "name, expected",
        [
            ("X-Request-ID", "x_request_id"),
            ("first name", "first_name"),
            ("class", "class_"),
            ("1st", "_1_st"),
            ("---", "param"),
        ],
    )
    def test_snake_case(self, name: str, expected: str) -> None:
        assert snake_case(name) == expected


class TestFieldName:
    def test_valid_identifiers_are_verbatim(self) -> None:
        assert field_name("petId") == "petId"
        assert field_name("additionalProperties") == "additionalProperties"

    def test_invalid_identifiers_are_snake_cased(self) -> None:
        assert field_name("first-name") == "first_name"
        assert field_name("from") == "from_"


class TestSingular:
    @pytest.mark.parametrize(
        "name, expected",
        [
            ("categories", "category"),
            ("addresses", "address"),
            ("boxes", "box"),
            ("pets", "pet"),
            ("status", "statu"),
            ("class", "classItem"),
            ("data", "dataItem"),
        ],
    )
    def test_singular(self, name: str, expected: str) -> None:
        assert singular(name) == expected


class TestUniqueName:
    def test_free_name_is_kept(self) -> None:
        assert unique_name("User", ["Pet"]) == "User"

    def test_lowest_free_suffix(self) -> None:
        assert unique_name("User", {"User", "User2", "User4"}) == "User3"
