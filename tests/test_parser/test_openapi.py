"""Tests for sdkforge.parser.openapi."""

from __future__ import annotations

import copy
import logging
from typing import Any

import pytest

from sdkforge.exceptions import ParseError
from sdkforge.models import (
    ApiModel,
    ArrayOf,
    GeneratorConfig,
    HTTPMethod,
    ObjectReference,
    ParameterLocation,
    SimpleType,
)
from sdkforge.parser.openapi import OpenApiParser, validate_openapi_version


def _parse(document: dict[str, Any], config: GeneratorConfig) -> ApiModel:
    return OpenApiParser(config).parse(document)


def _endpoint(model: ApiModel, name: str):
    return next(e for e in model.endpoints if e.name == name)


def _minimal(paths: dict[str, Any], **extra: Any) -> dict[str, Any]:
    return {"openapi": "3.1.0", "info": {"title": "Mini", "version": "1"}, "paths": paths, **extra}


# ---------------------------------------------------------------------------
# Version validation
# ---------------------------------------------------------------------------


class TestValidateOpenApiVersion:
    @pytest.mark.parametrize("version", ["3.0.0", "3.0.3", "3.1.0"])
    def test_supported_versions(self, version: str) -> None:
        assert validate_openapi_version({"openapi": version}) == version

    def test_swagger_is_rejected(self) -> None:
        with pytest.raises(ParseError, match="Swagger 2.0"):
            validate_openapi_version({"swagger": "2.0"})

    def test_missing_version_is_rejected(self) -> None:
        with pytest.raises(ParseError, match="Missing 'openapi'"):
            validate_openapi_version({"info": {}})

    def test_future_minor_warns(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="sdkforge.parser.openapi"):
            assert validate_openapi_version({"openapi": "3.2.0"}) == "3.2.0"
        assert "3.2.0" in caplog.text

    def test_other_major_is_rejected(self) -> None:
        with pytest.raises(ParseError, match="Unsupported OpenAPI version"):
            validate_openapi_version({"openapi": "4.0.0"})


# ---------------------------------------------------------------------------
# Document level
# ---------------------------------------------------------------------------


class TestDocument:
    def test_info_and_servers(
        self, openapi_document: dict[str, Any], openapi_config: GeneratorConfig
    ) -> None:
        model = _parse(openapi_document, openapi_config)
        assert model.name == "Petstore"
        assert model.description == "A sample pet store"
        assert model.base_url == "https://petstore.example.com/v2"

    def test_resources_follow_first_tag(
        self, openapi_document: dict[str, Any], openapi_config: GeneratorConfig
    ) -> None:
        model = _parse(openapi_document, openapi_config)
        assert [r.name for r in model.resources] == ["pets", "store", "Misc"]
        assert model.resources[0].description == "Everything about pets"
        assert model.resources[1].description is None

    def test_endpoint_order_follows_document(
        self, openapi_document: dict[str, Any], openapi_config: GeneratorConfig
    ) -> None:
        pets = _parse(openapi_document, openapi_config).resources[0]
        assert [(e.name, e.method) for e in pets.endpoints] == [
            ("listPets", HTTPMethod.GET),
            ("createPet", HTTPMethod.POST),
            ("getPetById", HTTPMethod.GET),
            ("deletePet", HTTPMethod.DELETE),
            ("uploadPhoto", HTTPMethod.POST),
        ]

    def test_untagged_operation_named_by_summary(
        self, openapi_document: dict[str, Any], openapi_config: GeneratorConfig
    ) -> None:
        misc = _parse(openapi_document, openapi_config).resources[-1]
        assert [e.name for e in misc.endpoints] == ["Health check"]

    def test_operation_without_id_or_summary(self, openapi_config: GeneratorConfig) -> None:
        model = _parse(_minimal({"/a": {"put": {"responses": {}}}}), openapi_config)
        assert model.endpoints[0].name == "put /a"

    def test_paths_must_be_object(self, openapi_config: GeneratorConfig) -> None:
        with pytest.raises(ParseError, match="'paths' must be an object"):
            _parse(_minimal("nope"), openapi_config)  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# Parameters
# ---------------------------------------------------------------------------


class TestParameters:
    def test_query_parameter_type_and_default(
        self, openapi_document: dict[str, Any], openapi_config: GeneratorConfig
    ) -> None:
        model = _parse(openapi_document, openapi_config)
        [limit] = _endpoint(model, "listPets").parameters
        assert limit.name == "limit"
        assert limit.location == ParameterLocation.QUERY
        assert limit.type == SimpleType.of("int")
        assert limit.default == 20
        assert limit.required is False

    def test_cookie_and_ignored_parameters_are_skipped(
        self, openapi_document: dict[str, Any], openapi_config: GeneratorConfig
    ) -> None:
        model = _parse(openapi_document, openapi_config)
        names = [p.name for p in _endpoint(model, "listPets").parameters]
        assert "session" not in names
        assert "api_key" not in names

    def test_path_level_parameters_are_merged(
        self, openapi_document: dict[str, Any], openapi_config: GeneratorConfig
    ) -> None:
        model = _parse(openapi_document, openapi_config)
        params = _endpoint(model, "getPetById").parameters
        assert [(p.name, p.location) for p in params] == [
            ("petId", ParameterLocation.PATH),
            ("X-Trace", ParameterLocation.HEADER),
        ]
        assert params[0].required is True
        assert params[0].type == SimpleType.of("int")

    def test_operation_parameter_overrides_path_parameter(
        self, openapi_config: GeneratorConfig
    ) -> None:
        document = _minimal(
            {
                "/items/{id}": {
                    "parameters": [{"name": "id", "in": "path", "schema": {"type": "string"}}],
                    "get": {
                        "operationId": "getItem",
                        "parameters": [
                            {
                                "name": "id",
                                "in": "path",
                                "description": "Item id",
                                "schema": {"type": "integer"},
                            }
                        ],
                        "responses": {},
                    },
                }
            }
        )
        [param] = _parse(document, openapi_config).endpoints[0].parameters
        assert param.type == SimpleType.of("int")
        assert param.description == "Item id"
        assert param.required is True

    def test_invalid_location_raises(self, openapi_config: GeneratorConfig) -> None:
        document = _minimal(
            {"/a": {"get": {"parameters": [{"name": "x", "in": "body"}], "responses": {}}}}
        )
        with pytest.raises(ParseError, match="invalid location"):
            _parse(document, openapi_config)

    def test_parameter_without_schema_is_string(self, openapi_config: GeneratorConfig) -> None:
        document = _minimal(
            {"/a": {"get": {"parameters": [{"name": "q", "in": "query"}], "responses": {}}}}
        )
        assert _parse(document, openapi_config).endpoints[0].parameters[0].type == SimpleType.of(
            "str"
        )


# ---------------------------------------------------------------------------
# Bodies, responses and shapes
# ---------------------------------------------------------------------------


class TestBodiesAndResponses:
    def test_json_body_from_all_of_component(
        self, openapi_document: dict[str, Any], openapi_config: GeneratorConfig
    ) -> None:
        model = _parse(openapi_document, openapi_config)
        assert _endpoint(model, "createPet").body == ObjectReference(class_name="NewPet")
        fields = model.shapes["NewPet"].fields
        assert [(f.name, f.required) for f in fields] == [("name", True), ("tag", False)]

    def test_multipart_body_becomes_body_params(
        self, openapi_document: dict[str, Any], openapi_config: GeneratorConfig
    ) -> None:
        model = _parse(openapi_document, openapi_config)
        upload = _endpoint(model, "uploadPhoto")
        assert upload.body is None
        body = upload.parameters_in(ParameterLocation.BODY)
        assert [(p.name, p.type.annotation(), p.required) for p in body] == [
            ("file", "Any", True),
            ("caption", "str", False),
        ]

    def test_non_json_body_is_any(self, openapi_config: GeneratorConfig) -> None:
        document = _minimal(
            {
                "/raw": {
                    "post": {
                        "operationId": "sendRaw",
                        "requestBody": {"content": {"application/octet-stream": {}}},
                        "responses": {},
                    }
                }
            }
        )
        assert _parse(document, openapi_config).endpoints[0].body == SimpleType.of("any")

    def test_array_response_of_component(
        self, openapi_document: dict[str, Any], openapi_config: GeneratorConfig
    ) -> None:
        model = _parse(openapi_document, openapi_config)
        assert _endpoint(model, "listPets").response == ArrayOf.of(
            ObjectReference(class_name="Pet")
        )

    def test_response_through_component_reference(
        self, openapi_document: dict[str, Any], openapi_config: GeneratorConfig
    ) -> None:
        model = _parse(openapi_document, openapi_config)
        assert _endpoint(model, "getPetById").response == ObjectReference(class_name="Pet")
        assert _endpoint(model, "createPet").response == ObjectReference(class_name="Pet")

    def test_no_content_response(
        self, openapi_document: dict[str, Any], openapi_config: GeneratorConfig
    ) -> None:
        model = _parse(openapi_document, openapi_config)
        assert _endpoint(model, "deletePet").response is None

    def test_free_form_object_response_is_mapping(
        self, openapi_document: dict[str, Any], openapi_config: GeneratorConfig
    ) -> None:
        model = _parse(openapi_document, openapi_config)
        assert _endpoint(model, "getInventory").response == SimpleType.of("dict")

    def test_component_shapes(
        self, openapi_document: dict[str, Any], openapi_config: GeneratorConfig
    ) -> None:
        model = _parse(openapi_document, openapi_config)
        assert list(model.shapes) == ["Category", "Pet", "NewPet"]
        pet = model.shapes["Pet"]
        assert pet.additional_properties is True
        assert [(f.name, f.type.annotation(), f.required) for f in pet.fields] == [
            ("id", "int", True),
            ("name", "str", True),
            ("category", "Category", False),
            ("tags", "list[str]", False),
            ("status", "str", False),
        ]
        assert pet.fields[1].description == "Pet name"

    def test_yaml_integer_status_codes(
        self, openapi_document: dict[str, Any], openapi_config: GeneratorConfig
    ) -> None:
        document = copy.deepcopy(openapi_document)
        get = document["paths"]["/pets"]["get"]
        get["responses"] = {200: get["responses"]["200"]}
        model = _parse(document, openapi_config)
        assert _endpoint(model, "listPets").response == ArrayOf.of(
            ObjectReference(class_name="Pet")
        )

    def test_ignored_body_params(self, openapi_document: dict[str, Any]) -> None:
        config = GeneratorConfig(
            connectorName="Petstore",
            namespace="Petstore",
            specType="openapi",
            ignoredBodyParams=("tag",),
        )
        model = _parse(openapi_document, config)
        assert [f.name for f in model.shapes["NewPet"].fields] == ["name"]

    def test_inline_body_named_after_endpoint(self, openapi_config: GeneratorConfig) -> None:
        document = _minimal(
            {
                "/login": {
                    "post": {
                        "operationId": "login",
                        "requestBody": {
                            "content": {
                                "application/json": {
                                    "schema": {
                                        "type": "object",
                                        "properties": {"user": {"type": "string"}},
                                    }
                                }
                            }
                        },
                        "responses": {},
                    }
                }
            }
        )
        model = _parse(document, openapi_config)
        assert model.endpoints[0].body == ObjectReference(class_name="LoginBody")

    def test_dangling_reference_raises(self, openapi_config: GeneratorConfig) -> None:
        document = _minimal(
            {
                "/a": {
                    "get": {
                        "responses": {
                            "200": {
                                "description": "x",
                                "content": {
                                    "application/json": {
                                        "schema": {"$ref": "#/components/schemas/Missing"}
                                    }
                                },
                            }
                        }
                    }
                }
            }
        )
        with pytest.raises(ParseError, match="Missing"):
            _parse(document, openapi_config)
