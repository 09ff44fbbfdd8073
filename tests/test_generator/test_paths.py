"""Tests for sdkforge.generator.paths -- output path resolution."""

from __future__ import annotations

import pytest

from sdkforge.exceptions import GenerationError, PathCollisionError
from sdkforge.generator.paths import (
    module_segments,
    relative_namespace,
    resolve_all,
    resolve_output_path,
)
from sdkforge.models import ArtifactKind, CodeArtifact, GeneratorConfig


def _config(**overrides) -> GeneratorConfig:
    values = {"connectorName": "Acme", "namespace": "App", "outputDir": "./build/"}
    values.update(overrides)
    return GeneratorConfig(**values)


def _artifact(namespace: str, class_name: str) -> CodeArtifact:
    return CodeArtifact(namespace=namespace, class_name=class_name, kind=ArtifactKind.DTO)


class TestRelativeNamespace:
    def test_root_prefix_is_stripped(self) -> None:
        assert relative_namespace("App\\Requests\\Users", _config()) == "Requests\\Users"

    def test_root_itself_is_empty(self) -> None:
        assert relative_namespace("App", _config()) == ""

    def test_prefix_must_end_at_a_separator(self) -> None:
        assert relative_namespace("Application\\Dto", _config()) == "Application\\Dto"

    def test_foreign_namespace_is_kept(self) -> None:
        assert relative_namespace("Vendor\\Lib", _config()) == "Vendor\\Lib"

    def test_module_segments(self) -> None:
        config = _config()
        assert module_segments("App\\Resource", "Users", config) == ["Resource", "Users"]
        assert module_segments("App", "Acme", config) == ["Acme"]
        assert module_segments("App\\Requests\\Users", "GetUser", config) == [
            "Requests",
            "Users",
            "GetUser",
        ]


class TestResolveOutputPath:
    def test_documented_example(self) -> None:
        artifact = _artifact("App\\Resources", "UserResource")
        assert resolve_output_path(artifact, _config()) == "build/Resources/UserResource.py"

    def test_root_namespace_has_no_doubled_separator(self) -> None:
        assert resolve_output_path(_artifact("App", "Acme"), _config()) == "build/Acme.py"

    def test_current_directory_output(self) -> None:
        config = _config(outputDir=".")
        assert resolve_output_path(_artifact("App\\Dto", "Pet"), config) == "Dto/Pet.py"

    def test_leading_slash_of_output_dir_is_trimmed(self) -> None:
        config = _config(outputDir="/srv/sdk/")
        assert resolve_output_path(_artifact("App\\Dto", "Pet"), config) == "srv/sdk/Dto/Pet.py"

    def test_nested_output_dir_with_backslashes(self) -> None:
        config = _config(outputDir="out\\gen")
        assert resolve_output_path(_artifact("App\\Dto", "Pet"), config) == "out/gen/Dto/Pet.py"

    def test_custom_extension(self) -> None:
        path = resolve_output_path(_artifact("App\\Dto", "Pet"), _config(), extension=".pyi")
        assert path == "build/Dto/Pet.pyi"

    def test_is_deterministic(self) -> None:
        artifact = _artifact("App\\Requests\\Users", "GetUser")
        config = _config()
        assert resolve_output_path(artifact, config) == resolve_output_path(artifact, config)

    def test_does_not_deduplicate(self) -> None:
        config = _config()
        first = resolve_output_path(_artifact("App\\Dto", "User"), config)
        second = resolve_output_path(_artifact("Dto", "User"), config)
        assert first == second == "build/Dto/User.py"


class TestResolveAll:
    def test_returns_artifacts_with_paths_in_order(self) -> None:
        artifacts = [_artifact("App", "Acme"), _artifact("App\\Dto", "Pet")]
        resolved = resolve_all(artifacts, _config())
        assert [(a.class_name, p) for a, p in resolved] == [
            ("Acme", "build/Acme.py"),
            ("Pet", "build/Dto/Pet.py"),
        ]

    def test_duplicate_identity_is_rejected(self) -> None:
        artifacts = [_artifact("App\\Dto", "Pet"), _artifact("App\\Dto", "Pet")]
        with pytest.raises(GenerationError, match="Duplicate artifact App\\\\Dto\\\\Pet"):
            resolve_all(artifacts, _config())

    def test_collision_names_both_artifacts(self) -> None:
        artifacts = [_artifact("App\\Dto", "User"), _artifact("Dto", "User")]
        with pytest.raises(PathCollisionError) as exc_info:
            resolve_all(artifacts, _config())
        error = exc_info.value
        assert error.first == "App\\Dto\\User"
        assert error.second == "Dto\\User"
        assert error.path == "build/Dto/User.py"

    def test_case_only_difference_collides(self) -> None:
        artifacts = [_artifact("App\\Dto", "User"), _artifact("App\\Dto", "USER")]
        with pytest.raises(PathCollisionError):
            resolve_all(artifacts, _config())
