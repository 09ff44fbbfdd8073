"""Shared test fixtures for sdkforge.

Provides the specification fixtures, ready-made configurations for them,
output state management and a CLI runner. These fixtures are automatically
discovered by pytest and available to all test modules without explicit
imports.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import pytest

from sdkforge.models import GeneratorConfig
from sdkforge.output import OutputFormat, OutputManager, reset_output, set_output

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def load_fixture(name: str) -> dict[str, Any]:
    with open(FIXTURES_DIR / name, encoding="utf-8") as f:
        return json.load(f)


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager and CLI logging after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale.
    Resetting forces a fresh manager to be created on next use. The log
    handler the CLI attaches to the ``sdkforge`` logger goes stale the
    same way.
    """
    yield
    reset_output()
    logger = logging.getLogger("sdkforge")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


# ---------------------------------------------------------------------------
# Specification documents
# ---------------------------------------------------------------------------


@pytest.fixture
def postman_document() -> dict[str, Any]:
    """The Acme Postman v2.1 collection."""
    return load_fixture("postman_collection.json")


@pytest.fixture
def openapi_document() -> dict[str, Any]:
    """The Petstore OpenAPI 3.0 document."""
    return load_fixture("petstore.json")


# ---------------------------------------------------------------------------
# Configurations
# ---------------------------------------------------------------------------


@pytest.fixture
def postman_config() -> GeneratorConfig:
    return GeneratorConfig(
        connectorName="Acme",
        namespace="App",
        ignoredBodyParams=("csrf",),
    )


@pytest.fixture
def openapi_config() -> GeneratorConfig:
    return GeneratorConfig(
        connectorName="Petstore",
        namespace="Petstore",
        specType="openapi",
        ignoredQueryParams=("api_key",),
    )


# ---------------------------------------------------------------------------
# Working directory isolation
# ---------------------------------------------------------------------------


@pytest.fixture
def workdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Change into an empty temporary directory for the test."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
