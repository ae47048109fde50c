"""End-to-end tests for the ``hatx`` command line.

Commands run through Typer's CliRunner with a fake transport injected via
``obj``, so no network access happens.

Covers:
- Global options (--version, --base-url, --json, --plain)
- System, bead, serological, serotype and ARD commands
- Exit codes for invalid input, missing configuration and server errors
"""

from __future__ import annotations

import json

import pytest
from typer.testing import CliRunner

from conftest import BASE_URL, FakeTransport
from hatx import __version__
from hatx.app import app
from hatx.exceptions import NotFoundError, ServerError
from hatx.exit_codes import (
    EXIT_CONFIG_ERROR,
    EXIT_INVALID_INPUT,
    EXIT_NOT_FOUND,
    EXIT_SERVER_ERROR,
    EXIT_SUCCESS,
)

runner = CliRunner()


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("HATX_BASE_URL", "HATX_API_VERSION", "HATX_CACHE", "HATX_TIMEOUT"):
        monkeypatch.delenv(name, raising=False)


def invoke(transport: FakeTransport, *args: str):
    return runner.invoke(app, ["--base-url", BASE_URL, *args], obj={"transport": transport})


# ---------------------------------------------------------------------------
# Global options
# ---------------------------------------------------------------------------


class TestGlobalOptions:
    def test_version(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == EXIT_SUCCESS
        assert f"hatx {__version__}" in result.output

    def test_no_args_shows_help(self) -> None:
        result = runner.invoke(app, [])
        assert "bead" in result.output
        assert "serotype" in result.output

    def test_base_url_from_env(self, transport: FakeTransport, monkeypatch) -> None:
        monkeypatch.setenv("HATX_BASE_URL", BASE_URL)
        result = runner.invoke(app, ["--json", "health"], obj={"transport": transport})
        assert result.exit_code == EXIT_SUCCESS
        assert json.loads(result.stdout) == {"database": "ok", "cache": "ok"}

    def test_missing_base_url(self, transport: FakeTransport) -> None:
        result = runner.invoke(app, ["health"], obj={"transport": transport})
        assert result.exit_code == EXIT_CONFIG_ERROR
        assert "base URL" in result.output
        assert transport.requests == []


# ---------------------------------------------------------------------------
# System commands
# ---------------------------------------------------------------------------


class TestSystemCommands:
    def test_info_plain(self, transport: FakeTransport) -> None:
        result = invoke(transport, "--plain", "info")
        assert result.exit_code == EXIT_SUCCESS
        assert "version\t1.4.0" in result.stdout.splitlines()

    def test_changelog(self, transport: FakeTransport) -> None:
        result = invoke(transport, "changelog")
        assert result.exit_code == EXIT_SUCCESS
        assert "# Changelog" in result.stdout


# ---------------------------------------------------------------------------
# Record commands
# ---------------------------------------------------------------------------


class TestRecordCommands:
    def test_bead_get_json(self, transport: FakeTransport) -> None:
        result = invoke(transport, "--json", "bead", "get", "A*01:01")
        assert result.exit_code == EXIT_SUCCESS
        assert json.loads(result.stdout) == [
            {"allele": "A*01:01", "manufacturer": "ONE_LAMBDA", "kit": "STANDARD"}
        ]
        assert transport.requests[0].params == {"allele": "A*01:01"}

    def test_bead_query_plain(self, transport: FakeTransport) -> None:
        result = invoke(transport, "--plain", "bead", "query", "A*01:01", "A*01:02")
        assert result.exit_code == EXIT_SUCCESS
        lines = result.stdout.splitlines()
        assert lines[0] == "allele\tmanufacturer\tkit"
        assert len(lines) == 3
        assert transport.requests[0].json_body == {"alleles": ["A*01:01", "A*01:02"]}

    def test_bead_filter(self, transport: FakeTransport) -> None:
        result = invoke(
            transport,
            "--json",
            "bead",
            "filter",
            "--serotype-from-allele",
            "A1",
            "--manufacturer",
            "IMMUCOR",
        )
        assert result.exit_code == EXIT_SUCCESS
        assert transport.requests[0].json_body == {
            "serotype_from_allele": "A1",
            "manufacturer": "IMMUCOR",
        }

    def test_serological_refresh_data(self, transport: FakeTransport) -> None:
        result = invoke(transport, "--json", "serological", "get", "A*01:01", "--refresh-data")
        assert result.exit_code == EXIT_SUCCESS
        assert transport.requests[0].headers == {"Refresh-Data": "true"}

    def test_serotype_get_with_version(self, transport: FakeTransport) -> None:
        result = invoke(transport, "--json", "serotype", "get", "A*01:01", "--version", "2")
        assert result.exit_code == EXIT_SUCCESS
        (record,) = json.loads(result.stdout)
        assert record["ciwd30"] == "C"
        assert transport.requests[0].params == {"allele": "A*01:01", "version": 2}

    def test_serotype_filter_n_field(self, transport: FakeTransport) -> None:
        result = invoke(transport, "--json", "serotype", "filter", "--allele", "A*01", "--n-field", "2")
        assert result.exit_code == EXIT_SUCCESS
        assert transport.requests[0].json_body == {"allele": "A*01", "n_field": 2}

    def test_ard_reduce(self, transport: FakeTransport) -> None:
        result = invoke(
            transport, "--json", "ard", "reduce", "A*01:01:01:01", "--group", "g_group"
        )
        assert result.exit_code == EXIT_SUCCESS
        assert json.loads(result.stdout)[0]["value"] == "A*01:01:01G"
        assert transport.requests[0].json_body == {
            "alleles": ["A*01:01:01:01"],
            "group": "g_group",
        }

    def test_empty_result_plain(self, transport: FakeTransport) -> None:
        transport.routes[("GET", "/bead")] = []
        result = invoke(transport, "--plain", "bead", "get", "A*99:99")
        assert result.exit_code == EXIT_SUCCESS
        assert "No records found." in result.output


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------


class TestExitCodes:
    def test_blank_allele_is_invalid_input(self, transport: FakeTransport) -> None:
        result = invoke(transport, "bead", "get", " ")
        assert result.exit_code == EXIT_INVALID_INPUT
        assert "allele" in result.output
        assert transport.requests == []

    def test_not_found(self, transport: FakeTransport) -> None:
        transport.routes[("GET", "/serotype")] = NotFoundError("HTTP 404: Unknown allele", 404)
        result = invoke(transport, "serotype", "get", "X*99:99")
        assert result.exit_code == EXIT_NOT_FOUND
        assert "Unknown allele" in result.output

    def test_server_error(self, transport: FakeTransport) -> None:
        transport.routes[("GET", "/system/health")] = ServerError("HTTP 503", 503)
        result = invoke(transport, "health")
        assert result.exit_code == EXIT_SERVER_ERROR
        assert "HTTP 503" in result.output
