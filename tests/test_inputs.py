"""
Unit tests for input sources.

Tests loading raw inputs including:
- Variable files in HCL2 (.tfvars), YAML and JSON
- Environment variables and --var overrides
- Precedence (files < environment < command line)
- Credential presence detection
"""

import json
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from stackcore.exceptions import InputFileError
from stackcore.inputs import (
    credential_present,
    load_inputs,
    read_environment,
    read_overrides,
    read_varfile,
)

TFVARS = """
prefix = "lz"
region = "us-south"
enable_vpn_gateway = true
powervs_subnets = [
  {
    name = "mgmt"
    cidr = "10.51.0.0/24"
  }
]
"""

YAML = """
prefix: lz-yaml
region: eu-de
tags:
  - env:dev
"""


class TestReadVarfile:
    def test_tfvars(self, tmp_path):
        path = tmp_path / "lz.tfvars"
        path.write_text(TFVARS)
        data = read_varfile(str(path))

        assert data["prefix"] == "lz"
        assert data["enable_vpn_gateway"] is True
        assert data["powervs_subnets"][0]["cidr"] == "10.51.0.0/24"

    def test_yaml(self, tmp_path):
        path = tmp_path / "lz.yaml"
        path.write_text(YAML)
        assert read_varfile(str(path)) == {
            "prefix": "lz-yaml",
            "region": "eu-de",
            "tags": ["env:dev"],
        }

    def test_json(self, tmp_path):
        path = tmp_path / "lz.json"
        path.write_text(json.dumps({"prefix": "lz", "enable_flow_logs": False}))
        assert read_varfile(str(path))["enable_flow_logs"] is False

    def test_json_content_in_tfvars(self, tmp_path):
        path = tmp_path / "lz.tfvars"
        path.write_text(json.dumps({"prefix": "lz"}))
        assert read_varfile(str(path)) == {"prefix": "lz"}

    def test_empty_yaml(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert read_varfile(str(path)) == {}

    def test_missing_file(self, tmp_path):
        with pytest.raises(InputFileError) as excinfo:
            read_varfile(str(tmp_path / "absent.tfvars"))
        assert "not found" in str(excinfo.value)

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(InputFileError):
            read_varfile(str(path))

    def test_unparsable(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{prefix: ")
        with pytest.raises(InputFileError):
            read_varfile(str(path))


class TestEnvironmentAndOverrides:
    def test_environment_prefixes(self):
        environ = {
            "TF_VAR_prefix": "lz",
            "TF_VAR_enable_vpn_gateway": "true",
            "ZONESTACK_VAR_region": "eu-gb",
            "TF_VAR_region": "us-south",
            "UNRELATED": "x",
        }
        assert read_environment(environ) == {
            "prefix": "lz",
            "enable_vpn_gateway": True,
            "region": "eu-gb",
        }

    def test_string_fields_not_json_parsed(self):
        assert read_environment({"TF_VAR_prefix": "123"}) == {"prefix": "123"}

    def test_overrides_parse_json(self):
        values = read_overrides(['tags=["a", "b"]', "enable_flow_logs=false", "prefix=lz"])
        assert values == {"tags": ["a", "b"], "enable_flow_logs": False, "prefix": "lz"}

    def test_malformed_override(self):
        with pytest.raises(InputFileError):
            read_overrides(["prefix"])


class TestPrecedence:
    def test_files_then_environment_then_cli(self, tmp_path):
        first = tmp_path / "base.yaml"
        first.write_text("prefix: base\nregion: eu-de\ncos_storage_class: vault\n")
        second = tmp_path / "site.json"
        second.write_text(json.dumps({"region": "eu-gb", "powervs_zone": "lon04"}))
        environ = {"TF_VAR_powervs_zone": "lon06", "TF_VAR_prefix": "env"}

        raw = load_inputs(
            [str(first), str(second)], ["prefix=cli"], environ=environ
        )

        assert raw["cos_storage_class"] == "vault"
        assert raw["region"] == "eu-gb"
        assert raw["powervs_zone"] == "lon06"
        assert raw["prefix"] == "cli"

    def test_no_sources(self):
        assert load_inputs(environ={}) == {}


class TestCredentialPresent:
    def test_environment(self):
        assert credential_present(environ={"IC_API_KEY": "abc"})
        assert credential_present(environ={"IBMCLOUD_API_KEY": "abc"})
        assert not credential_present(environ={"IC_API_KEY": ""})

    def test_file(self, tmp_path):
        path = tmp_path / "apikey"
        assert not credential_present(str(path), environ={})
        path.write_text("")
        assert not credential_present(str(path), environ={})
        path.write_text("secret")
        assert credential_present(str(path), environ={})
