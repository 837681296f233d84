"""Unit tests for zonestack.py CLI commands."""

import json
import sys
import unittest
from pathlib import Path
from unittest.mock import patch

from click.testing import CliRunner

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from zonestack import cli, compile_inputs

SSH_KEY = "ssh-rsa AAAAB3NzaC1yc2EAAAADAQABAAABAQDzonestack operator@example"
PRESHARED_KEY = "0123456789abcdef0123456789abcdef"

VARFILE = {
    "prefix": "lz",
    "region": "us-south",
    "ssh_public_key": SSH_KEY,
    "enable_vpn_gateway": True,
    "vpn_connections": [
        {
            "name": "dc1",
            "peer_address": "203.0.113.10",
            "preshared_key": PRESHARED_KEY,
            "peer_cidrs": ["192.168.0.0/24"],
        }
    ],
}


class CliTestCase(unittest.TestCase):
    def setUp(self):
        self.runner = CliRunner()

    def invoke(self, args, varfile=VARFILE):
        with open("inputs.json", "w") as f:
            json.dump(varfile, f)
        return self.runner.invoke(cli, args + ["--varfile", "inputs.json"])


class TestValidateCommand(CliTestCase):
    def test_valid_inputs(self):
        with self.runner.isolated_filesystem():
            result = self.invoke(["validate"])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Inputs are valid", result.output)

    def test_all_failures_printed(self):
        bad = dict(VARFILE, prefix="BAD_PREFIX", region="mars-1")
        with self.runner.isolated_filesystem():
            result = self.invoke(["validate"], bad)
        self.assertEqual(result.exit_code, 1)
        self.assertIn("2 input validation rule(s) failed", result.output)
        self.assertIn("prefix [charset]", result.output)
        self.assertIn("region [enum]", result.output)

    def test_secret_never_printed(self):
        bad = dict(VARFILE)
        bad["vpn_connections"] = [dict(VARFILE["vpn_connections"][0], preshared_key="tooshort")]
        with self.runner.isolated_filesystem():
            result = self.invoke(["validate"], bad)
        self.assertEqual(result.exit_code, 1)
        self.assertNotIn("tooshort", result.output)

    def test_var_override_wins(self):
        with self.runner.isolated_filesystem():
            result = self.invoke(["validate", "--var", "prefix=UPPER"])
        self.assertEqual(result.exit_code, 1)
        self.assertIn("prefix [charset]", result.output)

    def test_strict_flag(self):
        inputs = dict(VARFILE, enable_kms_encryption=True)
        with self.runner.isolated_filesystem():
            relaxed = self.invoke(["validate"], inputs)
            strict = self.invoke(["validate", "--strict"], inputs)
        self.assertEqual(relaxed.exit_code, 0, relaxed.output)
        self.assertEqual(strict.exit_code, 1)
        self.assertIn("kms_key_crn [required_when]", strict.output)

    def test_missing_varfile(self):
        result = self.runner.invoke(cli, ["validate", "--varfile", "absent.tfvars"])
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Variable file not found", result.output)


class TestGraphdataCommand(CliTestCase):
    def test_graphdata_written_and_masked(self):
        with self.runner.isolated_filesystem():
            result = self.invoke(["graphdata", "--outfile", "graph"])
            data = json.loads(Path("graph.json").read_text())
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(data["order"], ["storage", "network", "vpn", "transit_gateway", "workspace"])
        self.assertNotIn(PRESHARED_KEY, result.output)
        self.assertNotIn(SSH_KEY, result.output)


class TestRenderCommand(CliTestCase):
    def test_render_warns_without_credential(self):
        with patch.dict("os.environ", {}, clear=True):
            with self.runner.isolated_filesystem():
                result = self.invoke(["render", "--outdir", "tf"])
                self.assertTrue(Path("tf/main.tf.json").exists())
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("No API key found", result.output)

    def test_render_with_credential(self):
        with patch.dict("os.environ", {"IC_API_KEY": "abc"}, clear=True):
            with self.runner.isolated_filesystem():
                result = self.invoke(["render", "--outdir", "tf"])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertNotIn("No API key found", result.output)


class TestDrawCommand(CliTestCase):
    def test_dot_source(self):
        with self.runner.isolated_filesystem():
            result = self.invoke(["draw", "--outfile", "lz", "--format", "dot"])
            source = Path("lz.dot").read_text()
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("lz-vpc", source)

    def test_bad_format(self):
        with self.runner.isolated_filesystem():
            result = self.invoke(["draw", "--format", "gif"])
        self.assertEqual(result.exit_code, 1)
        self.assertIn("not supported", result.output)


class TestApplyAndOutputs(CliTestCase):
    def test_apply_then_outputs(self):
        with self.runner.isolated_filesystem():
            applied = self.invoke(["apply", "--state", "state.json"])
            again = self.invoke(["apply", "--state", "state.json"])
            shown = self.invoke(["outputs", "--state", "state.json", "--outfile", "out"])
            outputs = json.loads(Path("out.json").read_text())
        self.assertEqual(applied.exit_code, 0, applied.output)
        self.assertIn("provisioned", applied.output)
        self.assertIn("unchanged", again.output)
        self.assertEqual(shown.exit_code, 0, shown.output)
        self.assertEqual(len(outputs["vpn_connection_ids"]), 1)
        self.assertEqual(len(outputs["powervs_subnet_ids"]), 1)

    def test_outputs_without_state_all_null(self):
        with self.runner.isolated_filesystem():
            result = self.invoke(["outputs", "--outfile", "out"])
            outputs = json.loads(Path("out.json").read_text())
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIsNone(outputs["vpc_id"])
        self.assertTrue(outputs["deployment_summary"]["vpn_enabled"])


class TestCompileInputs(unittest.TestCase):
    def test_exits_on_validation_error(self):
        with patch("sys.exit") as mock_exit:
            with patch("click.echo"):
                with patch("stackcore.inputs.load_inputs", return_value={}):
                    compile_inputs([], [], False)
                mock_exit.assert_called_once_with(1)


if __name__ == "__main__":
    unittest.main()
