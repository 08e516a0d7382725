"""Tests for the Accountsmith CLI."""

import json

import pytest
from typer.testing import CliRunner

from accountsmith import __version__
from accountsmith.cli import app, load_accounts
from accountsmith.errors import ConfigurationError

runner = CliRunner()


@pytest.fixture
def accounts_file(temp_dir):
    path = temp_dir / "accounts.json"
    path.write_text(
        json.dumps(
            {
                "accounts": {
                    "alice": {"ssh_keys": {"laptop": {"type": "ssh-ed25519", "key": "CCC"}}},
                    "bob": {"ensure": "absent"},
                }
            }
        )
    )
    return path


class TestLoadAccounts:
    """Tests for account file loading."""

    def test_accounts_mapping(self, accounts_file):
        """Test a file with several accounts."""
        assert list(load_accounts(accounts_file)) == ["alice", "bob"]

    def test_single_account(self, temp_dir):
        """Test a file with one account object."""
        path = temp_dir / "one.json"
        path.write_text(json.dumps({"username": "carol", "shell": "/bin/zsh"}))
        assert load_accounts(path) == {"carol": {"username": "carol", "shell": "/bin/zsh"}}

    def test_missing_file(self, temp_dir):
        """Test that an unreadable file is a configuration error."""
        with pytest.raises(ConfigurationError, match="Cannot read"):
            load_accounts(temp_dir / "missing.json")

    def test_invalid_json(self, temp_dir):
        """Test that malformed JSON is a configuration error."""
        path = temp_dir / "bad.json"
        path.write_text("{not json")
        with pytest.raises(ConfigurationError, match="not valid JSON"):
            load_accounts(path)

    @pytest.mark.parametrize("content", [[], {"shell": "/bin/sh"}, {"accounts": []}])
    def test_wrong_shape(self, temp_dir, content):
        """Test that other JSON documents are rejected."""
        path = temp_dir / "shape.json"
        path.write_text(json.dumps(content))
        with pytest.raises(ConfigurationError):
            load_accounts(path)


class TestPlanCommand:
    """Tests for `accountsmith plan`."""

    def test_plan_text(self, accounts_file):
        """Test the Terraform-style output."""
        result = runner.invoke(app, ["plan", str(accounts_file), "--os-family", "Linux"])

        assert result.exit_code == 0, result.output
        assert 'resource "ssh_key" "alice:laptop"' in result.output
        assert 'resource "user" "bob"' in result.output

    def test_plan_json(self, accounts_file):
        """Test the JSON output."""
        result = runner.invoke(
            app, ["plan", str(accounts_file), "--os-family", "Solaris", "--json"]
        )

        assert result.exit_code == 0, result.output
        document = json.loads(result.output)
        assert document["errors"] == {}
        alice = document["plans"]["alice"]
        assert alice["resources"][2]["path"] == "/export/home/alice"
        assert document["plans"]["bob"]["ensure"] == "absent"

    def test_rejected_account(self, temp_dir):
        """Test that an invalid account fails the command."""
        path = temp_dir / "bad.json"
        path.write_text(json.dumps({"accounts": {"alice": {"ensure": "maybe"}}}))

        result = runner.invoke(app, ["plan", str(path), "--os-family", "Linux"])
        assert result.exit_code == 1
        assert "Rejected accounts" in result.output

    def test_rejected_account_json(self, temp_dir):
        """Test that JSON output reports errors and fails."""
        path = temp_dir / "bad.json"
        path.write_text(json.dumps({"accounts": {"alice": {"ensure": "maybe"}}}))

        result = runner.invoke(app, ["plan", str(path), "--os-family", "Linux", "--json"])
        assert result.exit_code == 1
        assert "alice" in json.loads(result.output)["errors"]

    def test_missing_file(self, temp_dir):
        """Test that a missing file fails the command."""
        result = runner.invoke(app, ["plan", str(temp_dir / "missing.json")])
        assert result.exit_code == 1
        assert "Plan failed" in result.output


class TestRenderCommand:
    """Tests for `accountsmith render`."""

    def test_render_stdout(self, accounts_file):
        """Test rendering to stdout."""
        result = runner.invoke(app, ["render", str(accounts_file), "--os-family", "Linux"])

        assert result.exit_code == 0, result.output
        assert "from pyinfra.operations import files, server" in result.output
        assert "# Account: bob (absent)" in result.output

    def test_render_file(self, accounts_file, temp_dir):
        """Test rendering to a file."""
        output = temp_dir / "deploy.py"
        result = runner.invoke(
            app, ["render", str(accounts_file), "--os-family", "Linux", "-o", str(output)]
        )

        assert result.exit_code == 0, result.output
        assert "files.line(" in output.read_text()


def test_version():
    """Test the version command."""
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert __version__ in result.output
