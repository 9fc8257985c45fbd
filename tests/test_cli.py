"""
tests/test_cli.py

yieldledger CLI via click's CliRunner.
"""

import json

from click.testing import CliRunner

from yieldledger import Journal, Ledger, ManualClock, RateGovernor
from yieldledger.cli import cli
from yieldledger.core.crypto import Ed25519KeyManager

from tests.conftest import RATE_5, make_capabilities


def write_journal(path):
    clock = ManualClock(0)
    ledger = Ledger(RATE_5, make_capabilities(), clock, Journal(path), instance_id="chain-a")
    ledger.mint("custody", "A", 100, RATE_5)
    clock.set(10)
    ledger.transfer("A", "A", "C", 50)
    RateGovernor(ledger).set_ceiling_rate("governor", 10 ** 16)
    return ledger


class TestProject:

    def test_reference_projection(self):
        result = CliRunner().invoke(
            cli, ["project", "--principal", "100", "--rate", "0.05", "--elapsed", "10"]
        )
        assert result.exit_code == 0, result.output
        assert "balance    150" in result.output

    def test_raw_rate_and_steps(self):
        result = CliRunner().invoke(cli, [
            "project", "--principal", "1000", "--rate", str(RATE_5),
            "--raw-rate", "--elapsed", "10", "--steps", "2",
        ])
        assert result.exit_code == 0, result.output
        assert "balance    1562" in result.output

    def test_bad_rate(self):
        result = CliRunner().invoke(
            cli, ["project", "--principal", "1", "--rate", "lots", "--elapsed", "1"]
        )
        assert result.exit_code == 2


class TestReplay:

    def test_valid_journal_json(self, tmp_path):
        path = tmp_path / "a.jsonl"
        write_journal(path)
        result = CliRunner().invoke(cli, ["replay", str(path), "--format", "json", "--at", "20"])
        assert result.exit_code == 0, result.output
        report = json.loads(result.output)
        assert report["valid"] is True
        assert report["instance_id"] == "chain-a"
        assert report["ceiling_rate"] == str(10 ** 16)
        assert report["accounts"]["A"]["principal"] == "100"
        assert report["accounts"]["A"]["balance"] == "150"
        assert report["accounts"]["C"]["rate"] == str(RATE_5)

    def test_valid_journal_human(self, tmp_path):
        path = tmp_path / "a.jsonl"
        write_journal(path)
        result = CliRunner().invoke(cli, ["replay", str(path)])
        assert result.exit_code == 0, result.output
        assert "chain intact" in result.output
        assert "0.01" in result.output

    def test_broken_journal_exit_1(self, tmp_path):
        path = tmp_path / "a.jsonl"
        write_journal(path)
        lines = path.read_text().splitlines()
        del lines[1]
        path.write_text("\n".join(lines) + "\n")
        result = CliRunner().invoke(cli, ["replay", str(path), "--format", "json"])
        assert result.exit_code == 1
        assert json.loads(result.output)["valid"] is False

    def test_missing_journal_exit_2(self, tmp_path):
        result = CliRunner().invoke(cli, ["replay", str(tmp_path / "nope.jsonl")])
        assert result.exit_code == 2


class TestKeygen:

    def test_keygen_writes_loadable_key(self, tmp_path):
        path = tmp_path / "keys" / "a.pem"
        result = CliRunner().invoke(cli, ["keygen", str(path)])
        assert result.exit_code == 0, result.output
        key = Ed25519KeyManager.from_file(path)
        assert result.output.strip() == key.public_key_hex

    def test_keygen_refuses_overwrite(self, tmp_path):
        path = tmp_path / "a.pem"
        CliRunner().invoke(cli, ["keygen", str(path)])
        result = CliRunner().invoke(cli, ["keygen", str(path)])
        assert result.exit_code == 1
