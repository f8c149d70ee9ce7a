# tests/test_cli.py
"""Tests for the nftmarket command-line interface."""

import tempfile
from pathlib import Path

import pytest

from nftmarket.cli import main


@pytest.fixture
def state_dir():
    """Create a temporary state directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir) / "market"


@pytest.fixture
def run(state_dir, capsys):
    """Run the CLI against the temporary state directory and return stdout."""
    def _run(*argv):
        main(["--state-dir", str(state_dir), *argv])
        return capsys.readouterr().out
    return _run


@pytest.fixture
def deployed(run):
    """A deployed ledger with admin, alice and bob identities."""
    for name in ("admin", "alice", "bob"):
        run("actor", name)
    run("init", "--admin", "admin")
    return run


class TestCli:
    """End-to-end CLI flows."""

    def test_init_prints_address(self, run, state_dir):
        run("actor", "admin")
        out = run("init", "--admin", "admin")

        assert out.startswith("Deployed ledger to 0x")
        assert (state_dir / "ledger.json").exists()
        assert (state_dir / "config.yaml").exists()

    def test_sale_flow(self, deployed):
        assert "Created asset 1" in deployed("create", "https://some-token.uri/", "--as", "alice")
        assert deployed("uri", "1").strip() == "https://some-token.uri/"

        deployed("list", "1", "100", "--as", "alice")
        assert "100" in deployed("listings")

        deployed("buy", "1", "--payment", "100", "--as", "bob")
        assert "No active listings" in deployed("listings")

        out = deployed("balance", "alice")
        assert "Funds received: 95" in out

        assert "Withdrew 5" in deployed("withdraw", "--as", "admin")

    def test_owner_matches_actor_address(self, deployed):
        deployed("create", "ipfs://x", "--as", "alice")
        owner = deployed("owner", "1").strip()
        actors = deployed("actors")

        assert any(line.split() == ["alice", owner] for line in actors.splitlines())

    def test_log_verifies(self, deployed):
        deployed("create", "ipfs://x", "--as", "alice")
        deployed("list", "1", "10", "--as", "alice")

        out = deployed("log", "--verify")
        lines = out.strip().splitlines()
        assert len(lines) == 2
        assert all(line.endswith("[ok]") for line in lines)

    def test_market_error_exits_nonzero(self, deployed, capsys):
        deployed("create", "ipfs://x", "--as", "alice")

        with pytest.raises(SystemExit) as exc_info:
            deployed("list", "1", "0", "--as", "alice")

        assert exc_info.value.code == 1
        assert "NullPrice" in capsys.readouterr().err

    def test_unauthorized_withdraw(self, deployed, capsys):
        with pytest.raises(SystemExit):
            deployed("withdraw", "--as", "bob")
        assert "Unauthorized" in capsys.readouterr().err

    def test_missing_ledger(self, run, capsys):
        with pytest.raises(SystemExit):
            run("owner", "1")
        assert "No ledger" in capsys.readouterr().err

    def test_no_command(self, run):
        with pytest.raises(SystemExit):
            run()
