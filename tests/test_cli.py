"""Tests for the contentpack CLI."""

from __future__ import annotations

import hashlib
import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from contentpack.cli import main
from contentpack.registry import LocalRegistry, ReferenceValue
from contentpack.state import StateStore


@pytest.fixture
def home(tmp_path: Path) -> Path:
    """Client home with a two-asset v2 pack in container 'demo'."""
    home = tmp_path / "home"
    reg = LocalRegistry(home / "registry", "demo")
    files = {"logo.png": b"\x89PNG...", "rates.csv": b"ccy,rate\nEUR,1.1\n"}
    fields = {"version": 2}
    assets = []
    for i, (name, data) in enumerate(files.items()):
        key = f"asset{i}"
        fields[key] = reg.put_blob(f"pack-2.{name}", data)
        assets.append({"key": key, "filename": name, "sha256": hashlib.sha256(data).hexdigest()})
    fields["manifest"] = reg.put_blob(
        "pack-2.manifest.json", json.dumps({"version": 2, "assets": assets}).encode()
    )
    fields["customURL"] = "https://legacy.example"
    reg.publish_record("pack-2", fields)
    reg.publish_record("boot", {"latestPack": ReferenceValue("pack-2"), "version": 2})
    return home


def _invoke(*args):
    return CliRunner().invoke(main, list(args))


class TestSyncCommand:
    def test_sync_trigger(self, home: Path):
        result = _invoke("sync", "contentpack://bootstrap?container=demo&record=boot", "--home", str(home))
        assert result.exit_code == 0, result.output
        assert "Updated to" in result.output
        assert StateStore(home / "state.json").current_version == 2

    def test_sync_options_then_current(self, home: Path):
        args = ("sync", "--container", "demo", "--record", "boot", "--home", str(home))
        assert _invoke(*args).exit_code == 0
        result = _invoke(*args)
        assert result.exit_code == 0
        assert "Already up to date (v2)" in result.output

    def test_sync_bad_trigger(self, home: Path):
        result = _invoke("sync", "hello", "--home", str(home))
        assert result.exit_code == 1
        assert "Unrecognized payload." in result.output

    def test_sync_missing_args(self, home: Path):
        result = _invoke("sync", "--container", "demo", "--home", str(home))
        assert result.exit_code == 1

    def test_sync_failure(self, home: Path):
        result = _invoke("sync", "--container", "demo", "--record", "nope", "--home", str(home))
        assert result.exit_code == 1
        assert "Sync failed" in result.output

    def test_sync_rejects_escaping_container(self, home: Path):
        result = _invoke("sync", "--container", "../x", "--record", "boot", "--home", str(home))
        assert result.exit_code == 1
        assert "Sync failed" in result.output


class TestOfflineCommands:
    @pytest.fixture(autouse=True)
    def synced(self, home: Path):
        assert _invoke("sync", "--container", "demo", "--record", "boot", "--home", str(home)).exit_code == 0

    def test_status(self, home: Path):
        result = _invoke("status", "--home", str(home))
        assert result.exit_code == 0
        assert "Version" in result.output

    def test_links(self, home: Path):
        result = _invoke("links", "--home", str(home))
        assert "https://legacy.example" in result.output

    def test_ls(self, home: Path):
        result = _invoke("ls", "--home", str(home))
        assert result.exit_code == 0
        assert "logo.png" in result.output
        assert "rates.csv" in result.output

    def test_show(self, home: Path):
        result = _invoke("show", "rates.csv", "--max-bytes", "8", "--home", str(home))
        assert result.exit_code == 0
        assert result.output.strip() == "ccy,rate"

    def test_show_missing(self, home: Path):
        result = _invoke("show", "nope.csv", "--home", str(home))
        assert result.exit_code == 1

    def test_clear(self, home: Path):
        result = _invoke("clear", "--yes", "--home", str(home))
        assert result.exit_code == 0
        assert not any((home / "cache" / "assets").iterdir())
        assert StateStore(home / "state.json").stored_links == []
        assert "No links stored" in _invoke("links", "--home", str(home)).output
