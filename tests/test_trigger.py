"""Tests for bootstrap trigger parsing and the scan-to-status flow."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from contentpack.errors import TriggerError
from contentpack.models import SyncConfig
from contentpack.registry import LocalRegistry, ReferenceValue
from contentpack.trigger import (
    BAD_CONTAINER,
    MISSING_PARAMS,
    NOT_BOOTSTRAP,
    UNRECOGNIZED,
    BootstrapTrigger,
    handle_trigger,
    parse_trigger,
)


class TestParseTrigger:
    def test_host_form(self):
        t = parse_trigger("contentpack://bootstrap?container=demo&record=boot-1")
        assert t == BootstrapTrigger(container="demo", record="boot-1")

    def test_path_form_and_case(self):
        t = parse_trigger("ContentPack://open/Bootstrap?record=r&container=c")
        assert t == BootstrapTrigger(container="c", record="r")

    def test_custom_scheme(self):
        t = parse_trigger("lockers://bootstrap?container=c&record=r", scheme="lockers")
        assert t.record == "r"

    @pytest.mark.parametrize("text,message", [
        ("https://bootstrap?container=c&record=r", UNRECOGNIZED),
        ("just some text", UNRECOGNIZED),
        ("", UNRECOGNIZED),
        ("contentpack://settings?container=c&record=r", NOT_BOOTSTRAP),
        ("contentpack://bootstrap?container=c", MISSING_PARAMS),
        ("contentpack://bootstrap?record=r&container=", MISSING_PARAMS),
        ("contentpack://bootstrap?container=..%2Fx&record=r", BAD_CONTAINER),
        ("contentpack://bootstrap?container=.hidden&record=r", BAD_CONTAINER),
    ])
    def test_rejections(self, text, message):
        with pytest.raises(TriggerError) as info:
            parse_trigger(text)
        assert str(info.value) == message


@pytest.fixture
def home_with_pack(tmp_path: Path) -> Path:
    """Client home whose local registry holds a v1 pack in container 'demo'."""
    home = tmp_path / "home"
    reg = LocalRegistry(home / "registry", "demo")
    data = b"col\n1\n"
    import hashlib

    manifest = {
        "version": 1,
        "assets": [{"key": "table", "filename": "t.csv", "sha256": hashlib.sha256(data).hexdigest()}],
    }
    reg.publish_record("pack-1", {
        "version": 1,
        "table": reg.put_blob("pack-1.t.csv", data),
        "manifest": reg.put_blob("pack-1.manifest.json", json.dumps(manifest).encode()),
        "customURLs": json.dumps(["https://a.example"]),
    })
    reg.publish_record("boot", {"latestPack": ReferenceValue("pack-1"), "version": 1})
    return home


class TestHandleTrigger:
    URL = "contentpack://bootstrap?container=demo&record=boot"

    def test_update_then_current(self, home_with_pack: Path):
        assert handle_trigger(self.URL, home_with_pack) == "Updated to v1. Assets cached."
        assert (home_with_pack / "cache" / "assets" / "t.csv").read_bytes() == b"col\n1\n"
        assert handle_trigger(self.URL, home_with_pack) == "Already up to date (v1)."

    def test_bad_trigger_is_status_text(self, home_with_pack: Path):
        assert handle_trigger("hello", home_with_pack) == UNRECOGNIZED

    def test_sync_failure_is_status_text(self, home_with_pack: Path):
        status = handle_trigger(
            "contentpack://bootstrap?container=demo&record=missing", home_with_pack
        )
        assert status.startswith("Sync failed: ")
        assert "missing" in status

    def test_uses_config(self, home_with_pack: Path):
        cfg = SyncConfig(cache_namespace="other", trigger_scheme="x")
        status = handle_trigger("x://bootstrap?container=demo&record=boot", home_with_pack, cfg)
        assert status == "Updated to v1. Assets cached."
        assert (home_with_pack / "cache" / "other" / "t.csv").exists()
