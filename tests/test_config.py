"""Tests for YAML configuration loading."""

from __future__ import annotations

from pathlib import Path

import yaml

from contentpack.config import load_config, registry_root, resolve_home, save_config
from contentpack.models import SyncConfig


class TestConfig:
    def test_missing_file_defaults(self, tmp_path: Path):
        assert load_config(tmp_path) == SyncConfig()

    def test_roundtrip(self, tmp_path: Path):
        cfg = SyncConfig(cache_namespace="packs", max_workers=8, registry_root=tmp_path / "reg")
        save_config(tmp_path, cfg)
        assert load_config(tmp_path) == cfg

    def test_invalid_yaml_defaults(self, tmp_path: Path):
        (tmp_path / "config.yaml").write_text("max_workers: [unclosed")
        assert load_config(tmp_path) == SyncConfig()

    def test_invalid_values_default(self, tmp_path: Path):
        (tmp_path / "config.yaml").write_text(yaml.dump({"max_workers": 0}))
        assert load_config(tmp_path) == SyncConfig()

    def test_registry_root(self, tmp_path: Path):
        assert registry_root(tmp_path, SyncConfig()) == tmp_path / "registry"
        custom = SyncConfig(registry_root=tmp_path / "elsewhere")
        assert registry_root(tmp_path, custom) == tmp_path / "elsewhere"

    def test_resolve_home_env(self, tmp_path: Path):
        assert resolve_home(tmp_path) == tmp_path
