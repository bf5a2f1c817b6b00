import json
import os
import stat

import pytest

from auraed.bundle import SpawnError, spawn_auraed_oci_to
from auraed.oci import AuraeOCIBuilder


@pytest.fixture
def executable(tmp_path):
    path = tmp_path / "fake-auraed"
    path.write_bytes(b"\x7fELF fake binary")
    return path


def test_config_json_round_trips(tmp_path, executable):
    spec = AuraeOCIBuilder().build()
    out = tmp_path / "bundle"
    spawn_auraed_oci_to(out, spec, executable)
    assert json.loads((out / "config.json").read_text()) == spec


def test_rootfs_directories_created(tmp_path, executable):
    out = tmp_path / "bundle"
    spawn_auraed_oci_to(out, AuraeOCIBuilder().build(), executable)
    for name in ("bin", "sys", "dev", "mnt", "proc"):
        assert (out / "rootfs" / name).is_dir()


def test_binary_copied_with_mode(tmp_path, executable):
    out = tmp_path / "bundle"
    spawn_auraed_oci_to(out, AuraeOCIBuilder().build(), executable)
    auraed = out / "rootfs/bin/auraed"
    assert auraed.read_bytes() == executable.read_bytes()
    assert stat.S_IMODE(auraed.stat().st_mode) == 0o755


def test_init_is_hard_link(tmp_path, executable):
    out = tmp_path / "bundle"
    spawn_auraed_oci_to(out, AuraeOCIBuilder().build(), executable)
    auraed = out / "rootfs/bin/auraed"
    init = out / "rootfs/bin/init"
    assert os.path.samefile(auraed, init)
    assert auraed.stat().st_nlink == 2


def test_existing_output_is_reset(tmp_path, executable):
    out = tmp_path / "bundle"
    out.mkdir()
    (out / "stale.txt").write_text("old")
    spawn_auraed_oci_to(out, AuraeOCIBuilder().build(), executable)
    assert not (out / "stale.txt").exists()
    assert (out / "config.json").is_file()


def test_spawning_twice_succeeds(tmp_path, executable):
    out = tmp_path / "bundle"
    spawn_auraed_oci_to(out, {"ociVersion": "1.0.2-dev"}, executable)
    spawn_auraed_oci_to(out, AuraeOCIBuilder().build(), executable)
    assert json.loads((out / "config.json").read_text())["hostname"] == "aurae"


def test_missing_executable_raises(tmp_path):
    with pytest.raises(SpawnError):
        spawn_auraed_oci_to(tmp_path / "bundle", AuraeOCIBuilder().build(), tmp_path / "missing")


def test_unserializable_spec_raises(tmp_path, executable):
    with pytest.raises(SpawnError):
        spawn_auraed_oci_to(tmp_path / "bundle", {"bad": object()}, executable)