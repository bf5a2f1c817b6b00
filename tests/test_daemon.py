import json
import ssl
from pathlib import Path

import pytest

from auraed import bundle
from auraed.daemon import (
    AURAE_BUNDLE,
    EXIT_OKAY,
    AuraedRuntime,
    daemon,
    main,
    parse_options,
)
from auraed.runtimes import AURAE_RUNTIME_DIR


def _runtime(tmp_path):
    return AuraedRuntime(
        ca_crt=tmp_path / "ca.crt",
        server_crt=tmp_path / "server.crt",
        server_key=tmp_path / "server.key",
        runtime_dir=tmp_path / "runtime",
    )


@pytest.fixture
def fake_exe(tmp_path, monkeypatch):
    binary = tmp_path / "fake-auraed"
    binary.write_bytes(b"\x7fELF-not-really")
    link = tmp_path / "exe-link"
    link.symlink_to(binary)
    monkeypatch.setattr(bundle, "PROC_SELF_EXE", str(link))
    return binary


def test_socket_path():
    assert AURAE_RUNTIME_DIR == "/var/run/aurae"
    assert parse_options([]).runtime_dir == "/var/run/aurae"


def test_default_options():
    options = parse_options([])
    assert options.server_crt == "/etc/aurae/pki/_signed.server.crt"
    assert options.server_key == "/etc/aurae/pki/server.key"
    assert options.ca_crt == "/etc/aurae/pki/ca.crt"
    assert options.bundle == AURAE_BUNDLE == "/var/lib/aurae"
    assert options.socket is None
    assert options.verbose is False
    assert options.nested is False
    assert options.subcmd is None


def test_ritz_alias_sets_verbose():
    assert parse_options(["--ritz"]).verbose is True
    assert parse_options(["-v"]).verbose is True


def test_socket_and_nested_options():
    options = parse_options(["-s", "[::1]:8080", "--nested"])
    assert options.socket == "[::1]:8080"
    assert options.nested is True


def test_spawn_subcommand():
    options = parse_options(["spawn", "-o", "/tmp/bundle"])
    assert options.subcmd == "spawn"
    assert options.output == "/tmp/bundle"
    assert parse_options(["spawn"]).output == "."


def test_unknown_option_exits():
    with pytest.raises(SystemExit):
        parse_options(["--no-such-flag"])


def test_tls_context_missing_certificate(tmp_path):
    with pytest.raises(OSError, match="signed TLS certificate"):
        _runtime(tmp_path).tls_context()


def test_tls_context_rejects_invalid_material(tmp_path):
    runtime = _runtime(tmp_path)
    for path in (runtime.server_crt, runtime.server_key, runtime.ca_crt):
        path.write_text("not pem data\n")
    with pytest.raises(ssl.SSLError):
        runtime.tls_context()


@pytest.mark.asyncio
async def test_run_fails_before_creating_runtime_dir(tmp_path):
    runtime = _runtime(tmp_path)
    with pytest.raises(OSError, match="signed TLS certificate"):
        await runtime.run(None)
    assert runtime.runtime_dir.exists() is False


@pytest.mark.asyncio
async def test_daemon_spawn_writes_bundle(tmp_path, fake_exe):
    output = tmp_path / "bundle"
    code = await daemon(["spawn", "--output", str(output)])
    assert code == EXIT_OKAY
    config = json.loads((output / "config.json").read_text())
    assert config["hostname"] == "aurae"
    assert (output / "rootfs/bin/init").read_bytes() == fake_exe.read_bytes()


def test_main_spawn(tmp_path, fake_exe):
    output = tmp_path / "out"
    assert main(["spawn", "-o", str(output)]) == 0
    assert Path(output / "rootfs/bin/auraed").read_bytes() == fake_exe.read_bytes()