import pytest

from auraed.sriov import SriovError, setup_sriov


@pytest.fixture
def device(tmp_path):
    path = tmp_path / "class" / "net" / "eth0" / "device"
    path.mkdir(parents=True)
    return path


def test_limit_below_capability_is_used(tmp_path, device):
    (device / "sriov_totalvfs").write_text("8\n", encoding="utf-8")
    assert setup_sriov("eth0", 4, tmp_path) == 4
    assert (device / "sriov_numvfs").read_text(encoding="utf-8") == "4"


def test_capability_caps_the_limit(tmp_path, device):
    (device / "sriov_totalvfs").write_text("8\n", encoding="utf-8")
    assert setup_sriov("eth0", 100, tmp_path) == 8
    assert (device / "sriov_numvfs").read_text(encoding="utf-8") == "8"


def test_zero_limit_writes_nothing(tmp_path, device):
    assert setup_sriov("eth0", 0, tmp_path) == 0
    assert not (device / "sriov_numvfs").exists()


def test_missing_capabilities_raise(tmp_path, device):
    with pytest.raises(SriovError, match="Failed to get sriov capabilities of device eth0") as info:
        setup_sriov("eth0", 2, tmp_path)
    assert info.value.iface == "eth0"


@pytest.mark.parametrize("contents", ["many\n", "-1\n", "70000\n", " 3\n", ""])
def test_unparsable_capabilities_raise(tmp_path, device, contents):
    (device / "sriov_totalvfs").write_text(contents, encoding="utf-8")
    with pytest.raises(SriovError, match="Failed to parse sriov capabilities") as info:
        setup_sriov("eth0", 2, tmp_path)
    assert info.value.capabilities == contents
    assert not (device / "sriov_numvfs").exists()


def test_limit_out_of_range_is_rejected(tmp_path, device):
    with pytest.raises(ValueError):
        setup_sriov("eth0", -1, tmp_path)