import pytest

from nds.core.platform_info import PlatformInfo, UnsupportedPlatformError, resolve_platform


@pytest.mark.parametrize("system,machine,expected", [
    ("Linux", "x86_64", PlatformInfo("linux", "x64")),
    ("Linux", "aarch64", PlatformInfo("linux", "arm64")),
    ("Darwin", "arm64", PlatformInfo("darwin", "arm64")),
    ("Darwin", "x86_64", PlatformInfo("darwin", "x64")),
])
def test_resolve_platform(system, machine, expected):
    assert resolve_platform(system, machine) == expected


def test_unsupported_platform():
    with pytest.raises(UnsupportedPlatformError):
        resolve_platform("Windows", "AMD64")
    with pytest.raises(UnsupportedPlatformError):
        resolve_platform("Linux", "riscv64")
