"""Tests for .SRCINFO and PKGBUILD parsing."""

import pytest

from raur.srcinfo import parse_pkgbuild_version, parse_srcinfo, srcinfo_to_metadata


SRCINFO = """\
pkgbase = demo
\tpkgdesc = A demo package
\tpkgver = 1.2.3
\tpkgrel = 2
\tepoch = 1
\tarch = x86_64
\tmakedepends = cmake
\tmakedepends = ninja
\tcheckdepends = gtest
\tdepends = glibc
\tdepends = libfoo>=2.0
\tdepends_x86_64 = lib32-bar

pkgname = demo

pkgname = demo-extras
\tdepends = demo=1:1.2.3
"""


def test_parse_srcinfo_sections():
    sections = parse_srcinfo(SRCINFO)
    assert set(sections) == {"pkgbase", "demo", "demo-extras"}
    assert sections["pkgbase"]["makedepends"] == ["cmake", "ninja"]
    assert sections["demo-extras"]["depends"] == ["demo=1:1.2.3"]


def test_srcinfo_to_metadata_uses_base_values():
    metadata = srcinfo_to_metadata(SRCINFO, "demo", "git+https://example.invalid/aur.git#branch=demo")

    assert metadata is not None
    assert metadata.version == "1:1.2.3-2"
    assert metadata.build_dependencies == frozenset({"cmake", "ninja", "gtest"})
    assert metadata.runtime_dependencies == frozenset({"glibc", "libfoo", "lib32-bar"})
    assert str(metadata.constraints["libfoo"]) == "libfoo>=2.0"
    assert metadata.package_base == "demo"
    assert metadata.description == "A demo package"


def test_srcinfo_to_metadata_package_overrides():
    metadata = srcinfo_to_metadata(SRCINFO, "demo-extras", "locator")

    assert metadata is not None
    assert metadata.runtime_dependencies == frozenset({"demo"})
    assert metadata.build_dependencies == frozenset({"cmake", "ninja", "gtest"})


def test_srcinfo_to_metadata_unknown_package():
    assert srcinfo_to_metadata(SRCINFO, "other", "locator") is None
    assert srcinfo_to_metadata("garbage", "demo", "locator") is None


def test_parse_pkgbuild_version():
    assert parse_pkgbuild_version("pkgname=x\npkgver=1.2.3\npkgrel=4\n") == "1.2.3-4"
    assert parse_pkgbuild_version("pkgver='1.0'\npkgrel=\"2\"\n") == "1.0-2"
    assert parse_pkgbuild_version("pkgver=0.9\n") == "0.9"
    assert parse_pkgbuild_version("# pkgver=5\npkgver=1\npkgrel=1\n") == "1-1"


def test_parse_pkgbuild_version_dynamic():
    assert parse_pkgbuild_version("pkgver=$(git describe)\npkgrel=1\n") is None
    assert parse_pkgbuild_version("pkgver=${_ver}\n") is None
    assert parse_pkgbuild_version("pkgname=foo\n") is None


def test_srcinfo_with_invalid_dependency_name():
    text = "pkgbase = demo\n\tpkgver = 1\n\tpkgrel = 1\n\tdepends = -Syu\n\npkgname = demo\n"

    with pytest.raises(ValueError):
        srcinfo_to_metadata(text, "demo", "locator")


def test_srcinfo_with_invalid_package_base():
    text = "pkgbase = ../demo\n\tpkgver = 1\n\tpkgrel = 1\n\npkgname = demo\n"

    with pytest.raises(ValueError):
        srcinfo_to_metadata(text, "demo", "locator")
