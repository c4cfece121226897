"""Tests for the publish command line utility."""

from __future__ import annotations

from pathlib import Path

import pytest

from aptpublish.core.config import Settings
from aptpublish.scripts import publish


@pytest.fixture
def cli(monkeypatch, fake_minio):
    settings = Settings(publish_bucket="test", publish_prefix="debian")
    monkeypatch.setattr(publish, "get_settings", lambda: settings)
    monkeypatch.setattr(publish, "get_minio_client", lambda config: fake_minio)
    return publish.main


def test_init_creates_bucket(monkeypatch, fake_minio, capsys) -> None:
    settings = Settings(publish_bucket="fresh")
    monkeypatch.setattr(publish, "get_settings", lambda: settings)
    monkeypatch.setattr(publish, "get_minio_client", lambda config: fake_minio)

    assert publish.main(["init"]) == 0

    assert fake_minio.bucket_exists("fresh")
    assert "Publish bucket verified" in capsys.readouterr().out


def test_put_and_ls(cli, fake_minio, tmp_path: Path, capsys) -> None:
    source = tmp_path / "Release"
    source.write_bytes(b"Suite: stable\n")

    assert cli(["put", str(source), "dists/stable/Release"]) == 0
    assert fake_minio.content("test", "debian/dists/stable/Release") == b"Suite: stable\n"

    assert cli(["ls", "dists"]) == 0
    assert capsys.readouterr().out.splitlines() == ["stable/Release"]


def test_ln_readlink_and_exists(cli, fake_minio, capsys) -> None:
    fake_minio.add("test", "debian/dists/stable/Release", b"r")

    assert cli(["ln", "dists/stable/Release", "dists/bookworm/Release"]) == 0
    assert cli(["readlink", "dists/bookworm/Release"]) == 0
    assert capsys.readouterr().out.strip() == "debian/dists/stable/Release"

    assert cli(["exists", "dists/bookworm/Release"]) == 0
    assert cli(["exists", "dists/trixie/Release"]) == 1


def test_mv_rm_and_rmdirs(cli, fake_minio) -> None:
    for key in ["debian/a", "debian/dists/x", "debian/dists/y", "other"]:
        fake_minio.add("test", key, b"data")

    assert cli(["mv", "a", "b"]) == 0
    assert cli(["rm", "b"]) == 0
    assert cli(["rmdirs", "dists"]) == 0

    assert fake_minio.keys("test") == ["other"]


def test_errors_are_reported(cli, capsys) -> None:
    assert cli(["readlink", "missing"]) == 1
    assert "error: error getting information about missing" in capsys.readouterr().err


def test_link_imports_into_pool_and_publishes(monkeypatch, fake_minio, tmp_path: Path) -> None:
    settings = Settings(publish_bucket="test", pool_root=str(tmp_path / "pool"))
    monkeypatch.setattr(publish, "get_settings", lambda: settings)
    monkeypatch.setattr(publish, "get_minio_client", lambda config: fake_minio)
    package = tmp_path / "hello_2.10-3_amd64.deb"
    package.write_bytes(b"hello package")

    assert publish.main(["link", str(package), "pool/main/h/hello"]) == 0
    assert fake_minio.content("test", "pool/main/h/hello/hello_2.10-3_amd64.deb") == b"hello package"
    assert len([p for p in (tmp_path / "pool").rglob("*") if p.is_file()]) == 1

    package.write_bytes(b"rebuilt package")
    assert publish.main(["link", str(package), "pool/main/h/hello"]) == 1
    assert publish.main(["link", "--force", str(package), "pool/main/h/hello"]) == 0
    assert fake_minio.content("test", "pool/main/h/hello/hello_2.10-3_amd64.deb") == b"rebuilt package"


def test_link_missing_source_is_reported(cli, tmp_path: Path, capsys) -> None:
    assert cli(["link", str(tmp_path / "missing.deb"), "pool/main/m"]) == 1
    assert "unable to import" in capsys.readouterr().err
