import logging
import os

import pytest

from car_sitemap_sync import writer
from car_sitemap_sync.writer import SitemapWriter, atomic_write


def test_atomic_write_replaces_content(tmp_path):
    target = tmp_path / "sitemap.xml"
    target.write_text("old", encoding="utf-8")
    atomic_write(target, "new")
    assert target.read_text(encoding="utf-8") == "new"
    assert not (tmp_path / "sitemap.xml.tmp").exists()


def test_failed_rename_keeps_previous_file(tmp_path, monkeypatch):
    target = tmp_path / "sitemap.xml"
    target.write_text("old", encoding="utf-8")

    def boom(src, dst):
        raise OSError("disk full")
    monkeypatch.setattr(writer.os, "replace", boom)

    with pytest.raises(OSError):
        atomic_write(target, "new")
    assert target.read_text(encoding="utf-8") == "old"
    assert not (tmp_path / "sitemap.xml.tmp").exists()


def test_writes_secondary_when_present(tmp_path):
    primary, secondary = tmp_path / "public", tmp_path / "dist"
    primary.mkdir()
    secondary.mkdir()
    out = SitemapWriter(primary, secondary)
    assert out.write("sitemap.xml", "<x/>") == primary / "sitemap.xml"
    assert (secondary / "sitemap.xml").read_text(encoding="utf-8") == "<x/>"
    assert out.exists("sitemap.xml")


def test_missing_secondary_is_skipped(tmp_path):
    primary = tmp_path / "public"
    out = SitemapWriter(primary, tmp_path / "dist")
    out.ensure_primary_dir()
    out.write("sitemap.xml", "<x/>")
    assert (primary / "sitemap.xml").is_file()
    assert not (tmp_path / "dist").exists()


def test_secondary_failure_only_warns(tmp_path, monkeypatch, caplog):
    primary, secondary = tmp_path / "public", tmp_path / "dist"
    primary.mkdir()
    secondary.mkdir()
    real_replace = os.replace

    def replace(src, dst):
        if str(dst).startswith(str(secondary)):
            raise PermissionError("read-only")
        real_replace(src, dst)
    monkeypatch.setattr(writer.os, "replace", replace)

    with caplog.at_level(logging.WARNING, logger="car_sitemap_sync.writer"):
        SitemapWriter(primary, secondary).write("sitemap.xml", "<x/>")
    assert (primary / "sitemap.xml").is_file()
    assert not (secondary / "sitemap.xml").exists()
    assert "Could not write sitemap.xml" in caplog.text


def test_primary_failure_raises(tmp_path):
    blocker = tmp_path / "public"
    blocker.write_text("not a dir", encoding="utf-8")
    with pytest.raises(OSError):
        SitemapWriter(blocker).write("sitemap.xml", "<x/>")
