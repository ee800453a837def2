"""Tests for the style/script pipeline."""

from __future__ import annotations

import logging
import os
from pathlib import Path

import pytest

from pagecraft.config import SiteSettings
from pagecraft.errors import MissingModuleError, MissingSourceFileError
from pagecraft.resources import ResourceKind, ResourcePipeline, format_attributes


@pytest.fixture
def site_root(tmp_path: Path) -> Path:
    (tmp_path / "web" / "css").mkdir(parents=True)
    (tmp_path / "web" / "js").mkdir(parents=True)
    (tmp_path / "web" / "css" / "site.css").write_text("body { color: red; }", encoding="utf-8")
    (tmp_path / "web" / "css" / "empty.css").write_text("", encoding="utf-8")
    (tmp_path / "web" / "js" / "app.js").write_text("let a = 1; // one\n", encoding="utf-8")
    return tmp_path


@pytest.fixture
def pipeline(site_root: Path) -> ResourcePipeline:
    settings = SiteSettings(root=site_root, base_url="https://example.test/")
    return ResourcePipeline(settings)


def test_add_style_registers_public_url(pipeline: ResourcePipeline) -> None:
    resource = pipeline.add_style("site.css", {"media": "screen"})
    assert resource is not None
    assert resource.kind is ResourceKind.STYLE
    assert pipeline.render_styles() == (
        '<link rel="stylesheet" href="https://example.test/web/css/site.css" media="screen">'
    )


def test_add_script_with_string_attributes(pipeline: ResourcePipeline) -> None:
    pipeline.add_script("app.js", "defer")
    assert pipeline.render_scripts() == (
        '<script src="https://example.test/web/js/app.js" defer></script>'
    )


def test_missing_style_is_reported_and_skipped(
    pipeline: ResourcePipeline, caplog: pytest.LogCaptureFixture
) -> None:
    with caplog.at_level(logging.WARNING, logger="pagecraft.resources"):
        assert pipeline.add_style("missing.css") is None
    assert pipeline.styles == ()
    assert "Could not find stylesheet file" in caplog.text


def test_empty_style_leaves_list_unchanged_with_warning(
    pipeline: ResourcePipeline, caplog: pytest.LogCaptureFixture
) -> None:
    pipeline.add_style("site.css")
    with caplog.at_level(logging.WARNING, logger="pagecraft.resources"):
        assert pipeline.add_style("empty.css") is None
    assert [resource.path for resource in pipeline.styles] == ["web/css/site.css"]
    assert "empty.css" in caplog.text


def test_resources_keep_order_without_deduplication(pipeline: ResourcePipeline) -> None:
    pipeline.add_style("site.css")
    pipeline.add_style("web/css/site.css", from_root=True)
    assert len(pipeline.styles) == 2


def test_empty_path_is_ignored(pipeline: ResourcePipeline) -> None:
    assert pipeline.add_script("") is None
    assert pipeline.scripts == ()


def test_format_attributes_variants() -> None:
    assert format_attributes("") == ""
    assert format_attributes("async") == " async"
    assert format_attributes({"data-x": "1", "id": "main"}) == ' data-x="1" id="main"'


def test_compress_writes_artifact_once(pipeline: ResourcePipeline, site_root: Path) -> None:
    relative = pipeline.compress("site.css")
    assert relative == "_min/site.min.css"
    artifact = site_root / "web" / "css" / "_min" / "site.min.css"
    assert artifact.read_text(encoding="utf-8") == "body{color:red}"

    stamp = 1_000_000_000
    os.utime(artifact, (stamp, stamp))
    assert pipeline.compress("site.css") == relative
    assert artifact.stat().st_mtime == stamp


def test_compress_rewrites_changed_source(pipeline: ResourcePipeline, site_root: Path) -> None:
    pipeline.compress("site.css")
    (site_root / "web" / "css" / "site.css").write_text("p { margin: 0; }", encoding="utf-8")
    pipeline.compress("site.css")
    artifact = site_root / "web" / "css" / "_min" / "site.min.css"
    assert artifact.read_text(encoding="utf-8") == "p{margin:0}"


def test_compressed_artifact_can_be_registered(pipeline: ResourcePipeline) -> None:
    pipeline.add_script(pipeline.compress("app.js"))
    assert pipeline.scripts[0].path == "web/js/_min/app.min.js"


def test_compress_passes_through_other_extensions(pipeline: ResourcePipeline) -> None:
    assert pipeline.compress("logo.svg") == "logo.svg"


def test_compress_missing_source_is_fatal(pipeline: ResourcePipeline) -> None:
    with pytest.raises(MissingSourceFileError, match="not readable"):
        pipeline.compress("nope.js")


def test_locate_module_asset_searches_depth_first(
    pipeline: ResourcePipeline, site_root: Path
) -> None:
    module = site_root / "node_modules" / "widget"
    (module / "dist" / "nested").mkdir(parents=True)
    (module / "dist" / "nested" / "deep.min.js").write_text("deep()", encoding="utf-8")
    (module / "dist" / "widget.min.js").write_text("widget()", encoding="utf-8")
    (module / "readme.md").write_text("docs", encoding="utf-8")

    found = pipeline.locate_module_asset("Widget")
    assert found == "node_modules/widget/dist/widget.min.js"
    assert [resource.path for resource in pipeline.scripts] == [found]


def test_locate_module_asset_without_auto_add(
    pipeline: ResourcePipeline, site_root: Path
) -> None:
    module = site_root / "node_modules" / "theme"
    module.mkdir(parents=True)
    (module / "theme.min.css").write_text(".a{}", encoding="utf-8")
    assert pipeline.locate_module_asset("theme", "min.css", auto_add=False) == (
        "node_modules/theme/theme.min.css"
    )
    assert pipeline.styles == ()


def test_locate_module_asset_missing_module_is_fatal(pipeline: ResourcePipeline) -> None:
    with pytest.raises(MissingModuleError, match="Module 'ghost' not found"):
        pipeline.locate_module_asset("ghost")


def test_locate_module_asset_without_match_is_fatal(
    pipeline: ResourcePipeline, site_root: Path
) -> None:
    (site_root / "node_modules" / "bare").mkdir(parents=True)
    with pytest.raises(MissingModuleError, match="No file with extension"):
        pipeline.locate_module_asset("bare", "min.css")
