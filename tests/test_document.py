"""Tests for the document assembler and its render/cache state machine."""

from __future__ import annotations

import dataclasses
import logging
from pathlib import Path

import pytest

from pagecraft.config import SiteSettings
from pagecraft.diagnostics import DiagnosticsContext
from pagecraft.document import DocumentAssembler, PageRequest, RenderState
from pagecraft.errors import DocumentClosedError
from pagecraft.hooks import CANONICAL_HOOKS
from pagecraft.server.cache import PageCache


@pytest.fixture
def site_root(tmp_path: Path) -> Path:
    (tmp_path / "web" / "css").mkdir(parents=True)
    (tmp_path / "web" / "css" / "site.css").write_text("body{}", encoding="utf-8")
    components = tmp_path / "web" / "components"
    components.mkdir(parents=True)
    (components / "header.html").write_text("<header>{{ brand }}</header>", encoding="utf-8")
    (components / "footer.html").write_text("<footer>&copy; {{ year }}</footer>", encoding="utf-8")
    (components / "badge.html").write_text("<span>\n  {{ label }}\n</span>", encoding="utf-8")
    return tmp_path


@pytest.fixture
def settings(site_root: Path) -> SiteSettings:
    return SiteSettings(
        root=site_root,
        base_url="https://example.test/",
        app_name="Demo",
        production=True,
        debug=True,
        cache_clear_current_key="purge",
        cache_clear_all_key="purgeall",
    )


@pytest.fixture
def page_cache(site_root: Path) -> PageCache:
    return PageCache(site_root / "cache" / "pages")


def _assembler(
    settings: SiteSettings, page_cache: PageCache, url: str = "/about"
) -> DocumentAssembler:
    return DocumentAssembler(settings, PageRequest.from_url(url), page_cache=page_cache)


class _ExplodingCache(PageCache):
    def get(self, key: str) -> bytes | None:
        raise AssertionError("get must not be called")

    def set(self, key: str, content: bytes | str) -> bool:
        raise AssertionError("set must not be called")


def test_cached_page_is_emitted_without_evaluation(
    settings: SiteSettings, page_cache: PageCache, monkeypatch: pytest.MonkeyPatch
) -> None:
    page_cache.set("/about", "<html>CACHED</html>")
    document = _assembler(settings, page_cache)
    document.enable_cache()
    calls: list[str] = []
    for name in CANONICAL_HOOKS:
        document.add_hook(name, lambda name=name: calls.append(name) or name)

    def fail() -> str:
        raise AssertionError("resources must not be rendered")

    monkeypatch.setattr(document.resources, "render_styles", fail)
    monkeypatch.setattr(document.resources, "render_scripts", fail)

    rendered = document.render("<p>fresh</p>")
    assert rendered.content == b"<html>CACHED</html>"
    assert rendered.from_cache is True
    assert calls == []
    assert document.state is RenderState.EMITTED


def test_clear_current_signal_rebuilds_and_overwrites(
    settings: SiteSettings, page_cache: PageCache
) -> None:
    page_cache.set("/about", "<html>CACHED</html>")
    document = _assembler(settings, page_cache, "/about/?purge=purge")
    document.enable_cache()
    calls: list[str] = []
    document.add_hook("top_body", lambda: calls.append("top_body") or "<i>hooked</i>")

    rendered = document.render("<p>fresh</p>")
    assert rendered.from_cache is False
    assert calls == ["top_body"]
    assert b"<p>fresh</p>" in rendered.content
    assert page_cache.get("/about") == rendered.content


def test_signal_value_must_match_key(settings: SiteSettings, page_cache: PageCache) -> None:
    page_cache.set("/about", "<html>CACHED</html>")
    document = _assembler(settings, page_cache, "/about?purge=1")
    document.enable_cache()
    assert document.render("<p>fresh</p>").content == b"<html>CACHED</html>"


def test_clear_all_signal_purges_every_page(
    settings: SiteSettings, page_cache: PageCache
) -> None:
    page_cache.set("/about", "<html>CACHED</html>")
    page_cache.set("/contact", "<html>OTHER</html>")
    document = _assembler(settings, page_cache, "/about?purgeall=purgeall")
    document.enable_cache()

    rendered = document.render("<p>fresh</p>")
    assert rendered.from_cache is False
    assert page_cache.get("/contact") is None
    assert page_cache.get("/about") == rendered.content


def test_cache_is_not_served_outside_production(
    settings: SiteSettings, page_cache: PageCache
) -> None:
    development = dataclasses.replace(settings, production=False, debug=False)
    page_cache.set("/about", "<html>CACHED</html>")
    document = _assembler(development, page_cache)
    document.enable_cache()

    rendered = document.render("<p>fresh</p>")
    assert rendered.from_cache is False
    assert page_cache.get("/about") == rendered.content


def test_disabled_cache_is_never_consulted(settings: SiteSettings, site_root: Path) -> None:
    document = DocumentAssembler(
        settings,
        PageRequest.from_url("/about?purge=purge"),
        page_cache=_ExplodingCache(site_root / "cache"),
    )
    rendered = document.render("<p>body</p>")
    assert rendered.from_cache is False


def test_failed_cache_write_still_emits(settings: SiteSettings, site_root: Path) -> None:
    blocker = site_root / "blocked"
    blocker.write_text("not a directory", encoding="utf-8")
    document = DocumentAssembler(
        settings, PageRequest.from_url("/about"), page_cache=PageCache(blocker / "pages")
    )
    document.enable_cache()
    rendered = document.render("<p>body</p>")
    assert b"<p>body</p>" in rendered.content


def test_document_sections_follow_fixed_order(
    settings: SiteSettings, page_cache: PageCache
) -> None:
    document = _assembler(settings, page_cache)
    for name in CANONICAL_HOOKS:
        document.add_hook(name, f"[{name}]")
    document.add_meta('name="theme-color" content="black"')
    document.add_cdn("link", 'rel="preconnect" href="https://fonts.example"')
    document.add_style("site.css")
    document.set_ajax_url()
    document.add_header("<header>H</header>")
    document.add_footer("<footer>F</footer>")

    html = document.render("<main>BODY</main>").text
    markers = [
        "<!DOCTYPE html>",
        '<html lang="en">',
        "[before_head]",
        "<head>",
        "[top_head]",
        '<meta charset="UTF-8">',
        '<meta name="viewport"',
        '<meta name="theme-color" content="black">',
        "<title>Demo</title>",
        "<script>let ajax_url = 'https://example.test/ajax'</script>",
        '<link rel="icon"',
        '<link rel="preconnect" href="https://fonts.example">',
        '<link rel="stylesheet" href="https://example.test/web/css/site.css">',
        "[bottom_head]",
        "</head>",
        "[after_head]",
        "[before_body]",
        "<body>",
        "[top_body]",
        "<header>H</header>",
        "<main>BODY</main>",
        "<footer>F</footer>",
        "</body>",
        "[after_body]",
        "</html>",
    ]
    positions = [html.index(marker) for marker in markers]
    assert positions == sorted(positions)
    assert html.count("[before_body]") == 2
    second_before_body = html.rindex("[before_body]")
    assert html.index("<main>BODY</main>") < second_before_body < html.index("<footer>F</footer>")
    assert "[bottom_body]" not in html


def test_distinct_bottom_body_setting(settings: SiteSettings, page_cache: PageCache) -> None:
    document = _assembler(
        dataclasses.replace(settings, distinct_bottom_body=True), page_cache
    )
    document.add_hook("before_body", "[before_body]")
    document.add_hook("bottom_body", "[bottom_body]")
    html = document.render("<main>BODY</main>").text
    assert html.count("[before_body]") == 1
    assert html.index("<main>BODY</main>") < html.index("[bottom_body]") < html.index("</body>")


def test_minified_document(settings: SiteSettings, page_cache: PageCache) -> None:
    document = _assembler(settings, page_cache)
    document.activate_minify()
    document.set_title("Minified")
    html = document.render("<div>\n   <p>x</p>\n</div>").text
    assert "\n" not in html
    assert "<title>Minified</title>" in html
    assert "<div><p>x</p></div>" in html


def test_attributes_and_language(settings: SiteSettings, page_cache: PageCache) -> None:
    document = _assembler(settings, page_cache)
    document.set_lang("de")
    document.set_charset("ISO-8859-1")
    document.add_html_attribute("data-theme", "dark")
    document.add_body_attribute("class", "home")
    document.add_body_attribute("data-note", 'say "hi"')
    html = document.render().text
    assert '<html lang="de" data-theme="dark">' in html
    assert '<meta charset="ISO-8859-1">' in html
    assert '<body class="home" data-note="say &quot;hi&quot;">' in html


def test_attribute_filter_replaces_values(settings: SiteSettings, page_cache: PageCache) -> None:
    document = _assembler(settings, page_cache)
    document.set_project_name("Shop")
    document.add_body_attribute("class", "home")
    assert document.apply_attribute_filter("TITLE", lambda title: f"Cart | {title}") == "Cart | Shop"
    assert document.apply_attribute_filter("body", lambda attrs: {**attrs, "id": "top"}) == {
        "class": "home",
        "id": "top",
    }
    document.apply_attribute_filter("lang", lambda lang: "fr")
    html = document.render().text
    assert "<title>Cart | Shop</title>" in html
    assert '<body class="home" id="top">' in html
    assert '<html lang="fr">' in html


def test_attribute_filter_receives_and_returns_maps(
    settings: SiteSettings, page_cache: PageCache
) -> None:
    document = _assembler(settings, page_cache)
    document.add_html_attribute("dir", "ltr")
    seen: list[dict[str, str]] = []

    def replace(attributes: dict[str, str]) -> dict[str, str]:
        seen.append(dict(attributes))
        return {"class": "dark", "data-x": "1"}

    document.apply_attribute_filter("html", replace)
    html = document.render().text
    assert seen == [{"dir": "ltr"}]
    assert '<html lang="en" class="dark" data-x="1">' in html


def test_attribute_filter_rejects_unknown_target(
    settings: SiteSettings, page_cache: PageCache, caplog: pytest.LogCaptureFixture
) -> None:
    document = _assembler(settings, page_cache)
    document.set_title("Unchanged")
    with caplog.at_level(logging.WARNING, logger="pagecraft.document"):
        assert document.apply_attribute_filter("head", lambda value: "x") is None
    assert document.document.title == "Unchanged"
    assert "Invalid HTML tag: head" in caplog.text


def test_header_footer_and_components(settings: SiteSettings, page_cache: PageCache) -> None:
    document = _assembler(settings, page_cache)
    document.activate_minify()
    document.add_header({"brand": "ACME"})
    document.add_footer(variables={"year": 2024})
    document.component_hook("top_body", "badge", {"label": "new"})
    assert document.component("badge", {"label": "inline"}) == "<span> inline </span>"

    html = document.render("<p>x</p>").text
    assert "<header>ACME</header>" in html
    assert "<footer>&copy; 2024</footer>" in html
    assert "<span> new </span>" in html


def test_remove_header(settings: SiteSettings, page_cache: PageCache) -> None:
    document = _assembler(settings, page_cache)
    document.add_header("<header>gone</header>")
    document.remove_header()
    assert "gone" not in document.render().text


def test_invalid_cdn_type_warns(
    settings: SiteSettings, page_cache: PageCache, caplog: pytest.LogCaptureFixture
) -> None:
    document = _assembler(settings, page_cache)
    with caplog.at_level(logging.WARNING, logger="pagecraft.document"):
        document.add_cdn("STYLE", 'href="x"')
    assert "Invalid CDN type: style" in caplog.text


def test_cdn_script_is_closed(settings: SiteSettings, page_cache: PageCache) -> None:
    document = _assembler(settings, page_cache)
    document.add_cdn("script", 'src="https://cdn.example/lib.js"')
    assert '<script src="https://cdn.example/lib.js"></script>' in document.render().text


def test_custom_hook_resolves_inline(settings: SiteSettings, page_cache: PageCache) -> None:
    document = _assembler(settings, page_cache)
    document.add_hook("sidebar", "<aside>low</aside>", 1)
    document.add_hook("sidebar", "<aside>high</aside>", 9)
    assert document.hook("sidebar") == "<aside>high</aside><aside>low</aside>"


def test_render_only_once(settings: SiteSettings, page_cache: PageCache) -> None:
    document = _assembler(settings, page_cache)
    assert document.state is RenderState.ACCUMULATING
    document.render()
    with pytest.raises(DocumentClosedError):
        document.render()


def test_diagnostics_overlay_in_development(
    settings: SiteSettings, page_cache: PageCache
) -> None:
    development = dataclasses.replace(settings, production=False)
    document = _assembler(development, page_cache)
    document.enable_cache()
    diagnostics = DiagnosticsContext(method="GET", route_name="about")
    diagnostics.record_query("SELECT * FROM users WHERE id = ?", [1], origin="home.py:12")

    rendered = document.render("<p>x</p>", diagnostics)
    primary, _, overlay = rendered.text.partition("</html>")
    assert 'id="pcDiagnostics"' in overlay
    assert "SELECT * FROM users WHERE id = ?" in overlay
    assert '<span class="count">1</span>' in overlay
    assert "about" in overlay
    assert b"pcDiagnostics" not in page_cache.get("/about")


def test_no_diagnostics_in_production(settings: SiteSettings, page_cache: PageCache) -> None:
    document = _assembler(settings, page_cache)
    assert "pcDiagnostics" not in document.render().text


def test_page_request_cache_key() -> None:
    assert PageRequest.from_url("/about/?a=1").cache_key == "/about"
    assert PageRequest.from_url("/").cache_key == "/"
    assert dict(PageRequest.from_url("/x?purge=purge").query) == {"purge": "purge"}
    assert PageRequest.from_url("//about").cache_key == "//about"
    assert PageRequest.from_url("/x#top").cache_key == "/x"
