"""Tests for the site assembler build pass."""

from __future__ import annotations

import os
import shutil

import pytest

from siteassembler.errors import BuildError
from siteassembler.site import ConfigSource, SiteAssembler
from siteassembler.site.html import InjectionPoint, references_config
from tests.helpers import INDEX_HTML, LOCAL_CONFIG, SECRETS, config_object, read_tree


def build(settings, environ=None):
    assembler = SiteAssembler(settings=settings, environ=environ or {})
    return assembler, assembler.build()


class TestWorkedExample:
    """index.html + css/app.css + local config.js with secrets set."""

    def test_inline_policy(self, make_settings, site_source):
        assembler, result = build(make_settings(), SECRETS)
        out = assembler.output_dir

        assert (out / "css" / "app.css").read_bytes() == (site_source / "css" / "app.css").read_bytes()
        html = (out / "index.html").read_text(encoding="utf-8")
        assert config_object(html) == {"SUPABASE_URL": "https://x.test", "SUPABASE_KEY": "key123"}
        assert not references_config(html, "config.js")
        assert not (out / "config.js").exists()
        assert (out / ".nojekyll").read_bytes() == b""
        assert result.config_source is ConfigSource.ENVIRONMENT
        assert result.injections == {"index.html": InjectionPoint.PLACEHOLDER}

    def test_external_policy(self, make_settings):
        assembler, result = build(make_settings(policy="external"), SECRETS)
        out = assembler.output_dir

        content = (out / "config.js").read_text(encoding="utf-8")
        assert config_object(content) == {"SUPABASE_URL": "https://x.test", "SUPABASE_KEY": "key123"}
        html = (out / "index.html").read_text(encoding="utf-8")
        assert "https://x.test" not in html
        assert references_config(html, "config.js")
        assert (out / ".nojekyll").exists()
        assert result.config_source is ConfigSource.ENVIRONMENT
        assert result.injections == {}


class TestExclusion:
    def test_excluded_names_never_copied(self, make_settings):
        assembler, result = build(make_settings())
        shipped = set(read_tree(assembler.output_dir))
        for name in (".git/HEAD", "build.js", "package.json", "README.md"):
            assert name not in shipped
        assert sorted(result.excluded) == [".git", "README.md", "build.js", "package.json"]

    def test_nested_excluded_names_dropped(self, make_settings, site_source):
        (site_source / "css" / "README.md").write_text("notes\n", encoding="utf-8")
        (site_source / "js" / "node_modules").mkdir()
        (site_source / "js" / "node_modules" / "dep.js").write_text("x\n", encoding="utf-8")
        assembler, _ = build(make_settings())
        assert not (assembler.output_dir / "css" / "README.md").exists()
        assert not (assembler.output_dir / "js" / "node_modules").exists()
        assert (assembler.output_dir / "js" / "theme.js").exists()

    def test_nested_output_dir_not_copied_into_itself(self, make_settings, site_source):
        (site_source / "dist").mkdir()
        (site_source / "dist" / "keep.txt").write_text("k\n", encoding="utf-8")
        assembler, _ = build(make_settings(output_dir="dist/site"))
        shipped = read_tree(assembler.output_dir)
        assert "dist/keep.txt" in shipped
        assert not any(path.startswith("dist/site") for path in shipped)

    def test_nested_folder_named_like_output_ships(self, make_settings, site_source):
        (site_source / "img" / "public").mkdir(parents=True)
        (site_source / "img" / "public" / "logo.png").write_bytes(b"\x89PNG")
        assembler, result = build(make_settings())
        assert (assembler.output_dir / "img" / "public" / "logo.png").read_bytes() == b"\x89PNG"
        assert "public" not in result.excluded

    def test_folder_named_like_external_output_ships(self, make_settings, site_source, tmp_path):
        (site_source / "deploy").mkdir()
        (site_source / "deploy" / "page.html").write_text("<p>page</p>", encoding="utf-8")
        assembler, _ = build(make_settings(output_dir=tmp_path / "elsewhere" / "deploy"))
        assert (assembler.output_dir / "deploy" / "page.html").read_text(encoding="utf-8") == "<p>page</p>"

    def test_custom_exclusions(self, make_settings):
        assembler, result = build(make_settings(exclude=["sw.js"]))
        assert not (assembler.output_dir / "sw.js").exists()
        # Defaults replaced, not extended.
        assert (assembler.output_dir / "build.js").exists()
        assert result.excluded == ["sw.js"]


class TestFallbackPaths:
    """No secrets in the environment."""

    def test_inline_copies_local_config_and_leaves_html(self, make_settings, site_source):
        assembler, result = build(make_settings())
        out = assembler.output_dir
        assert (out / "index.html").read_bytes() == (site_source / "index.html").read_bytes()
        assert (out / "config.js").read_text(encoding="utf-8") == LOCAL_CONFIG
        assert result.config_source is ConfigSource.FALLBACK_FILE
        assert result.injections == {}

    def test_external_copies_local_config_verbatim(self, make_settings, site_source):
        assembler, result = build(make_settings(policy="external"))
        assert (assembler.output_dir / "config.js").read_bytes() == (site_source / "config.js").read_bytes()
        assert result.config_source is ConfigSource.FALLBACK_FILE

    @pytest.mark.parametrize("policy", ["inline", "external"])
    def test_stub_when_no_local_config(self, make_settings, site_source, policy):
        (site_source / "config.js").unlink()
        assembler, result = build(make_settings(policy=policy))
        content = (assembler.output_dir / "config.js").read_text(encoding="utf-8")
        assert config_object(content) == {"SUPABASE_URL": "", "SUPABASE_KEY": ""}
        assert result.config_source is ConfigSource.STUB

    def test_fallback_copy_is_counted(self, make_settings):
        _, result = build(make_settings())
        # Top-level sw.js plus the local config.js; directory contents count as directories.
        assert result.files_copied == 2
        assert "Copied: 2 files, 2 directories, 1 HTML pages" in result.summary_lines()

    def test_half_configured_environment_uses_fallback(self, make_settings):
        assembler, result = build(make_settings(), {"SUPABASE_URL": "https://x.test"})
        html = (assembler.output_dir / "index.html").read_text(encoding="utf-8")
        assert "https://x.test" not in html
        assert result.config_source is ConfigSource.FALLBACK_FILE

    def test_environment_wins_over_local_file(self, make_settings):
        assembler, _ = build(make_settings(policy="external"), SECRETS)
        content = (assembler.output_dir / "config.js").read_text(encoding="utf-8")
        assert "local-dev-key" not in content
        assert "localhost" not in content

    def test_html_bytes_preserved_verbatim(self, make_settings, site_source):
        raw = INDEX_HTML.replace("\n", "\r\n").encode("utf-8")
        (site_source / "index.html").write_bytes(raw)
        assembler, _ = build(make_settings())
        assert (assembler.output_dir / "index.html").read_bytes() == raw


class TestHtmlPolicies:
    def test_missing_placeholder_injects_before_head(self, make_settings, site_source):
        (site_source / "about.html").write_text("<html><head><title>About</title></head></html>", encoding="utf-8")
        assembler, result = build(make_settings(), SECRETS)
        html = (assembler.output_dir / "about.html").read_text(encoding="utf-8")
        assert html.index("window.CONFIG") < html.index("</head>")
        assert result.injections["about.html"] is InjectionPoint.HEAD
        assert result.html_pages == 2

    def test_cache_busted_placeholder_resolved(self, make_settings, site_source):
        page = INDEX_HTML.replace('src="config.js"', 'src="config.js?v=2"')
        (site_source / "index.html").write_text(page, encoding="utf-8")
        assembler, result = build(make_settings(), SECRETS)
        html = (assembler.output_dir / "index.html").read_text(encoding="utf-8")
        assert "config.js?v=2" not in html
        assert config_object(html) == SECRETS
        assert result.injections["index.html"] is InjectionPoint.PLACEHOLDER

    def test_external_minifies_html(self, make_settings):
        assembler, _ = build(make_settings(policy="external"))
        html = (assembler.output_dir / "index.html").read_text(encoding="utf-8")
        assert "<!--" not in html
        assert "\n" not in html

    def test_inline_with_minify(self, make_settings):
        assembler, _ = build(make_settings(minify_html=True), SECRETS)
        html = (assembler.output_dir / "index.html").read_text(encoding="utf-8")
        assert "<!-- site configuration -->" not in html
        assert config_object(html)["SUPABASE_KEY"] == "key123"

    def test_external_without_minify_copies_html(self, make_settings, site_source):
        assembler, _ = build(make_settings(policy="external", minify_html=False), SECRETS)
        assert (assembler.output_dir / "index.html").read_bytes() == (site_source / "index.html").read_bytes()

    def test_nested_html_copied_unchanged(self, make_settings, site_source):
        (site_source / "admin").mkdir()
        page = '<html><head><script src="../config.js"></script></head></html>'
        (site_source / "admin" / "login.html").write_text(page, encoding="utf-8")
        assembler, _ = build(make_settings(), SECRETS)
        assert (assembler.output_dir / "admin" / "login.html").read_text(encoding="utf-8") == page

    def test_invalid_utf8_html_is_fatal(self, make_settings, site_source):
        (site_source / "broken.html").write_bytes(b"<html>\xff\xfe</html>")
        with pytest.raises(BuildError, match="UTF-8"):
            build(make_settings(), SECRETS)


class TestResetOutput:
    def test_stale_output_removed(self, make_settings, site_source):
        stale = site_source / "public" / "old.html"
        stale.parent.mkdir()
        stale.write_text("old", encoding="utf-8")
        assembler, _ = build(make_settings())
        assert not (assembler.output_dir / "old.html").exists()

    def test_output_file_replaced(self, make_settings, site_source):
        (site_source / "public").write_text("not a dir", encoding="utf-8")
        assembler, _ = build(make_settings())
        assert assembler.output_dir.is_dir()

    def test_refuses_output_equal_to_source(self, make_settings, site_source):
        with pytest.raises(BuildError, match="contains the source tree"):
            build(make_settings(output_dir="."))
        assert (site_source / "index.html").exists()

    def test_refuses_output_above_source(self, make_settings, site_source):
        with pytest.raises(BuildError):
            build(make_settings(output_dir=".."))
        assert (site_source / "index.html").exists()

    def test_output_outside_source(self, make_settings, tmp_path):
        target = tmp_path / "deploy"
        assembler, _ = build(make_settings(output_dir=target))
        assert assembler.output_dir == target.resolve()
        assert (target / "index.html").exists()

    @pytest.mark.skipif(os.name == "nt" or os.geteuid() == 0, reason="needs POSIX permissions as non-root")
    def test_undeletable_output_is_fatal(self, make_settings, site_source):
        locked = site_source / "public" / "locked"
        locked.mkdir(parents=True)
        (locked / "file.txt").write_text("x", encoding="utf-8")
        locked.chmod(0o500)
        try:
            with pytest.raises(BuildError, match="Could not remove output directory"):
                build(make_settings())
        finally:
            locked.chmod(0o700)


class TestFailures:
    def test_missing_source_is_fatal(self, tmp_path):
        from siteassembler.config import load_settings

        with pytest.raises(BuildError, match="Source directory not found"):
            build(load_settings(source_dir=tmp_path / "missing"))
        assert not (tmp_path / "missing").exists()

    def test_copy_failure_is_fatal(self, make_settings, monkeypatch):
        def boom(*args, **kwargs):
            raise PermissionError(13, "Permission denied")

        monkeypatch.setattr(shutil, "copy2", boom)
        with pytest.raises(BuildError, match="Could not copy file") as excinfo:
            build(make_settings())
        assert isinstance(excinfo.value.__cause__, PermissionError)


class TestDeterminism:
    @pytest.mark.parametrize("policy", ["inline", "external"])
    def test_rebuild_is_byte_identical(self, make_settings, policy):
        assembler, _ = build(make_settings(policy=policy), SECRETS)
        first = read_tree(assembler.output_dir)
        build(make_settings(policy=policy), SECRETS)
        assert read_tree(assembler.output_dir) == first

    def test_summary_never_contains_secrets(self, make_settings):
        _, result = build(make_settings(), SECRETS)
        summary = "\n".join(result.summary_lines())
        assert "key123" not in summary
        assert "x.test" not in summary
        assert "Configuration: environment" in summary
