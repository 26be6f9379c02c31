import os
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from siteassembler.config import load_settings
from siteassembler.lib.log import clear_secrets
from tests.helpers import INDEX_HTML, LOCAL_CONFIG


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Isolate tests from secrets and settings in the developer's shell."""
    for name in list(os.environ):
        if name.startswith("SITEASSEMBLER_") or name in {"SUPABASE_URL", "SUPABASE_KEY"}:
            monkeypatch.delenv(name, raising=False)
    yield
    clear_secrets()


@pytest.fixture
def site_source(tmp_path) -> Path:
    """Source tree: index.html referencing config.js, assets, a local config and build tooling."""
    source = tmp_path / "site"
    (source / "css").mkdir(parents=True)
    (source / "css" / "app.css").write_text("body { color: #111; }\n", encoding="utf-8")
    (source / "js").mkdir()
    (source / "js" / "theme.js").write_text("// theme toggle\n", encoding="utf-8")
    (source / "index.html").write_text(INDEX_HTML, encoding="utf-8")
    (source / "config.js").write_text(LOCAL_CONFIG, encoding="utf-8")
    (source / "sw.js").write_text("self.addEventListener('fetch', () => {});\n", encoding="utf-8")
    (source / "build.js").write_text("// legacy build\n", encoding="utf-8")
    (source / "package.json").write_text("{}\n", encoding="utf-8")
    (source / "README.md").write_text("# site\n", encoding="utf-8")
    (source / ".git").mkdir()
    (source / ".git" / "HEAD").write_text("ref: refs/heads/main\n", encoding="utf-8")
    return source


@pytest.fixture
def make_settings(site_source):
    """Factory for settings rooted at ``site_source``."""
    def _make(**overrides):
        overrides.setdefault("source_dir", site_source)
        return load_settings(**overrides)

    return _make
