"""Test utilities for the site assembler test suite.

Usage:
    from tests.helpers import INDEX_HTML, SECRETS, read_tree
"""

from __future__ import annotations

import json
from pathlib import Path

INDEX_HTML = """<!DOCTYPE html>
<html lang="fr">
<head>
    <meta charset="UTF-8">
    <title>Auto Expert</title>
    <!-- site configuration -->
    <script src="config.js"></script>
    <link rel="stylesheet" href="css/app.css">
</head>
<body>
    <h1>Bienvenue</h1>
</body>
</html>
"""

LOCAL_CONFIG = """window.CONFIG = {
    SUPABASE_URL: 'http://localhost:54321',
    SUPABASE_KEY: 'local-dev-key'
};
"""

SECRETS = {"SUPABASE_URL": "https://x.test", "SUPABASE_KEY": "key123"}


def read_tree(root: Path) -> dict[str, bytes]:
    """Map relative POSIX path -> bytes for every file under root."""
    return {
        path.relative_to(root).as_posix(): path.read_bytes()
        for path in sorted(root.rglob("*"))
        if path.is_file()
    }


def config_object(text: str, global_name: str = "CONFIG") -> dict[str, str]:
    """Decode the JSON object assigned to ``window.<global_name>`` in text."""
    prefix = f"window.{global_name} = "
    start = text.index(prefix) + len(prefix)
    obj, _ = json.JSONDecoder().raw_decode(text[start:])
    return obj
