"""HTML and configuration rendering for the site assembler.

Two delivery strategies share these helpers:

- inline: the configuration object is rendered into a ``<script>`` block
  and injected into the HTML entry point (:func:`inject_config`).
- external: HTML is only minified (:func:`minify_html`) and the object is
  rendered into a standalone script file (:func:`render_config_file`).

Values are encoded with Jinja's ``tojson`` filter, which emits JSON with
``<``, ``>``, ``&`` and ``'`` escaped, so a secret can never terminate the
surrounding ``<script>`` element.
"""

from __future__ import annotations

import re
from enum import Enum
from functools import lru_cache

from jinja2 import DictLoader, Environment, select_autoescape

CONFIG_MARKER = "<!-- SITE_CONFIG -->"

CONFIG_SCRIPT_TEMPLATE = """<script>
    window.{{ name }} = {{ config|tojson }};
</script>"""

CONFIG_FILE_TEMPLATE = """// Generated at build time. Do not edit.
window.{{ name }} = {{ config|tojson }};
"""

_env = Environment(
    loader=DictLoader({
        "config-script.html": CONFIG_SCRIPT_TEMPLATE,
        "config.js": CONFIG_FILE_TEMPLATE,
    }),
    autoescape=select_autoescape(["html", "xml"]),
    keep_trailing_newline=True,
)

_MARKER_RE = re.compile(r"<!--\s*SITE_CONFIG\s*-->")
_HEAD_CLOSE_RE = re.compile(r"</head\s*>", re.IGNORECASE)
_DOCTYPE_RE = re.compile(r"^\s*<!DOCTYPE[^>]*>", re.IGNORECASE)

_COMMENT = r"<!--.*?-->"
_RAW_BLOCK = r"<(?P<tag>pre|textarea|script|style)\b.*?</(?P=tag)\s*>"
_MINIFY_SCAN_RE = re.compile(
    rf"(?P<comment>{_COMMENT})|(?P<raw>{_RAW_BLOCK})",
    re.IGNORECASE | re.DOTALL,
)
_CONDITIONAL_PREFIXES = ("<!--[if", "<!--<![endif")
_STASH_RE = re.compile(r"<\x00(\d+)\x00>")
_TAG_NAME = r"!?[A-Za-z][\w:-]*|\x00\d+\x00"
_INTER_TAG_WS_RE = re.compile(
    rf"(?P<tag></?(?P<left>{_TAG_NAME})[^<>]*>)\s+(?=</?(?P<right>{_TAG_NAME}))"
)

# Whitespace next to these renders as nothing, so it can go entirely.
_BLOCK_TAGS = frozenset({
    "!--", "!doctype", "address", "article", "aside", "base", "blockquote",
    "body", "br", "caption", "col", "colgroup", "dd", "details", "dialog",
    "div", "dl", "dt", "fieldset", "figcaption", "figure", "footer", "form",
    "h1", "h2", "h3", "h4", "h5", "h6", "head", "header", "hr", "html", "li",
    "link", "main", "meta", "nav", "noscript", "ol", "optgroup", "option",
    "p", "pre", "script", "section", "style", "summary", "table", "tbody",
    "td", "template", "tfoot", "th", "thead", "title", "tr", "ul",
})


class InjectionPoint(str, Enum):
    """Where the inline configuration script ended up."""

    MARKER = "marker"
    PLACEHOLDER = "placeholder"
    HEAD = "head"
    DOCUMENT_START = "document-start"

    def __str__(self) -> str:
        return self.value

    @property
    def is_fallback(self) -> bool:
        return self in {InjectionPoint.HEAD, InjectionPoint.DOCUMENT_START}


@lru_cache(maxsize=8)
def placeholder_pattern(config_name: str) -> re.Pattern[str]:
    """Match ``<script src="config.js"></script>`` style references.

    Case-insensitive; tolerates either quote style, extra attributes, a
    relative or root path prefix (``./``, ``../js/``, ``/js/``) and a
    cache-busting query or fragment (``config.js?v=2``). Absolute URLs with
    a scheme are not matched.
    """
    name = re.escape(config_name)
    return re.compile(
        r"<script\b[^>]*?\bsrc\s*=\s*([\"'])"
        rf"(?:(?:\.{{1,2}}|[\w-]+)?/)*{name}(?:[?#][^\"']*)?"
        r"\1[^>]*>\s*</script\s*>",
        re.IGNORECASE,
    )


def render_config_script(name: str, config: dict[str, str]) -> str:
    return _env.get_template("config-script.html").render(name=name, config=config)


def render_config_file(name: str, config: dict[str, str]) -> str:
    return _env.get_template("config.js").render(name=name, config=config)


def references_config(html: str, config_name: str) -> bool:
    return placeholder_pattern(config_name).search(html) is not None


def inject_config(html: str, script: str, *, config_name: str) -> tuple[str, InjectionPoint]:
    """Place ``script`` at the first available injection point.

    Order: the ``<!-- SITE_CONFIG -->`` marker, the first script tag
    referencing ``config_name``, just before ``</head>``, and finally the
    start of the document (after any doctype). Every remaining reference to
    ``config_name`` is removed afterwards.
    """
    placeholder = placeholder_pattern(config_name)

    # Callable replacements: the script holds backslash escapes.
    if _MARKER_RE.search(html):
        html = _MARKER_RE.sub(lambda _m: script, html, count=1)
        point = InjectionPoint.MARKER
    elif placeholder.search(html):
        html = placeholder.sub(lambda _m: script, html, count=1)
        point = InjectionPoint.PLACEHOLDER
    elif _HEAD_CLOSE_RE.search(html):
        html = _HEAD_CLOSE_RE.sub(lambda m: f"{script}\n{m.group(0)}", html, count=1)
        point = InjectionPoint.HEAD
    else:
        doctype = _DOCTYPE_RE.match(html)
        if doctype:
            html = f"{html[:doctype.end()]}\n{script}{html[doctype.end():]}"
        else:
            html = f"{script}\n{html}"
        point = InjectionPoint.DOCUMENT_START

    html = _MARKER_RE.sub("", html)
    html = placeholder.sub("", html)
    return html, point


def minify_html(html: str) -> str:
    """Strip comments and collapse whitespace between tags.

    Bodies of ``pre``, ``textarea``, ``script`` and ``style`` elements and
    IE conditional comments are left untouched. Whitespace between two tags
    is dropped next to a block-level element and reduced to one space
    between inline ones, so adjacent words stay apart.
    """
    stash: list[str] = []
    stash_tags: list[str] = []

    def _keep(text: str, tag: str) -> str:
        stash.append(text)
        stash_tags.append(tag)
        return f"<\x00{len(stash) - 1}\x00>"

    def _scan(match: re.Match[str]) -> str:
        text = match.group(0)
        if match.group("comment") is not None:
            if not text.startswith(_CONDITIONAL_PREFIXES):
                return ""
            return _keep(text, "!--")
        return _keep(text, match.group("tag").lower())

    def _is_block(name: str) -> bool:
        if name.startswith("\x00"):
            name = stash_tags[int(name.strip("\x00"))]
        return name.lower() in _BLOCK_TAGS

    def _collapse(match: re.Match[str]) -> str:
        if _is_block(match.group("left")) or _is_block(match.group("right")):
            return match.group("tag")
        return f"{match.group('tag')} "

    text = _MINIFY_SCAN_RE.sub(_scan, html)
    text = _INTER_TAG_WS_RE.sub(_collapse, text)
    text = _STASH_RE.sub(lambda m: stash[int(m.group(1))], text)
    return text.strip()


__all__ = [
    "CONFIG_MARKER",
    "InjectionPoint",
    "inject_config",
    "minify_html",
    "placeholder_pattern",
    "references_config",
    "render_config_file",
    "render_config_script",
]
