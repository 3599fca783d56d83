"""Code block rendering for documentation pages.

Pure HTML producer, no widget class. A renderer shows escaped source
until its highlight settles, then the highlighted markup. Nothing else.

// [LAW:dataflow-not-control-flow] render() always returns markup; the cache
//   state decides which markup, not whether to render.
// [LAW:one-source-of-truth] _LANG_RE is the sole language-marker parser.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from urllib.parse import quote, urlencode

from docs_repl.core.memo_cache import CacheRead
from docs_repl.highlight.service import HighlightService

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "text"
DEFAULT_REPL_LANGUAGES = frozenset({"js", "jsx"})
DEFAULT_REPL_URL = "/repl"

_LANG_RE = re.compile(r"(?:^|\s)(?:lang|language)-([A-Za-z]+)")


@dataclass(frozen=True)
class CodeElement:
    """A parsed element: tag, class attribute, children (text or elements)."""

    tag: str
    class_name: str = ""
    children: tuple = ()


def extract_language(class_name: str | None) -> str:
    """Language from a `lang-<id>` / `language-<id>` class; DEFAULT_LANGUAGE if absent."""
    match = _LANG_RE.search(class_name or "")
    if match is None:
        logger.debug("no language marker in class %r, using %s", class_name, DEFAULT_LANGUAGE)
        return DEFAULT_LANGUAGE
    return match.group(1).lower()


def extract_code(element: CodeElement) -> str:
    first = element.children[0] if element.children else ""
    if isinstance(first, CodeElement):
        first = extract_code(first)
    return str(first or "").strip()


def escape_code(code: str) -> str:
    return code.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def _escape_attr(value: str) -> str:
    return escape_code(value).replace('"', "&quot;")


def repl_link_href(code: str, repl_url: str = DEFAULT_REPL_URL) -> str:
    return f"{repl_url}?{urlencode({'code': code}, quote_via=quote)}"


def wants_repl_link(
    code: str,
    lang: str,
    repl: bool | str = True,
    repl_languages: Iterable[str] = DEFAULT_REPL_LANGUAGES,
) -> bool:
    opted_out = repl is False or repl == "false"
    return lang in set(repl_languages) and len(code.split("\n")) > 2 and not opted_out


class CodeBlockRenderer:
    """One code block bound to one HighlightService lookup.

    on_change(renderer) fires once, when a pending highlight settles.
    """

    def __init__(
        self,
        service: HighlightService,
        code: str,
        lang: str,
        *,
        repl: bool | str = True,
        css_class: str = "",
        repl_url: str = DEFAULT_REPL_URL,
        repl_languages: Iterable[str] = DEFAULT_REPL_LANGUAGES,
        on_change: Callable[["CodeBlockRenderer"], None] | None = None,
    ) -> None:
        self.code = code
        self.lang = lang
        self.css_class = css_class
        self.repl_url = repl_url
        self.show_repl_link = wants_repl_link(code, lang, repl, repl_languages)
        self._on_change = on_change
        self._read = service.lookup(code, lang)
        self._detach: Callable[[], None] | None = None
        if self._read.is_pending:
            self._detach = service.observe(code, lang, self._settled)
            # Settled between lookup() and observe().
            latest = service.lookup(code, lang)
            if not latest.is_pending:
                self._read = latest

    @property
    def highlighted(self) -> bool:
        return self._read.is_resolved

    @property
    def pending(self) -> bool:
        return self._read.is_pending

    def body_markup(self) -> str:
        if self._read.is_resolved and self._read.value:
            return str(self._read.value)
        return escape_code(self.code)

    def render(self) -> str:
        container_class = " ".join(c for c in ("highlight-container", self.css_class) if c)
        parts = [
            f'<div class="{_escape_attr(container_class)}">',
            '<pre class="highlight">',
            f'<code class="language-{_escape_attr(self.lang)}">{self.body_markup()}</code>',
            "</pre>",
        ]
        if self.show_repl_link:
            href = _escape_attr(repl_link_href(self.code, self.repl_url))
            parts.append(f'<a class="repl-link" href="{href}">Run in REPL</a>')
        parts.append("</div>")
        return "".join(parts)

    def dispose(self) -> None:
        """Stop listening; the in-flight highlight still completes and is cached."""
        if self._detach is not None:
            self._detach()
            self._detach = None
        self._on_change = None

    def _settled(self, read: CacheRead) -> None:
        self._read = read
        self._detach = None
        if self._on_change is not None:
            self._on_change(self)


def render_element(
    service: HighlightService,
    element: CodeElement,
    **options,
) -> CodeBlockRenderer | str:
    """Renderer for a `code` element; escaped <pre> markup for anything else."""
    if element.tag != "code":
        return f"<pre>{escape_code(extract_code(element))}</pre>"
    return CodeBlockRenderer(
        service,
        extract_code(element),
        extract_language(element.class_name),
        **options,
    )
