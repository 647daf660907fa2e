"""Markdown → styled HTML for the memo detail view.

Every element the detail view shows gets its style classes (light and dark
variants) attached here, so the page only needs the stylesheet. Raw HTML in
memo content is escaped rather than passed through.
"""

from __future__ import annotations

import re
import xml.etree.ElementTree as etree

import markdown
from markdown.extensions import Extension
from markdown.postprocessors import Postprocessor
from markdown.treeprocessors import Treeprocessor

CONTAINER_CLASS = "markdown-content text-gray-700 dark:text-gray-300 leading-relaxed"

STYLES: dict[str, str] = {
    "p": "mb-4 last:mb-0 text-gray-700 dark:text-gray-300",
    "h1": (
        "text-3xl font-bold mb-4 mt-8 first:mt-0 text-gray-900 dark:text-white "
        "border-b border-gray-200 dark:border-gray-700 pb-2"
    ),
    "h2": "text-2xl font-bold mb-3 mt-6 first:mt-0 text-gray-900 dark:text-white",
    "h3": "text-xl font-semibold mb-2 mt-5 first:mt-0 text-gray-900 dark:text-white",
    "h4": "text-lg font-semibold mb-2 mt-4 first:mt-0 text-gray-900 dark:text-white",
    "ul": "list-disc mb-4 ml-6 space-y-2 text-gray-700 dark:text-gray-300",
    "ol": "list-decimal mb-4 ml-6 space-y-2 text-gray-700 dark:text-gray-300",
    "li": "text-gray-700 dark:text-gray-300",
    "pre": "mb-4",
    "blockquote": (
        "border-l-4 border-blue-500 dark:border-blue-400 bg-blue-50 dark:bg-blue-900/30 "
        "pl-4 py-2 italic my-4 text-gray-700 dark:text-gray-300 rounded-r"
    ),
    "a": (
        "text-blue-600 dark:text-blue-400 hover:text-blue-800 dark:hover:text-blue-300 "
        "underline font-medium"
    ),
    "strong": "font-semibold text-gray-900 dark:text-white",
    "em": "italic text-gray-700 dark:text-gray-300",
    "hr": "my-6 border-gray-300 dark:border-gray-600",
    "table": "min-w-full border-collapse border border-gray-300 dark:border-gray-600",
    "thead": "bg-gray-100 dark:bg-gray-700",
    "tr": "border-b border-gray-200 dark:border-gray-700",
    "th": (
        "border border-gray-300 dark:border-gray-600 px-4 py-2 text-left font-semibold "
        "text-gray-900 dark:text-white"
    ),
    "td": "border border-gray-300 dark:border-gray-600 px-4 py-2 text-gray-700 dark:text-gray-300",
}

INLINE_CODE_CLASS = (
    "bg-gray-100 dark:bg-gray-700 text-gray-800 dark:text-gray-200 px-1.5 py-0.5 rounded "
    "text-sm font-mono"
)
BLOCK_CODE_CLASS = (
    "block bg-gray-100 dark:bg-gray-700 text-gray-800 dark:text-gray-200 p-4 rounded-lg "
    "overflow-x-auto mb-4 border border-gray-200 dark:border-gray-600 font-mono text-sm"
)
TABLE_WRAPPER_CLASS = "overflow-x-auto my-4"

# Fenced blocks come back from the HTML stash as plain <pre><code ...>.
_FENCED_CODE_RE = re.compile(r'<pre><code(?: class="([^"]*)")?>')


def _add_class(el: etree.Element, classes: str) -> None:
    existing = el.get("class")
    el.set("class", f"{classes} {existing}" if existing else classes)


class _StyleTreeprocessor(Treeprocessor):
    def run(self, root: etree.Element) -> None:
        parents = {child: parent for parent in root.iter() for child in parent}

        for el in list(root.iter()):
            if el.tag == "code":
                block = parents.get(el) is not None and parents[el].tag == "pre"
                _add_class(el, BLOCK_CODE_CLASS if block else INLINE_CODE_CLASS)
                continue
            style = STYLES.get(el.tag)
            if style:
                _add_class(el, style)
            if el.tag == "a":
                el.set("target", "_blank")
                el.set("rel", "noopener noreferrer")

        for table in list(root.iter("table")):
            parent = parents[table]
            position = list(parent).index(table)
            wrapper = etree.Element("div", {"class": TABLE_WRAPPER_CLASS})
            wrapper.tail, table.tail = table.tail, None
            parent.remove(table)
            wrapper.append(table)
            parent.insert(position, wrapper)


class _FencedCodePostprocessor(Postprocessor):
    def run(self, text: str) -> str:
        def repl(m: re.Match) -> str:
            lang = f" {m.group(1)}" if m.group(1) else ""
            return f'<pre class="{STYLES["pre"]}"><code class="{BLOCK_CODE_CLASS}{lang}">'

        return _FENCED_CODE_RE.sub(repl, text)


class MemoStyleExtension(Extension):
    """Style classes for memo content; raw HTML disabled."""

    def extendMarkdown(self, md: markdown.Markdown) -> None:
        md.preprocessors.deregister("html_block")
        md.inlinePatterns.deregister("html")
        md.treeprocessors.register(_StyleTreeprocessor(md), "memo_styles", 5)
        # Below the raw-html postprocessor (30) so stashed code blocks are restored first.
        md.postprocessors.register(_FencedCodePostprocessor(md), "memo_fenced_code", 5)


def render(markdown_text: str) -> str:
    """Render memo markdown into styled HTML. Pure and deterministic."""
    md = markdown.Markdown(
        extensions=["fenced_code", "tables", "sane_lists", MemoStyleExtension()],
        output_format="html",
    )
    body = md.convert(markdown_text or "")
    return f'<div class="{CONTAINER_CLASS}">{body}</div>'
