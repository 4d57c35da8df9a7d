"""
HTML page to markdown converter.

Turns a full documentation web page into a markdown document:

1. Locate the main content region with an ordered list of CSS selectors
   (first match wins, ``<body>`` when none match).
2. Drop non-content regions (navigation, scripts, styles, feedback
   widgets) listed in a selector denylist.
3. Convert the remaining markup with markdownify: ATX headings, a
   configurable bullet, and fenced code blocks whose language comes from a
   ``language-xxx`` class.
4. Collapse blank-line runs and trim.

Parsing and selector matching use lxml; markdownify does the rendering.
"""

import html
import logging
import re

from lxml import html as lxml_html
from lxml.cssselect import CSSSelector
from markdownify import ATX, markdownify

from docs_mirror.config_schema import HtmlConversionConfig

from .common import collapse_blank_lines

logger = logging.getLogger(__name__)

_PARSER = lxml_html.HTMLParser(encoding="utf-8")

# Matches "language-python", "lang-js", "language-c++"
_LANG_CLASS_RE = re.compile(r"^(?:language|lang)-([\w+#.-]+)$")


def extract_main_content(
    document: str,
    content_selectors: list[str],
    remove_selectors: list[str],
) -> str:
    """Return the inner HTML of the page's main content region.

    Args:
        document: Full HTML page.
        content_selectors: Candidate containers, tried in order.
        remove_selectors: Regions removed from the chosen container.

    Returns:
        Inner HTML of the cleaned container.
    """
    tree = lxml_html.document_fromstring(
        document.encode("utf-8"), parser=_PARSER
    )

    container = None
    for selector in content_selectors:
        matches = CSSSelector(selector)(tree)
        if matches:
            container = matches[0]
            logger.debug("Main content matched selector %r", selector)
            break

    if container is None:
        body = tree.find("body")
        container = body if body is not None else tree
        logger.debug("No content selector matched, using whole document")

    for selector in remove_selectors:
        for element in CSSSelector(selector)(container):
            if element is container:
                continue
            element.drop_tree()

    inner = [html.escape(container.text or "")]
    inner.extend(
        lxml_html.tostring(child, encoding="unicode")
        for child in container
    )
    return "".join(inner)


def _code_language(element, default: str) -> str:
    """Find the fence language of a ``<pre>`` block.

    Looks at the classes of the nested ``<code>`` element first, then at
    the ``<pre>`` itself.
    """
    candidates = [element]
    code = element.find("code")
    if code is not None:
        candidates.insert(0, code)

    for node in candidates:
        for css_class in node.get("class") or []:
            match = _LANG_CLASS_RE.match(css_class)
            if match:
                return match.group(1)
    return default


def html_to_markdown(
    document: str, options: HtmlConversionConfig | None = None
) -> str:
    """Convert a full HTML page to a markdown body.

    Args:
        document: Full HTML page.
        options: Extraction and rendering rules.

    Returns:
        Trimmed markdown without a metadata header.
    """
    options = options or HtmlConversionConfig()
    content = extract_main_content(
        document, options.content_selectors, options.remove_selectors
    )
    default_lang = options.default_code_language

    markdown = markdownify(
        content,
        heading_style=ATX,
        bullets=options.bullet,
        code_language=default_lang,
        code_language_callback=lambda el: _code_language(
            el, default_lang
        ),
    )
    return collapse_blank_lines(markdown).strip()
