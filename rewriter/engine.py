"""
Selective text-node rewriting of an HTML document.

Parse leniently, rewrite the text nodes under <body>, rewrite the <title>
once, serialize. Attribute values and non-text nodes are never touched.
"""

import warnings
from typing import Optional

from bs4 import BeautifulSoup, MarkupResemblesLocatorWarning, NavigableString, XMLParsedAsHTMLWarning
from bs4.builder import ParserRejectedMarkup
from bs4.element import Doctype, PreformattedString, Tag
from lxml import etree

from .rules import DEFAULT_RULES, RewriteRules, replace_text


PARSER = "lxml"
FALLBACK_PARSER = "html.parser"


class RewriteResult:
    def __init__(self, html: str, title: str = "", replacements: int = 0):
        """Serialized document, its (rewritten) title and how many text nodes changed."""
        self.html = html
        self.title = title
        self.replacements = replacements

    def __repr__(self):
        return f"RewriteResult(title={self.title!r}, replacements={self.replacements}, size={len(self.html)})"


def parse_document(html_text: str) -> BeautifulSoup:
    """Parse markup into a tree; never raises for string input."""
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", MarkupResemblesLocatorWarning)
        warnings.simplefilter("ignore", XMLParsedAsHTMLWarning)
        try:
            # class/rel stay plain strings so attribute values serialize verbatim
            soup = BeautifulSoup(html_text, PARSER, multi_valued_attributes=None)
        except (ParserRejectedMarkup, ValueError, etree.LxmlError):
            soup = BeautifulSoup(html_text, FALLBACK_PARSER, multi_valued_attributes=None)
    _ensure_skeleton(soup)
    return soup


def _ensure_skeleton(soup: BeautifulSoup):
    """Give documents with neither <html> nor <body> (e.g. empty input) a minimal skeleton."""
    if soup.find("html") is not None or soup.find("body") is not None:
        return
    html = soup.new_tag("html")
    head = soup.new_tag("head")
    body = soup.new_tag("body")
    html.append(head)
    html.append(body)
    for node in list(soup.contents):
        if isinstance(node, Doctype):
            continue
        body.append(node.extract())
    soup.append(html)


def is_text_node(node) -> bool:
    """Plain character data: not a comment, doctype, CDATA, declaration or PI."""
    return isinstance(node, NavigableString) and not isinstance(node, PreformattedString)


def _inside(node, ancestor: Optional[Tag]) -> bool:
    if ancestor is None:
        return False
    return any(parent is ancestor for parent in node.parents)


def rewrite_text_nodes(soup: BeautifulSoup, rules: RewriteRules = DEFAULT_RULES) -> int:
    """Rewrite every eligible text node under <body>. Returns the number of nodes replaced."""
    body = soup.body
    if body is None:
        return 0

    # the title is rewritten separately, even when lenient parsing put it in <body>
    title = soup.title
    replaced = 0
    for node in list(body.descendants):
        if not is_text_node(node) or _inside(node, title):
            continue
        value = str(node)
        new_value = replace_text(value, rules)
        if new_value != value:
            node.replace_with(type(node)(new_value))
            replaced += 1
    return replaced


def rewrite_title(soup: BeautifulSoup, rules: RewriteRules = DEFAULT_RULES) -> str:
    """Rewrite the first <title>; the exemption phrase does not apply here."""
    title = soup.title
    if title is None:
        return ""
    text = title.get_text()
    new_text = rules.substitute(text)
    if new_text != text:
        title.string = new_text
    return new_text


def rewrite(html_text: str, rules: RewriteRules = DEFAULT_RULES) -> RewriteResult:
    """Rewrite brand tokens in the text of an HTML document.

    Args:
        html_text: The document, possibly malformed or empty.
        rules: Substitution pairs and exemption phrase.

    Returns:
        RewriteResult with the reserialized document and the title text
        ("" when the document has no <title>).
    """
    soup = parse_document(html_text or "")
    replaced = rewrite_text_nodes(soup, rules)
    title = rewrite_title(soup, rules)
    return RewriteResult(html=str(soup), title=title, replacements=replaced)
