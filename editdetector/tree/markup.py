# editdetector/tree/markup.py
from __future__ import annotations

from html.parser import HTMLParser
from typing import List, Optional

from .model import ElementNode, TextLeaf

# Elements that never hold children; their end tag is optional or absent.
VOID_TAGS = {"br", "img", "hr", "input", "wbr", "meta", "link", "source"}


class _FragmentBuilder(HTMLParser):
    """
    Builds an ElementNode tree from an HTML fragment.
    Maintains an open-element stack; text data becomes TextLeaf children
    of the innermost open element.
    """

    def __init__(self, root: ElementNode, keep_whitespace: bool):
        super().__init__(convert_charrefs=True)
        self.stack: List[ElementNode] = [root]
        self.keep_whitespace = keep_whitespace

    def handle_starttag(self, tag, attrs):
        classes = dict(attrs).get("class") or ""
        element = ElementNode(tag, class_name=classes)
        self.stack[-1].append(element)
        if tag.lower() not in VOID_TAGS:
            self.stack.append(element)

    def handle_startendtag(self, tag, attrs):
        classes = dict(attrs).get("class") or ""
        self.stack[-1].append(ElementNode(tag, class_name=classes))

    def handle_endtag(self, tag):
        tag = tag.lower()
        # Pop to the matching open element; ignore stray end tags.
        for depth in range(len(self.stack) - 1, 0, -1):
            if self.stack[depth].tag == tag:
                del self.stack[depth:]
                return

    def handle_data(self, data):
        if not self.keep_whitespace and not data.strip():
            return
        current = self.stack[-1]
        # Adjacent data chunks merge into one leaf, as a DOM parser would.
        if current.children and isinstance(current.children[-1], TextLeaf):
            current.children[-1].text += data
        else:
            current.append(TextLeaf(data))


def parse_fragment(html: str, root_tag: str = "div", root_class: str = "",
                   keep_whitespace: bool = False) -> ElementNode:
    """
    Parse an HTML fragment (e.g. an editable root's innerHTML) into a tree.

    Args:
        html:             Markup to parse
        root_tag:         Tag of the synthetic container element
        root_class:       Class attribute of the container
        keep_whitespace:  Keep whitespace-only text runs as leaves

    Returns:
        ElementNode container whose children are the parsed fragment
    """
    if html is None:
        raise ValueError("html must be a string")
    root = ElementNode(root_tag, class_name=root_class)
    builder = _FragmentBuilder(root, keep_whitespace)
    builder.feed(html)
    builder.close()
    return root


def find_leaf(root: ElementNode, text: str) -> Optional[TextLeaf]:
    """First text leaf under root whose text equals `text`."""
    for leaf in root.iter_text_leaves():
        if leaf.text == text:
            return leaf
    return None
