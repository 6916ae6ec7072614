"""
Structure tree builder.

Turns a BeautifulSoup element into a depth-annotated, filtered StructureTree:
- Comments, doctypes, processing instructions and CDATA are dropped
- Text nodes are not nodes of their own; they become their parent's direct_text
- Ignored tags (script, style, ...) are dropped together with their subtree

Pipeline position: Stage 1 (DOM → StructureTree).
Input:  bs4 Tag (or a BeautifulSoup document, resolved to its root element)
Output: StructureTree, an arena of StructureNodes in pre-order
"""

import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Optional

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PreformattedString

from .exceptions import StructuralParseError
from .logger import get_module_logger
from .preprocessor import document_element
from .schemas import (
    DEFAULT_IGNORED_TAGS,
    NodePredicate,
    StructureNode,
    StructureTree,
    TreeStats,
)

logger = get_module_logger("tree_builder")

_WHITESPACE = re.compile(r'\s+')


@dataclass
class _DraftNode:
    """Mutable scratch record; frozen into a StructureNode once full_text is known."""
    index: int
    tag_name: str
    depth: int
    attributes: dict
    direct_text: str
    parent_index: Optional[int]
    dom_path: str
    node_id: str
    children: list = field(default_factory=list)


def build_structure_tree(
    root,
    ignored_tags: Iterable[str] = DEFAULT_IGNORED_TAGS
) -> StructureTree:
    """
    Build the structural tree rooted at `root`.

    Args:
        root: bs4 Tag, or a BeautifulSoup document
        ignored_tags: Tag names elided together with their subtree

    Returns:
        StructureTree whose nodes are stored in pre-order (root at index 0)

    Raises:
        StructuralParseError: root is missing, is not an element, or is itself ignored
    """
    element = _resolve_root(root)
    ignored = frozenset(tag.lower() for tag in ignored_tags)

    if element.name.lower() in ignored:
        raise StructuralParseError(
            f"Root element <{element.name}> is in the ignored tag list",
            details={"ignored_tags": sorted(ignored)}
        )

    # --- Pre-order pass: assign arena slots, depths, paths and direct text ---
    drafts: list[_DraftNode] = []
    stack = [(element, 0, None, "")]

    while stack:
        elem, depth, parent_index, path_prefix = stack.pop()
        tag_name = elem.name.lower()
        attributes = collect_attributes(elem)
        dom_path = build_dom_path(path_prefix, tag_name, attributes)

        draft = _DraftNode(
            index=len(drafts),
            tag_name=tag_name,
            depth=depth,
            attributes=attributes,
            direct_text=extract_direct_text(elem),
            parent_index=parent_index,
            dom_path=dom_path,
            node_id=generate_node_id(dom_path, depth),
        )
        drafts.append(draft)
        if parent_index is not None:
            drafts[parent_index].children.append(draft.index)

        kept = [
            child for child in elem.children
            if isinstance(child, Tag) and child.name.lower() not in ignored
        ]
        # Reversed so the first child is popped (and numbered) first
        for child in reversed(kept):
            stack.append((child, depth + 1, draft.index, dom_path))

    # --- Bottom-up pass: reverse pre-order visits every child before its parent ---
    full_texts = [""] * len(drafts)
    for draft in reversed(drafts):
        parts = [draft.direct_text] + [full_texts[i] for i in draft.children]
        full_texts[draft.index] = clean_whitespace(" ".join(parts))

    nodes = tuple(
        StructureNode(
            node_index=draft.index,
            tag_name=draft.tag_name,
            depth=draft.depth,
            attributes=draft.attributes,
            direct_text=draft.direct_text,
            full_text=full_texts[draft.index],
            children=tuple(draft.children),
            parent_index=draft.parent_index,
            dom_path=draft.dom_path,
            node_id=draft.node_id,
        )
        for draft in drafts
    )

    logger.debug(f"Structure tree built: {len(nodes)} nodes from <{nodes[0].tag_name}>")
    return StructureTree(nodes=nodes)


def _resolve_root(root) -> Tag:
    if root is None:
        raise StructuralParseError("Root node is missing")

    if isinstance(root, BeautifulSoup):
        element = document_element(root)
        if element is None:
            raise StructuralParseError("Document has no root element")
        return element

    if not isinstance(root, Tag):
        raise StructuralParseError(
            f"Root node is not an element: {type(root).__name__}",
            details={"node_type": type(root).__name__}
        )
    return root


def is_text_node(node) -> bool:
    """Plain text only; comments, doctypes, PIs and CDATA are PreformattedStrings."""
    return isinstance(node, NavigableString) and not isinstance(node, PreformattedString)


def collect_attributes(element: Tag) -> dict[str, str]:
    """
    Copy element attributes as name → string.

    bs4 splits multi-valued attributes (class, rel, ...) into lists; they are
    space-joined back so the map matches the markup.
    """
    attributes = {}
    for name, value in element.attrs.items():
        if isinstance(value, (list, tuple)):
            value = " ".join(value)
        attributes[name] = "" if value is None else str(value)
    return attributes


def extract_direct_text(element: Tag) -> str:
    """Concatenate the element's immediate text children, whitespace-collapsed."""
    return clean_whitespace("".join(
        str(child) for child in element.children if is_text_node(child)
    ))


def clean_whitespace(text: str) -> str:
    """Collapse whitespace runs to a single space and trim."""
    return _WHITESPACE.sub(" ", text).strip()


def build_dom_path(prefix: str, tag_name: str, attributes: dict[str, str]) -> str:
    """
    Extend the parent's path with this element.

    build_dom_path("html > body", "div", {"class": "a b"}) == "html > body > div.a.b"
    """
    path = f"{prefix} > {tag_name}" if prefix else tag_name

    if attributes.get("id"):
        path += f"#{attributes['id']}"

    classes = attributes.get("class", "").split()
    if classes:
        path += "".join(f".{c}" for c in classes)

    return path


def simple_hash(text: str) -> int:
    """31-multiplier string hash wrapped to a signed 32-bit int, absolute value."""
    h = 0
    for ch in text:
        h = (h * 31 + ord(ch)) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return abs(h)


def generate_node_id(dom_path: str, depth: int) -> str:
    return f"node_{depth}_{simple_hash(dom_path)}"


# --- Tree helpers ---

def iter_subtree(tree: StructureTree, node: Optional[StructureNode] = None):
    """Pre-order iteration over `node`'s subtree (the whole tree by default)."""
    if node is None:
        yield from tree.walk()
        return
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(tree.node(i) for i in reversed(current.children))


def extract_text_nodes(tree: StructureTree) -> list[StructureNode]:
    """Nodes carrying direct text, in document order."""
    return [node for node in tree.walk() if node.direct_text.strip()]


def count_nodes(tree: StructureTree, node: Optional[StructureNode] = None) -> int:
    return sum(1 for _ in iter_subtree(tree, node))


def get_max_depth(tree: StructureTree, node: Optional[StructureNode] = None) -> int:
    return max(n.depth for n in iter_subtree(tree, node))


def find_nodes(tree: StructureTree, predicate: NodePredicate) -> list[StructureNode]:
    """
    All nodes matching a predicate, in pre-order.

    find_nodes(tree, lambda n: "container" in n.attributes.get("class", ""))
    """
    return [node for node in tree.walk() if predicate(node)]


def get_tree_stats(tree: StructureTree) -> TreeStats:
    total_nodes = 0
    max_depth = 0
    total_text_length = 0
    unique_tags = set()

    for node in tree.walk():
        total_nodes += 1
        unique_tags.add(node.tag_name)
        total_text_length += len(node.direct_text)
        max_depth = max(max_depth, node.depth)

    return TreeStats(
        total_nodes=total_nodes,
        max_depth=max_depth,
        total_text_length=total_text_length,
        unique_tags=frozenset(unique_tags),
    )
