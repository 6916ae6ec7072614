"""
Document-level statistics.

Pipeline position: Stage 7 (StructureTree + list[WordNode] → DocumentStats).
"""

from collections import Counter
from collections.abc import Sequence

from .schemas import SEMANTIC_TAGS, DocumentStats, StructureTree, TagCount, WordNode

TOP_TAG_COUNT = 10


def calculate_document_stats(tree: StructureTree, words: Sequence[WordNode]) -> DocumentStats:
    """
    Tag histogram, depth, node and word totals in one pass over the tree.

    top_tags holds the TOP_TAG_COUNT most frequent tags; equal counts keep
    document order.
    """
    tag_counts: Counter = Counter()
    max_depth = 0

    for node in tree.walk():
        tag_counts[node.tag_name] += 1
        max_depth = max(max_depth, node.depth)

    return DocumentStats(
        total_words=len(words),
        total_chars=sum(len(w.content) for w in words),
        total_nodes=len(tree),
        max_tree_depth=max_depth,
        unique_tags=len(tag_counts),
        top_tags=[TagCount(tag=tag, count=count) for tag, count in tag_counts.most_common(TOP_TAG_COUNT)],
        has_semantic_html=any(tag in SEMANTIC_TAGS for tag in tag_counts),
    )
