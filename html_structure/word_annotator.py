"""
Word annotation: StructureTree → depth-tagged WordNode sequence.

Pipeline position: Stage 2 (StructureTree → list[WordNode]).

Known limitation (kept on purpose): a node's own text is emitted before its
children, so for markup like <p><b>bold</b> trailing text</p> the words
"trailing text" come out before "bold". Character offsets are approximate for
the same reason and because collapsed whitespace and elided tags are not
accounted for; treat them as ordering hints.
"""

import re
from collections import Counter

from .logger import get_module_logger
from .schemas import DepthDistributionStats, StructureTree, WordNode

logger = get_module_logger("word_annotator")

# Maximal runs of Unicode letters/digits (\w minus underscore)
WORD_PATTERN = re.compile(r'[^\W_]+')


def extract_words(text: str) -> list[tuple[str, int, int]]:
    """
    Tokenize text into (content, start, end) triples, offsets relative to `text`.

    extract_words("Hello world! Ça va?") ==
        [("Hello", 0, 5), ("world", 6, 11), ("Ça", 13, 15), ("va", 16, 18)]
    """
    return [(m.group(0), m.start(), m.end()) for m in WORD_PATTERN.finditer(text)]


def annotate_words_with_depth(tree: StructureTree) -> list[WordNode]:
    """
    Emit one WordNode per word of every node's direct text, in pre-order.

    word_index runs 0..N-1 without gaps. The global character offset advances
    by len(direct_text) + 1 after each text-bearing node.
    """
    words: list[WordNode] = []
    global_char_offset = 0

    # The arena is stored in pre-order, so a flat scan is the traversal
    for node in tree.walk():
        if not node.direct_text.strip():
            continue

        for content, start, end in extract_words(node.direct_text):
            words.append(WordNode(
                content=content,
                start_index=global_char_offset + start,
                end_index=global_char_offset + end,
                depth=node.depth,
                dom_path=node.dom_path,
                parent_tag=node.tag_name,
                parent_attributes=dict(node.attributes),
                word_index=len(words),
            ))

        global_char_offset += len(node.direct_text) + 1

    logger.debug(f"Annotated {len(words)} words")
    return words


def get_words_at_depth(words: list[WordNode], depth: int) -> list[WordNode]:
    return [w for w in words if w.depth == depth]


def get_words_in_depth_range(words: list[WordNode], min_depth: int, max_depth: int) -> list[WordNode]:
    """Words whose depth lies in [min_depth, max_depth]."""
    return [w for w in words if min_depth <= w.depth <= max_depth]


def group_words_by_depth(words: list[WordNode]) -> dict[int, list[WordNode]]:
    groups: dict[int, list[WordNode]] = {}
    for word in words:
        groups.setdefault(word.depth, []).append(word)
    return groups


def get_depth_distribution_stats(words: list[WordNode]) -> DepthDistributionStats:
    """Most/least common depth (first seen wins ties) and the depth range."""
    if not words:
        return DepthDistributionStats()

    histogram = Counter(w.depth for w in words)

    most_common, max_count = 0, 0
    least_common, min_count = 0, float("inf")
    for depth, count in histogram.items():
        if count > max_count:
            most_common, max_count = depth, count
        if count < min_count:
            least_common, min_count = depth, count

    return DepthDistributionStats(
        total_words=len(words),
        unique_depths=len(histogram),
        most_common_depth=most_common,
        least_common_depth=least_common,
        depth_range=max(histogram) - min(histogram),
    )


def calculate_depth_gradient(words: list[WordNode]) -> float:
    """Mean absolute depth change between consecutive words."""
    if len(words) < 2:
        return 0.0
    total = sum(abs(words[i].depth - words[i - 1].depth) for i in range(1, len(words)))
    return total / (len(words) - 1)
