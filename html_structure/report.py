"""
Rendering of an AnalysisResult for people (text) and for tools (JSON-ready dict).
"""

from typing import Any

from .block_scorer import generate_block_summary
from .schemas import AnalysisResult

HISTOGRAM_WIDTH = 40


def result_to_dict(result: AnalysisResult, include_words: bool = False) -> dict[str, Any]:
    """
    JSON-ready dump of a result.

    Word lists (the document's and each block's) are left out unless
    include_words is set; histogram keys become strings.
    """
    exclude = None
    if not include_words:
        exclude = {"all_words": True, "blocks": {"__all__": {"words"}}}
    return result.model_dump(mode="json", exclude=exclude)


def _histogram_lines(histogram: dict[int, int]) -> list[str]:
    if not histogram:
        return []
    peak = max(histogram.values())
    lines = []
    for depth in sorted(histogram):
        count = histogram[depth]
        bar = "#" * max(1, round(count / peak * HISTOGRAM_WIDTH))
        lines.append(f"  depth {depth:>3} | {bar} {count}")
    return lines


def format_text_report(result: AnalysisResult, top: int = 5) -> str:
    """Multi-line plain-text report: document stats, depth profile, best `top` blocks."""
    lines = []

    stats = result.document_stats
    if stats is not None:
        lines.append("=== Document ===")
        lines.append(
            f"Words: {stats.total_words}  Chars: {stats.total_chars}  "
            f"Nodes: {stats.total_nodes}  Max depth: {stats.max_tree_depth}  "
            f"Unique tags: {stats.unique_tags}  "
            f"Semantic HTML: {'yes' if stats.has_semantic_html else 'no'}"
        )
        if stats.top_tags:
            lines.append("Top tags: " + ", ".join(f"{t.tag}({t.count})" for t in stats.top_tags))
        lines.append("")

    profile = result.depth_profile
    if profile is not None:
        lines.append("=== Depth profile ===")
        lines.append(
            f"Range {profile.min_depth}-{profile.max_depth}, "
            f"average {profile.average_depth:.2f}, median {profile.median_depth:.1f}, "
            f"std {profile.std_deviation:.2f}"
        )
        lines.append(f"Transitions: {len(profile.transitions)}  Plateaus: {len(profile.plateaus)}")
        lines.extend(_histogram_lines(profile.histogram))
        lines.append("")

    shown = result.blocks[:top]
    lines.append(f"=== Blocks ({len(shown)} of {len(result.blocks)}) ===")
    if not shown:
        lines.append("No interest blocks above threshold")

    for rank, block in enumerate(shown, 1):
        lines.append(
            f"#{rank} {block.id}  score {block.score:.2f}  "
            f"words {block.start_word_index}-{block.end_word_index}  "
            f"tags {', '.join(block.dominant_tags)}"
        )
        lines.append(f"   {generate_block_summary(block)}")
        lines.append("   " + "; ".join(reason.explanation for reason in block.detection_reasons))
        lines.append(f'   "{block.text_preview}"')

    lines.append("")
    lines.append(f"Processed in {result.processing_time_ms:.1f}ms")
    return "\n".join(lines)
