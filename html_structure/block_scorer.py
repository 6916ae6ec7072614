"""
Block scoring: BlockCandidate → InterestBlock, plus composite quality scores.

Pipeline position: Stage 5 (list[BlockCandidate] → list[InterestBlock]).

The composite score is a weighted sum of five normalized sub-scores
(SCORING_WEIGHTS): text density, depth stability, semantic presence, content
length and tag diversity. The result is always clamped to [0, 1].
"""

from collections import Counter
from collections.abc import Iterable, Sequence
from typing import Literal, Optional

from .depth_profiler import mean, variance
from .logger import get_module_logger
from .schemas import (
    LENGTH_THRESHOLDS,
    SCORING_WEIGHTS,
    SEMANTIC_TAGS,
    AggregateStats,
    BlockCandidate,
    BlockStats,
    CandidateSource,
    DetectionAlgorithm,
    DetectionReason,
    InterestBlock,
    WordNode,
)

logger = get_module_logger("block_scorer")

PREVIEW_WORDS = 20
DOMINANT_TAG_COUNT = 3

Quality = Literal["low", "medium", "high", "excellent"]
LengthClass = Literal["very_short", "short", "medium", "long", "very_long"]

_EXPLANATIONS = {
    DetectionAlgorithm.TEXT_DENSITY: "High text density",
    DetectionAlgorithm.DEPTH_STABILITY: "Stable depth",
    DetectionAlgorithm.CLUSTERING: "Dense cluster detected",
    DetectionAlgorithm.DEPTH_TRANSITION: "Segment between depth transitions",
}


def explain(algorithm: DetectionAlgorithm, score: float) -> str:
    """explain(DetectionAlgorithm.TEXT_DENSITY, 0.853) == "High text density (score: 85%)" """
    label = _EXPLANATIONS.get(algorithm, "Detected")
    return f"{label} (score: {round(score * 100)}%)"


def is_semantic_tag(tag: str) -> bool:
    return tag.lower() in SEMANTIC_TAGS


def _reason(source: CandidateSource) -> DetectionReason:
    return DetectionReason(
        algorithm=source.algorithm,
        score=source.score,
        explanation=explain(source.algorithm, source.score),
        detail=source.detail,
    )


def candidate_to_interest_block(
    candidate: BlockCandidate,
    words: Sequence[WordNode],
    block_id: str
) -> InterestBlock:
    """
    Materialize a candidate span into a fully described InterestBlock.

    The block keeps references to the words of `words[start:end + 1]` and the
    candidate's score; call score_block() for the composite score.

    Raises:
        ValueError: the span is empty or falls outside `words`
    """
    block_words = list(words[candidate.start_word_index:candidate.end_word_index + 1])
    if len(block_words) != candidate.size:
        raise ValueError(
            f"Candidate span {candidate.start_word_index}-{candidate.end_word_index} "
            f"is outside the {len(words)}-word sequence"
        )

    depths = [w.depth for w in block_words]
    avg_depth = mean(depths)
    char_count = sum(len(w.content) for w in block_words)

    preview = " ".join(w.content for w in block_words[:PREVIEW_WORDS])
    if len(block_words) > PREVIEW_WORDS:
        preview += "…"

    # most_common keeps first-seen order among equal counts
    tag_counts = Counter(w.parent_tag for w in block_words)
    dominant_tags = [tag for tag, _ in tag_counts.most_common(DOMINANT_TAG_COUNT)]
    semantic_tags = [tag for tag in dominant_tags if is_semantic_tag(tag)]

    return InterestBlock(
        id=block_id,
        start_word_index=candidate.start_word_index,
        end_word_index=candidate.end_word_index,
        start_char_index=block_words[0].start_index,
        end_char_index=block_words[-1].end_index,
        words=block_words,
        score=candidate.score,
        average_depth=avg_depth,
        min_depth=min(depths),
        max_depth=max(depths),
        depth_variance=variance(depths),
        stats=BlockStats(
            word_count=len(block_words),
            char_count=char_count,
            text_density=len(block_words) / (avg_depth or 1),
            tag_diversity=len(tag_counts),
            has_semantic=bool(semantic_tags),
            semantic_tags=semantic_tags,
            average_word_length=char_count / len(block_words),
        ),
        detection_reasons=[_reason(source) for source in candidate.sources],
        dominant_tags=dominant_tags,
        text_preview=preview,
    )


# --- Normalizers ---

def normalize_density(density: float) -> float:
    """Peaks at 2.0 words per depth level; very sparse or very dense text is penalized."""
    if density < 0.5:
        return 0.2
    if density > 5.0:
        return 0.5
    return max(0.0, 1 - abs(density - 2.0) / 3)


def normalize_stability(depth_variance: float) -> float:
    if depth_variance <= 1.0:
        return 1.0
    if depth_variance >= 10.0:
        return 0.0
    return 1 - depth_variance / 10


def normalize_length(word_count: int) -> float:
    very_short = LENGTH_THRESHOLDS["very_short"]
    short = LENGTH_THRESHOLDS["short"]
    medium = LENGTH_THRESHOLDS["medium"]

    if word_count < very_short:
        return 0.6 * word_count / very_short
    if word_count < short:
        return 0.6 + 0.3 * (word_count - very_short) / (short - very_short)
    if word_count < medium:
        return 0.9 + 0.1 * (word_count - short) / (medium - short)
    return 1.0


def normalize_diversity(tag_count: int) -> float:
    # Too monotonous or too varied both look less like prose
    if tag_count <= 1:
        return 0.3
    if tag_count <= 3:
        return 0.6
    if tag_count <= 6:
        return 1.0
    if tag_count <= 10:
        return 0.8
    return 0.5


def score_block(block: InterestBlock) -> float:
    """Composite quality score of a block, within [0, 1]."""
    stats = block.stats
    composite = (
        normalize_density(stats.text_density) * SCORING_WEIGHTS["density"]
        + normalize_stability(block.depth_variance) * SCORING_WEIGHTS["stability"]
        + (1.0 if stats.has_semantic else 0.3) * SCORING_WEIGHTS["semantic"]
        + normalize_length(stats.word_count) * SCORING_WEIGHTS["length"]
        + normalize_diversity(stats.tag_diversity) * SCORING_WEIGHTS["diversity"]
    )
    return min(max(composite, 0.0), 1.0)


def score_blocks(blocks: Iterable[InterestBlock]) -> list[InterestBlock]:
    """Copies of `blocks` carrying their composite score."""
    return [block.model_copy(update={"score": score_block(block)}) for block in blocks]


# --- Quality helpers ---

def classify_block_length(word_count: int) -> LengthClass:
    if word_count < LENGTH_THRESHOLDS["very_short"]:
        return "very_short"
    if word_count < LENGTH_THRESHOLDS["short"]:
        return "short"
    if word_count < LENGTH_THRESHOLDS["medium"]:
        return "medium"
    if word_count < LENGTH_THRESHOLDS["long"]:
        return "long"
    return "very_long"


def evaluate_content_quality(block: InterestBlock) -> Quality:
    score = score_block(block)
    if score < 0.4:
        return "low"
    if score < 0.6:
        return "medium"
    if score < 0.8:
        return "high"
    return "excellent"


def generate_block_summary(block: InterestBlock) -> str:
    """One-line description, e.g. for the text report."""
    semantic = "with semantic tags" if block.stats.has_semantic else "without semantic tags"
    return ", ".join([
        f"{evaluate_content_quality(block)} quality block",
        f"{block.stats.word_count} words ({classify_block_length(block.stats.word_count)})",
        semantic,
        f"average depth: {block.average_depth:.1f}",
        f"variance: {block.depth_variance:.2f}",
        f"density: {block.stats.text_density:.2f}",
    ])


def select_best_block(block1: InterestBlock, block2: InterestBlock) -> InterestBlock:
    """Higher composite score wins; ties go to the first block."""
    return block1 if score_block(block1) >= score_block(block2) else block2


def group_blocks_by_quality(blocks: Iterable[InterestBlock]) -> dict[Quality, list[InterestBlock]]:
    groups: dict[Quality, list[InterestBlock]] = {
        "excellent": [], "high": [], "medium": [], "low": [],
    }
    for block in blocks:
        groups[evaluate_content_quality(block)].append(block)
    return groups


def calculate_aggregate_stats(blocks: Sequence[InterestBlock]) -> AggregateStats:
    if not blocks:
        return AggregateStats()

    total_words = sum(b.stats.word_count for b in blocks)
    groups = group_blocks_by_quality(blocks)

    return AggregateStats(
        total_blocks=len(blocks),
        total_words=total_words,
        average_score=mean([score_block(b) for b in blocks]),
        average_depth=mean([b.average_depth for b in blocks]),
        average_length=total_words / len(blocks),
        blocks_with_semantic=sum(1 for b in blocks if b.stats.has_semantic),
        quality_distribution={q: len(groups[q]) for q in ("low", "medium", "high", "excellent")},
    )


def filter_blocks(
    blocks: Iterable[InterestBlock],
    min_words: Optional[int] = None,
    max_words: Optional[int] = None,
    min_score: Optional[float] = None,
    require_semantic: bool = False,
    min_depth: Optional[float] = None,
    max_depth: Optional[float] = None
) -> list[InterestBlock]:
    """
    Keep blocks matching every given criterion; None disables a criterion.

    min_score is checked against the composite score, depth bounds against
    the block's average depth.
    """
    kept = []
    for block in blocks:
        if min_words is not None and block.stats.word_count < min_words:
            continue
        if max_words is not None and block.stats.word_count > max_words:
            continue
        if min_score is not None and score_block(block) < min_score:
            continue
        if require_semantic and not block.stats.has_semantic:
            continue
        if min_depth is not None and block.average_depth < min_depth:
            continue
        if max_depth is not None and block.average_depth > max_depth:
            continue
        kept.append(block)
    return kept
