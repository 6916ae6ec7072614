"""
Block ranking: filter, order, de-duplicate and truncate scored blocks.

Pipeline position: Stage 6 (scored list[InterestBlock] → ranked list[InterestBlock]).
"""

from collections.abc import Iterable, Sequence

from .block_scorer import score_blocks
from .interest_detector import overlap_ratio
from .logger import get_module_logger
from .schemas import AnalysisOptions, InterestBlock

logger = get_module_logger("block_ranker")

# A block overlapping a better one by more than this share is a duplicate
MAX_BLOCK_OVERLAP = 0.3


def block_overlap_ratio(block1: InterestBlock, block2: InterestBlock) -> float:
    return overlap_ratio(
        block1.start_word_index, block1.end_word_index,
        block2.start_word_index, block2.end_word_index,
    )


def filter_blocks_by_threshold(
    blocks: Iterable[InterestBlock],
    min_score: float,
    min_size: int
) -> list[InterestBlock]:
    return [b for b in blocks if b.score >= min_score and b.stats.word_count >= min_size]


def sort_blocks_by_score(blocks: Iterable[InterestBlock]) -> list[InterestBlock]:
    """Descending by score; equal scores keep their incoming order."""
    return sorted(blocks, key=lambda b: b.score, reverse=True)


def remove_overlapping_blocks(blocks: Sequence[InterestBlock]) -> list[InterestBlock]:
    """
    Greedy de-duplication over blocks already sorted best-first.

    A block is kept unless it overlaps any already kept block by more than
    MAX_BLOCK_OVERLAP.
    """
    kept: list[InterestBlock] = []
    for block in blocks:
        if all(block_overlap_ratio(existing, block) <= MAX_BLOCK_OVERLAP for existing in kept):
            kept.append(block)
    return kept


def rank_and_select(blocks: Iterable[InterestBlock], options: AnalysisOptions) -> list[InterestBlock]:
    """Filter → sort → de-overlap → truncate, as configured by `options`."""
    filtered = filter_blocks_by_threshold(blocks, options.min_block_score, options.min_block_size)
    distinct = remove_overlapping_blocks(sort_blocks_by_score(filtered))
    selected = distinct[:options.max_blocks]

    logger.debug(
        f"Ranking: {len(filtered)} above threshold, {len(distinct)} distinct, "
        f"{len(selected)} selected"
    )
    return selected


def rank_blocks(
    blocks: Iterable[InterestBlock],
    max_blocks: int = 10,
    min_score: float = 0.5
) -> list[InterestBlock]:
    """
    Re-score, drop blocks under `min_score`, sort and keep the best `max_blocks`.

    Unlike rank_and_select() this neither checks block size nor removes overlaps.
    """
    scored = [b for b in score_blocks(blocks) if b.score >= min_score]
    return sort_blocks_by_score(scored)[:max_blocks]
