"""
Interest detection: four independent block detectors plus candidate merging.

Each detector looks at the word sequence from a different angle and proposes
BlockCandidates (word-index spans with a [0, 1] score):

  text_density    : sliding window, words per unit of average depth
  depth_stability : sliding window, low depth variance
  clustering      : DBSCAN over (word_index, depth) points
  depth_transition: segments between abrupt depth jumps

All proposals are then merged left to right into unified candidates.

Pipeline position: Stage 4 (list[WordNode] → list[BlockCandidate]).

Known behaviors, kept as is:
- DBSCAN measures plain Euclidean distance over (word_index, depth). Word
  indices run into the thousands while depths rarely pass 30, so clustering
  is driven almost entirely by index proximity.
- The merge is greedy and pairwise: chains of 3+ overlapping candidates are
  folded two at a time and the running score average drifts accordingly.
"""

import math
from bisect import bisect_left, bisect_right
from collections import deque
from collections.abc import Iterable, Sequence
from typing import Optional

from .depth_profiler import detect_transitions
from .logger import get_module_logger
from .schemas import (
    ALL_ALGORITHMS,
    AlgorithmParameters,
    BlockCandidate,
    CandidateSource,
    ClusteringDetail,
    DepthStabilityDetail,
    DepthTransitionDetail,
    DetectionAlgorithm,
    TextDensityDetail,
    WordNode,
)

logger = get_module_logger("interest_detector")

# Candidates merge when they overlap by more than this share of the smaller one
MERGE_OVERLAP_THRESHOLD = 0.5

# Transition segments shorter than this are dropped
MIN_SEGMENT_WORDS = 10

# Fixed scores for transition segments
WHOLE_DOCUMENT_SCORE = 0.5
BOUNDARY_SEGMENT_SCORE = 0.7
INTERIOR_SEGMENT_SCORE = 0.8


def detect_interest_blocks(
    words: Sequence[WordNode],
    params: Optional[AlgorithmParameters] = None,
    algorithms: Iterable[DetectionAlgorithm] = ALL_ALGORITHMS
) -> list[BlockCandidate]:
    """
    Run the enabled detectors and merge their overlapping proposals.

    Args:
        words: Annotated words in document order
        params: Per-algorithm parameters (defaults when omitted)
        algorithms: Detectors to run

    Returns:
        Merged candidates sorted by start index
    """
    if not words:
        return []

    params = params or AlgorithmParameters()
    enabled = set(algorithms)
    candidates: list[BlockCandidate] = []

    if DetectionAlgorithm.TEXT_DENSITY in enabled:
        found = detect_by_text_density(
            words, params.text_density.window_size, params.text_density.min_density
        )
        logger.debug(f"text_density: {len(found)} candidates")
        candidates.extend(found)

    if DetectionAlgorithm.DEPTH_STABILITY in enabled:
        found = detect_by_depth_stability(
            words, params.depth_stability.window_size, params.depth_stability.max_variance
        )
        logger.debug(f"depth_stability: {len(found)} candidates")
        candidates.extend(found)

    if DetectionAlgorithm.CLUSTERING in enabled:
        found = detect_by_clustering(
            words, params.clustering.epsilon, params.clustering.min_points
        )
        logger.debug(f"clustering: {len(found)} candidates")
        candidates.extend(found)

    if DetectionAlgorithm.DEPTH_TRANSITION in enabled:
        found = detect_by_depth_transition(words, params.depth_transition.min_magnitude)
        logger.debug(f"depth_transition: {len(found)} candidates")
        candidates.extend(found)

    merged = merge_candidates(candidates)
    logger.debug(f"Merged {len(candidates)} candidates into {len(merged)}")
    return merged


def _candidate(start: int, end: int, score: float, detail) -> BlockCandidate:
    algorithm = DetectionAlgorithm(detail.algorithm)
    return BlockCandidate(
        start_word_index=start,
        end_word_index=end,
        score=score,
        algorithm=algorithm,
        sources=(CandidateSource(algorithm=algorithm, score=score, detail=detail),),
    )


def _window_sums(words: Sequence[WordNode], window_size: int):
    """Yield (start, depth_sum, depth_sq_sum) for every full window, in O(n)."""
    depths = [w.depth for w in words]
    if window_size > len(depths):
        return

    total = sum(depths[:window_size])
    total_sq = sum(d * d for d in depths[:window_size])
    yield 0, total, total_sq

    for i in range(1, len(depths) - window_size + 1):
        leaving, entering = depths[i - 1], depths[i + window_size - 1]
        total += entering - leaving
        total_sq += entering * entering - leaving * leaving
        yield i, total, total_sq


# ============================================================================
# Algorithm 1: text density
# ============================================================================

def detect_by_text_density(
    words: Sequence[WordNode],
    window_size: int,
    min_density: float
) -> list[BlockCandidate]:
    """
    Slide a window of `window_size` words; density = window_size / average depth.

    Shallow runs of words are dense. A window is proposed when
    density >= min_density, scored min(density / (2 * min_density), 1).
    """
    candidates = []

    for start, total, _ in _window_sums(words, window_size):
        avg_depth = total / window_size
        density = window_size / (avg_depth or 1)

        if density >= min_density:
            score = min(density / (min_density * 2), 1.0)
            candidates.append(_candidate(
                start, start + window_size - 1, score,
                TextDensityDetail(density=density, avg_depth=avg_depth, window_size=window_size),
            ))

    return candidates


# ============================================================================
# Algorithm 2: depth stability
# ============================================================================

def detect_by_depth_stability(
    words: Sequence[WordNode],
    window_size: int,
    max_variance: float
) -> list[BlockCandidate]:
    """
    Slide a window of `window_size` words and measure the depth variance.

    A window is proposed when variance <= max_variance, scored
    max(0, 1 - variance / (2 * max_variance)).
    """
    candidates = []

    for start, total, total_sq in _window_sums(words, window_size):
        # Integer numerator keeps the variance exact (0.0 for flat windows)
        window_variance = (window_size * total_sq - total * total) / (window_size * window_size)

        if window_variance <= max_variance:
            score = max(0.0, 1 - window_variance / (max_variance * 2))
            candidates.append(_candidate(
                start, start + window_size - 1, score,
                DepthStabilityDetail(
                    variance=window_variance,
                    avg_depth=total / window_size,
                    stability=1 - window_variance / max_variance,
                ),
            ))

    return candidates


# ============================================================================
# Algorithm 3: spatial clustering (DBSCAN)
# ============================================================================

def dbscan(
    points: Sequence[tuple[float, float]],
    epsilon: float,
    min_points: int
) -> list[list[int]]:
    """
    DBSCAN over 2-D points.

    A point with fewer than `min_points` ε-neighbors (itself excluded) is
    noise unless some core point reaches it. Clusters are grown through a
    FIFO neighbor queue; a point belongs to the first cluster that claims it.

    Returns:
        Clusters as lists of point positions, in discovery order
    """
    xs = [p[0] for p in points]
    sorted_x = all(xs[i] <= xs[i + 1] for i in range(len(xs) - 1))

    def neighbors_of(index: int) -> list[int]:
        px, py = points[index]
        if sorted_x:
            # Nothing outside [x - ε, x + ε] can be within ε
            lo = bisect_left(xs, px - epsilon)
            hi = bisect_right(xs, px + epsilon)
        else:
            lo, hi = 0, len(points)
        return [
            j for j in range(lo, hi)
            if j != index and math.hypot(points[j][0] - px, points[j][1] - py) <= epsilon
        ]

    clusters: list[list[int]] = []
    visited: set[int] = set()
    clustered: set[int] = set()

    for i in range(len(points)):
        if i in visited:
            continue
        visited.add(i)

        neighbors = neighbors_of(i)
        if len(neighbors) < min_points:
            continue

        members = []
        if i not in clustered:
            clustered.add(i)
            members.append(i)

        queue = deque(neighbors)
        while queue:
            j = queue.popleft()

            if j not in visited:
                visited.add(j)
                expansion = neighbors_of(j)
                if len(expansion) >= min_points:
                    queue.extend(expansion)

            if j not in clustered:
                clustered.add(j)
                members.append(j)

        clusters.append(members)

    return clusters


def detect_by_clustering(
    words: Sequence[WordNode],
    epsilon: float,
    min_points: int
) -> list[BlockCandidate]:
    """
    Cluster words as (x = word_index, y = depth) points with DBSCAN.

    Each cluster of at least `min_points` members yields a candidate spanning
    its lowest to highest word index, scored min(size / (ε²·π), 1).
    The axes are deliberately left unscaled.
    """
    points = [(float(w.word_index), float(w.depth)) for w in words]
    candidates = []

    for members in dbscan(points, epsilon, min_points):
        if len(members) < min_points:
            continue

        indices = [words[m].word_index for m in members]
        density = len(members) / (epsilon * epsilon * math.pi)
        candidates.append(_candidate(
            min(indices), max(indices), min(density, 1.0),
            ClusteringDetail(
                cluster_size=len(members),
                density=density,
                center_x=sum(points[m][0] for m in members) / len(members),
                center_y=sum(points[m][1] for m in members) / len(members),
            ),
        ))

    return candidates


# ============================================================================
# Algorithm 4: depth transitions
# ============================================================================

def detect_by_depth_transition(
    words: Sequence[WordNode],
    min_magnitude: int
) -> list[BlockCandidate]:
    """
    Cut the sequence at every transition of magnitude >= min_magnitude.

    Segments of fewer than MIN_SEGMENT_WORDS words are dropped. Scores are
    fixed: whole document (no transitions) 0.5, leading/trailing segment 0.7,
    interior segment 0.8.
    """
    n = len(words)
    cuts = [t.word_index for t in detect_transitions(words, min_magnitude)]
    candidates = []

    def propose(start: int, end: int, score: float, boundary: str) -> None:
        if end - start + 1 >= MIN_SEGMENT_WORDS:
            candidates.append(_candidate(
                start, end, score, DepthTransitionDetail(boundary=boundary)
            ))

    if not cuts:
        propose(0, n - 1, WHOLE_DOCUMENT_SCORE, "whole")
        return candidates

    propose(0, cuts[0] - 1, BOUNDARY_SEGMENT_SCORE, "start")
    for left, right in zip(cuts, cuts[1:]):
        propose(left, right - 1, INTERIOR_SEGMENT_SCORE, "middle")
    propose(cuts[-1], n - 1, BOUNDARY_SEGMENT_SCORE, "end")

    return candidates


# ============================================================================
# Merging
# ============================================================================

def overlap_ratio(start1: int, end1: int, start2: int, end2: int) -> float:
    """Overlap of two inclusive spans, relative to the smaller span (0 when disjoint)."""
    overlap_start = max(start1, start2)
    overlap_end = min(end1, end2)

    if overlap_end < overlap_start:
        return 0.0

    overlap_size = overlap_end - overlap_start + 1
    min_size = min(end1 - start1 + 1, end2 - start2 + 1)
    return overlap_size / min_size


def _combine_sources(
    first: Sequence[CandidateSource],
    second: Sequence[CandidateSource]
) -> tuple[CandidateSource, ...]:
    # One source per algorithm, keeping its best-scoring detection; first-seen order
    best: dict[DetectionAlgorithm, CandidateSource] = {}
    for source in list(first) + list(second):
        kept = best.get(source.algorithm)
        if kept is None or source.score > kept.score:
            best[source.algorithm] = source
    return tuple(best.values())


def merge_candidates(candidates: Iterable[BlockCandidate]) -> list[BlockCandidate]:
    """
    Greedy left-to-right merge.

    Candidates are stably sorted by start index. The running accumulator
    absorbs the next candidate when their overlap ratio exceeds
    MERGE_OVERLAP_THRESHOLD (span union, score = mean of the two); otherwise
    the accumulator is flushed and the next candidate takes its place.
    Merging is two-at-a-time and not transitive.
    """
    ordered = sorted(candidates, key=lambda c: c.start_word_index)
    if not ordered:
        return []

    merged = []
    current = ordered[0]

    for nxt in ordered[1:]:
        ratio = overlap_ratio(
            current.start_word_index, current.end_word_index,
            nxt.start_word_index, nxt.end_word_index,
        )

        if ratio > MERGE_OVERLAP_THRESHOLD:
            current = BlockCandidate(
                start_word_index=min(current.start_word_index, nxt.start_word_index),
                end_word_index=max(current.end_word_index, nxt.end_word_index),
                score=(current.score + nxt.score) / 2,
                algorithm=current.algorithm,
                sources=_combine_sources(current.sources, nxt.sources),
                merge_count=current.merge_count + nxt.merge_count,
            )
        else:
            merged.append(current)
            current = nxt

    merged.append(current)
    return merged
