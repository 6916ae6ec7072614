"""
Depth profiling over the word sequence.

Produces summary statistics, a depth histogram, significant depth transitions
between adjacent words, and depth plateaus (runs of locally stable depth).

Pipeline position: Stage 3 (list[WordNode] → DepthProfile). The interest
detector reuses detect_transitions() for its segmentation algorithm.
"""

import math
from collections import Counter
from collections.abc import Sequence

from .logger import get_module_logger
from .schemas import (
    DEFAULT_TRANSITION_THRESHOLD,
    MAX_PLATEAU_VARIANCE,
    MIN_PLATEAU_SIZE,
    DepthPlateau,
    DepthProfile,
    DepthTransition,
    WordNode,
)

logger = get_module_logger("depth_profiler")


# --- Population statistics ---

def mean(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    return sum(values) / len(values)


def median(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    ordered = sorted(values)
    mid = len(ordered) // 2
    if len(ordered) % 2 == 0:
        return (ordered[mid - 1] + ordered[mid]) / 2
    return ordered[mid]


def variance(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    avg = mean(values)
    return sum((v - avg) ** 2 for v in values) / len(values)


def std_deviation(values: Sequence[float]) -> float:
    return math.sqrt(variance(values))


# --- Profile ---

def build_depth_profile(
    words: Sequence[WordNode],
    transition_threshold: int = DEFAULT_TRANSITION_THRESHOLD
) -> DepthProfile:
    """
    Build the depth profile of a document.

    Args:
        words: Annotated words in document order
        transition_threshold: Minimum |Δdepth| between adjacent words to count as a transition

    Returns:
        DepthProfile; all zeros with empty collections when `words` is empty
    """
    if not words:
        return DepthProfile()

    depths = [w.depth for w in words]

    profile = DepthProfile(
        min_depth=min(depths),
        max_depth=max(depths),
        average_depth=mean(depths),
        median_depth=median(depths),
        std_deviation=std_deviation(depths),
        histogram=dict(Counter(depths)),
        transitions=detect_transitions(words, transition_threshold),
        plateaus=detect_plateaus(words),
    )

    logger.debug(
        f"Depth profile: range {profile.min_depth}-{profile.max_depth}, "
        f"{len(profile.transitions)} transitions, {len(profile.plateaus)} plateaus"
    )
    return profile


def detect_transitions(words: Sequence[WordNode], threshold: int) -> list[DepthTransition]:
    """Adjacent-word depth jumps with magnitude >= threshold, indexed at the second word."""
    transitions = []

    for i in range(1, len(words)):
        prev_depth = words[i - 1].depth
        curr_depth = words[i].depth
        magnitude = abs(curr_depth - prev_depth)

        if magnitude >= threshold:
            transitions.append(DepthTransition(
                word_index=i,
                from_depth=prev_depth,
                to_depth=curr_depth,
                magnitude=magnitude,
                type="increase" if curr_depth > prev_depth else "decrease",
            ))

    return transitions


class _RunningDepths:
    """Exact integer sums so the plateau variance is O(1) per added word."""

    def __init__(self, start: int, depth: int):
        self.start = start
        self.count = 1
        self.total = depth
        self.total_sq = depth * depth

    def add(self, depth: int) -> None:
        self.count += 1
        self.total += depth
        self.total_sq += depth * depth

    def remove(self, depth: int) -> None:
        self.count -= 1
        self.total -= depth
        self.total_sq -= depth * depth

    @property
    def mean(self) -> float:
        return self.total / self.count

    @property
    def variance(self) -> float:
        return (self.count * self.total_sq - self.total * self.total) / (self.count * self.count)

    def to_plateau(self, end: int) -> DepthPlateau:
        return DepthPlateau(
            start_word_index=self.start,
            end_word_index=end,
            depth=_round_half_up(self.mean),
            length=self.count,
            variance=self.variance,
        )


def detect_plateaus(words: Sequence[WordNode]) -> list[DepthPlateau]:
    """
    Greedy plateau segmentation.

    The current plateau grows one word at a time; as soon as its variance
    exceeds MAX_PLATEAU_VARIANCE it is closed at the previous word (kept if
    it reached MIN_PLATEAU_SIZE words) and a new plateau restarts at the
    current word. Breakpoints are never revisited.
    """
    if len(words) < MIN_PLATEAU_SIZE:
        return []

    plateaus = []
    current = _RunningDepths(0, words[0].depth)

    for i in range(1, len(words)):
        depth = words[i].depth
        current.add(depth)

        if current.variance > MAX_PLATEAU_VARIANCE:
            current.remove(depth)
            if current.count >= MIN_PLATEAU_SIZE:
                plateaus.append(current.to_plateau(i - 1))
            current = _RunningDepths(i, depth)

    # Trailing plateau: only if long enough and still within the ceiling
    if current.count >= MIN_PLATEAU_SIZE and current.variance <= MAX_PLATEAU_VARIANCE:
        plateaus.append(current.to_plateau(len(words) - 1))

    return plateaus


def _round_half_up(value: float) -> int:
    # Nearest integer, halves rounded up (round() would round halves to even)
    return math.floor(value + 0.5)
