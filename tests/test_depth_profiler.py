import math
import random

import pytest

from html_structure.depth_profiler import (
    build_depth_profile,
    detect_plateaus,
    detect_transitions,
    mean,
    median,
    std_deviation,
    variance,
)
from html_structure.schemas import DepthProfile


def test_population_statistics():
    values = [1, 2, 3, 4]
    assert mean(values) == 2.5
    assert median(values) == 2.5
    assert median([5, 1, 3]) == 3
    assert variance(values) == 1.25
    assert std_deviation(values) == pytest.approx(math.sqrt(1.25))
    assert mean([]) == median([]) == variance([]) == 0.0


def test_two_flat_runs_give_two_plateaus(make_words):
    plateaus = detect_plateaus(make_words([2] * 6 + [8] * 6))

    assert len(plateaus) == 2
    assert [(p.start_word_index, p.end_word_index) for p in plateaus] == [(0, 5), (6, 11)]
    assert [p.depth for p in plateaus] == [2, 8]
    assert [p.length for p in plateaus] == [6, 6]
    assert all(p.variance == 0 for p in plateaus)


def test_short_trailing_run_is_not_a_plateau(make_words):
    plateaus = detect_plateaus(make_words([2] * 6 + [9] * 3))
    assert [(p.start_word_index, p.end_word_index) for p in plateaus] == [(0, 5)]


def test_too_few_words_gives_no_plateaus(make_words):
    assert detect_plateaus(make_words([3, 3, 3, 3])) == []


def test_plateau_depth_rounds_half_up(make_words):
    plateaus = detect_plateaus(make_words([2, 3, 2, 3, 2, 3]))

    assert len(plateaus) == 1
    assert plateaus[0].variance == 0.25
    assert plateaus[0].depth == 3


def test_single_transition(make_words):
    transitions = detect_transitions(make_words([1, 1, 1, 5, 5, 5]), 3)

    assert len(transitions) == 1
    t = transitions[0]
    assert (t.word_index, t.from_depth, t.to_depth, t.magnitude, t.type) == (3, 1, 5, 4, "increase")


def test_transition_threshold_is_inclusive(make_words):
    transitions = detect_transitions(make_words([6, 4, 4, 1]), 2)

    assert [(t.word_index, t.magnitude, t.type) for t in transitions] == [
        (1, 2, "decrease"), (3, 3, "decrease"),
    ]


def test_empty_profile():
    profile = build_depth_profile([])

    assert profile == DepthProfile()
    assert profile.histogram == {}
    assert profile.transitions == [] and profile.plateaus == []
    assert profile.min_depth == profile.max_depth == 0
    assert profile.average_depth == profile.std_deviation == 0.0


def test_profile_summary(make_words):
    profile = build_depth_profile(make_words([2] * 6 + [8] * 6))

    assert (profile.min_depth, profile.max_depth) == (2, 8)
    assert profile.average_depth == 5.0
    assert profile.median_depth == 5.0
    assert profile.std_deviation == 3.0
    assert profile.histogram == {2: 6, 8: 6}
    # Default transition threshold is 2
    assert [t.word_index for t in profile.transitions] == [6]
    assert len(profile.plateaus) == 2


@pytest.mark.parametrize("seed", range(10))
def test_histogram_counts_every_word(make_words, seed):
    rng = random.Random(seed)
    depths = [rng.randint(0, 25) for _ in range(rng.randint(1, 400))]
    profile = build_depth_profile(make_words(depths))

    assert sum(profile.histogram.values()) == len(depths)
    assert profile.min_depth <= profile.average_depth <= profile.max_depth
    for plateau in profile.plateaus:
        assert plateau.length == plateau.end_word_index - plateau.start_word_index + 1
        assert plateau.length >= 5
        assert plateau.variance <= 1.5
