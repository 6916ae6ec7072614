"""Shared fixtures for the structure analyzer tests."""

import pytest

from html_structure.block_scorer import candidate_to_interest_block
from html_structure.schemas import (
    BlockCandidate,
    CandidateSource,
    DepthTransitionDetail,
    DetectionAlgorithm,
    TextDensityDetail,
    WordNode,
)

ARTICLE_WORDS = 150
NAV_LINKS = 20


def build_words(depths, tags="p"):
    """WordNodes at the given depths; `tags` is one parent tag or one per word."""
    if isinstance(tags, str):
        tags = [tags] * len(depths)

    words = []
    offset = 0
    for i, (depth, tag) in enumerate(zip(depths, tags)):
        content = f"w{i}"
        words.append(WordNode(
            content=content,
            start_index=offset,
            end_index=offset + len(content),
            depth=depth,
            dom_path=f"html > body > {tag}",
            parent_tag=tag,
            word_index=i,
        ))
        offset += len(content) + 1
    return words


def build_candidate(start, end, score=0.5, density_window=False):
    """Single-source candidate; a depth-transition one unless density_window is set."""
    if density_window:
        algorithm = DetectionAlgorithm.TEXT_DENSITY
        detail = TextDensityDetail(density=1.0, avg_depth=2.0, window_size=end - start + 1)
    else:
        algorithm = DetectionAlgorithm.DEPTH_TRANSITION
        detail = DepthTransitionDetail(boundary="middle")
    return BlockCandidate(
        start_word_index=start,
        end_word_index=end,
        score=score,
        algorithm=algorithm,
        sources=(CandidateSource(algorithm=algorithm, score=score, detail=detail),),
    )


@pytest.fixture
def make_words():
    """Factory: make_words([2, 2, 3], tags="p") -> list[WordNode]."""
    return build_words


@pytest.fixture
def make_candidate():
    """Factory: make_candidate(start, end, score=0.5, density_window=False) -> BlockCandidate."""
    return build_candidate


@pytest.fixture
def make_block():
    """Factory: make_block(words, start, end, score=0.5, block_id="block_0") -> InterestBlock."""
    def _make(words, start, end, score=0.5, block_id="block_0"):
        return candidate_to_interest_block(build_candidate(start, end, score), words, block_id)
    return _make


@pytest.fixture
def article_nav_html() -> str:
    """
    An article (prose directly under <article>, after its <h1>) followed by a
    navigation list of one-word links.

    Depths: article text 2, title 3, links 5 (nav > ul > li > a).
    """
    prose = " ".join(f"word{i}" for i in range(ARTICLE_WORDS))
    links = "".join(f'<li><a href="/p{i}">link{i}</a></li>' for i in range(NAV_LINKS))
    return (
        "<html><head></head><body>"
        f"<article><h1>Title</h1>{prose}</article>"
        f"<nav><ul>{links}</ul></nav>"
        "</body></html>"
    )


@pytest.fixture
def simple_html() -> str:
    return (
        "<html><head></head><body>"
        '<div id="main" class="a b"><p>Hello <b>bold</b> world</p></div>'
        "</body></html>"
    )
