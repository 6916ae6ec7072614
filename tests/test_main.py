import asyncio
import logging

import pytest
from pydantic import ValidationError

import html_structure.main as main_module
from html_structure.exceptions import AnalysisFailure, NoContentError, StructuralParseError
from html_structure.main import (
    StructureAnalyzer,
    analyze_html_structure,
    analyze_structure,
    get_best_block,
    get_depth_profile,
    merge_options,
    quick_analyze,
)
from html_structure.preprocessor import parse_html
from html_structure.schemas import DEFAULT_ANALYSIS_OPTIONS, AnalysisOptions, DetectionAlgorithm

# Cuts the document at the title → links jump (depth 3 → 5)
SEGMENTING_OPTIONS = {
    "algorithms": ["depth_transition"],
    "algorithm_params": {"depth_transition": {"min_magnitude": 2}},
}


# --- options ---

def test_merge_options_defaults():
    assert merge_options() is DEFAULT_ANALYSIS_OPTIONS
    custom = AnalysisOptions(max_blocks=3)
    assert merge_options(custom) is custom


def test_merge_options_deep_merges_partial_mapping():
    options = merge_options({
        "max_blocks": 3,
        "ignored_tags": ["Script", "NAV"],
        "algorithm_params": {"clustering": {"epsilon": 8}},
    })

    assert options.max_blocks == 3
    assert options.min_block_score == 0.5
    assert options.ignored_tags == ("script", "nav")
    assert options.algorithm_params.clustering.epsilon == 8.0
    assert options.algorithm_params.clustering.min_points == 5
    assert options.algorithm_params.text_density.window_size == 50
    assert options.algorithms == tuple(DetectionAlgorithm)


@pytest.mark.parametrize("overrides", [
    {"min_block_score": 2},
    {"algorithm_params": {"text_density": {"window_size": 0}}},
    {"algorithms": ["telepathy"]},
])
def test_invalid_options_raise_analysis_failure(overrides):
    with pytest.raises(AnalysisFailure) as exc_info:
        merge_options(overrides)

    assert isinstance(exc_info.value.cause, ValidationError)
    assert isinstance(exc_info.value.__cause__, ValidationError)
    assert exc_info.value.details["errors"]


# --- end to end ---

def test_article_ranks_above_nav(article_nav_html):
    result = analyze_html_structure(article_nav_html, SEGMENTING_OPTIONS)

    assert [b.dominant_tags[0] for b in result.blocks] == ["article", "a"]
    article, nav = result.blocks
    assert article.score > nav.score
    assert article.stats.has_semantic is True
    assert nav.stats.has_semantic is False
    assert (article.start_word_index, article.end_word_index) == (0, 150)
    assert (nav.start_word_index, nav.end_word_index) == (151, 170)


def test_default_options_find_the_article(article_nav_html):
    result = analyze_html_structure(article_nav_html)
    top = result.blocks[0]

    assert top.dominant_tags[0] == "article"
    assert top.stats.has_semantic is True
    assert top.start_word_index == 0
    assert top.score >= 0.5


def test_result_contents(article_nav_html):
    result = analyze_html_structure(article_nav_html)

    assert len(result.all_words) == 171
    assert result.all_words[150].content == "Title"
    assert sum(result.depth_profile.histogram.values()) == len(result.all_words)
    assert result.depth_profile.histogram == {2: 150, 3: 1, 5: 20}
    assert result.document_stats.total_words == 171
    assert result.document_stats.has_semantic_html is True
    assert result.options == DEFAULT_ANALYSIS_OPTIONS
    assert result.processing_time_ms > 0

    for block in result.blocks:
        assert block.start_word_index <= block.end_word_index
        assert len(block.words) == block.end_word_index - block.start_word_index + 1
        assert 0.0 <= block.score <= 1.0
        assert block.detection_reasons
        assert len(block.dominant_tags) <= 3


def test_optional_sections_can_be_skipped(article_nav_html):
    result = analyze_html_structure(
        article_nav_html, {"include_stats": False, "include_depth_profile": False}
    )

    assert result.document_stats is None
    assert result.depth_profile is None
    assert result.blocks


def test_analysis_is_idempotent(article_nav_html):
    root = parse_html(article_nav_html)
    analyzer = StructureAnalyzer()

    first = analyzer.analyze(root)
    second = analyzer.analyze(root)

    assert first.model_dump(exclude={"processing_time_ms"}) == second.model_dump(exclude={"processing_time_ms"})


def test_async_matches_sync(article_nav_html):
    root = parse_html(article_nav_html)
    analyzer = StructureAnalyzer(SEGMENTING_OPTIONS)

    sync_result = analyzer.analyze(root)
    async_result = asyncio.run(analyzer.analyze_async(root))

    assert async_result.model_dump(exclude={"processing_time_ms"}) == sync_result.model_dump(exclude={"processing_time_ms"})


def test_per_call_options_override_analyzer_options(article_nav_html):
    analyzer = StructureAnalyzer({"max_blocks": 1})
    root = parse_html(article_nav_html)

    assert len(analyzer.analyze(root, SEGMENTING_OPTIONS).blocks) == 2
    assert analyzer.analyze(root).options.max_blocks == 1


def test_analyze_structure_accepts_element(article_nav_html):
    result = analyze_structure(parse_html(article_nav_html).find("body"))
    assert result.blocks[0].words[0].dom_path == "body > article"


# --- errors ---

def test_no_words_raises_no_content(caplog):
    html = "<html><body><script>var hidden = 1;</script><img src='a.png'></body></html>"

    with caplog.at_level(logging.ERROR, logger="html_structure"):
        with pytest.raises(NoContentError):
            analyze_html_structure(html)
    assert "No words found" in caplog.text


def test_blank_html_raises_parse_error():
    with pytest.raises(StructuralParseError):
        analyze_html_structure("   ")


def test_missing_root_raises_parse_error():
    with pytest.raises(StructuralParseError):
        StructureAnalyzer().analyze(None)


def test_internal_errors_are_wrapped(article_nav_html, monkeypatch):
    def broken(*args, **kwargs):
        raise RuntimeError("detector exploded")

    monkeypatch.setattr(main_module, "detect_interest_blocks", broken)

    with pytest.raises(AnalysisFailure) as exc_info:
        analyze_html_structure(article_nav_html)

    assert "detector exploded" in exc_info.value.message
    assert isinstance(exc_info.value.__cause__, RuntimeError)
    assert exc_info.value.to_response()["cause"] == "RuntimeError"


# --- files and shortcuts ---

def test_analyze_file(tmp_path, article_nav_html):
    path = tmp_path / "page.html"
    path.write_text(article_nav_html.replace("<head></head>", '<head><meta charset="utf-8"></head>'), encoding="utf-8")

    result = StructureAnalyzer().analyze_file(path)
    assert result.blocks[0].dominant_tags[0] == "article"


def test_quick_analyze(article_nav_html):
    blocks = quick_analyze(article_nav_html, max_blocks=5)

    assert 1 <= len(blocks) <= 5
    assert all(b.score >= 0.6 for b in blocks)


def test_get_best_block(article_nav_html):
    block = get_best_block(article_nav_html)
    assert block is not None
    assert block.stats.has_semantic is True


def test_get_depth_profile(article_nav_html):
    profile = get_depth_profile(article_nav_html)

    assert profile.histogram == {2: 150, 3: 1, 5: 20}
    assert profile.max_depth == 5


def test_get_depth_profile_without_words():
    profile = get_depth_profile("<html><body><img src='a.png'></body></html>")
    assert profile.histogram == {}
