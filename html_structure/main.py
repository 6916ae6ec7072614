"""
Main orchestrator for the HTML structure analyzer.

Runs the depth-based pipeline on one document:
  tree builder → word annotator → depth profiler → interest detector
  → block scorer → block ranker → document stats

Every call is a pure function of (root element, options): nothing is cached
or shared between calls, so one StructureAnalyzer may be used from several
threads at once.
"""

import time
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Optional, Union

from bs4 import Tag
from pydantic import ValidationError

from .block_ranker import rank_and_select
from .block_scorer import candidate_to_interest_block, score_blocks
from .depth_profiler import build_depth_profile
from .document_stats import calculate_document_stats
from .exceptions import AnalysisFailure, NoContentError, StructureAnalysisError
from .interest_detector import detect_interest_blocks
from .logger import get_module_logger, setup_logger
from .preprocessor import Preprocessor
from .schemas import (
    DEFAULT_ANALYSIS_OPTIONS,
    AnalysisOptions,
    AnalysisResult,
    DepthProfile,
    InterestBlock,
)
from .tree_builder import build_structure_tree
from .word_annotator import annotate_words_with_depth

logger = get_module_logger("main")

OptionsInput = Union[AnalysisOptions, Mapping[str, Any], None]


def _deep_merge(base: dict, overrides: Mapping) -> dict:
    merged = dict(base)
    for key, value in overrides.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def merge_options(overrides: OptionsInput = None) -> AnalysisOptions:
    """
    Resolve caller options against the defaults.

    Accepts a complete AnalysisOptions (returned as is), a partial nested
    mapping such as {"max_blocks": 3, "algorithm_params": {"clustering":
    {"epsilon": 8}}}, or None for the defaults.

    Raises:
        AnalysisFailure: an override has an invalid value
    """
    if overrides is None:
        return DEFAULT_ANALYSIS_OPTIONS
    if isinstance(overrides, AnalysisOptions):
        return overrides

    merged = _deep_merge(DEFAULT_ANALYSIS_OPTIONS.model_dump(), overrides)
    try:
        return AnalysisOptions.model_validate(merged)
    except ValidationError as e:
        raise AnalysisFailure(
            f"Invalid analysis options: {e.error_count()} error(s)",
            cause=e,
            details={"errors": [
                {"loc": ".".join(str(part) for part in err["loc"]), "msg": err["msg"]}
                for err in e.errors()
            ]}
        ) from e


class StructureAnalyzer:
    """
    Depth-based interest block detection for HTML documents.

    Wires the pipeline stages together:
    1. Tree builder: DOM → depth-annotated StructureTree
    2. Word annotator: tree → depth-tagged words
    3. Depth profiler: words → DepthProfile (optional)
    4. Interest detector: words → merged BlockCandidates
    5. Block scorer / ranker: candidates → ranked InterestBlocks
    6. Document stats (optional)
    """

    def __init__(self, options: OptionsInput = None, log_level: int = None):
        if log_level is not None:
            setup_logger(level=log_level)

        self.options = merge_options(options)
        self.preprocessor = Preprocessor()

    def analyze(self, root: Tag, options: OptionsInput = None) -> AnalysisResult:
        """
        Analyze a parsed document.

        Args:
            root: Document element (a BeautifulSoup document is also accepted)
            options: Per-call options; the analyzer's own options when omitted

        Returns:
            AnalysisResult with the ranked blocks

        Raises:
            StructuralParseError: no usable root element
            NoContentError: the document holds no words
            AnalysisFailure: any other error inside the pipeline
        """
        start_time = time.perf_counter()
        opts = self.options if options is None else merge_options(options)
        logger.info("Starting structure analysis")

        try:
            result = self._run_pipeline(root, opts, start_time)
        except StructureAnalysisError as e:
            logger.error(f"Analysis failed: {e.message}")
            raise
        except Exception as e:
            logger.error(f"Analysis failed with unexpected error: {e}")
            raise AnalysisFailure(f"Analysis failed: {e}", cause=e) from e

        logger.info(
            f"Complete: {len(result.blocks)} blocks from {len(result.all_words)} words "
            f"in {result.processing_time_ms:.1f}ms"
        )
        return result

    def _run_pipeline(self, root: Tag, opts: AnalysisOptions, start_time: float) -> AnalysisResult:
        # Stage 1: DOM → StructureTree (raises StructuralParseError)
        tree = build_structure_tree(root, opts.ignored_tags)

        # Stage 2: StructureTree → words
        words = annotate_words_with_depth(tree)
        if not words:
            raise NoContentError(
                "No words found in the document",
                details={"total_nodes": len(tree)}
            )
        logger.debug(f"{len(tree)} nodes, {len(words)} words")

        # Stage 3: depth profile
        depth_profile = build_depth_profile(words) if opts.include_depth_profile else None

        # Stage 4: candidates from the enabled detectors, already merged
        candidates = detect_interest_blocks(words, opts.algorithm_params, opts.algorithms)

        # Stages 5-6: materialize, score, then filter/sort/de-overlap/truncate
        blocks = [
            candidate_to_interest_block(candidate, words, f"block_{i}")
            for i, candidate in enumerate(candidates)
        ]
        blocks = rank_and_select(score_blocks(blocks), opts)

        # Stage 7: document stats
        document_stats = calculate_document_stats(tree, words) if opts.include_stats else None

        return AnalysisResult(
            blocks=blocks,
            depth_profile=depth_profile,
            document_stats=document_stats,
            all_words=words,
            options=opts,
            processing_time_ms=(time.perf_counter() - start_time) * 1000,
        )

    async def analyze_async(self, root: Tag, options: OptionsInput = None) -> AnalysisResult:
        """Coroutine form of analyze(); the work itself never awaits."""
        return self.analyze(root, options)

    def analyze_html(self, html: str, options: OptionsInput = None) -> AnalysisResult:
        """Parse an HTML string, then analyze it."""
        try:
            root = self.preprocessor.parse(html)
        except StructureAnalysisError as e:
            logger.error(f"Analysis failed: {e.message}")
            raise
        return self.analyze(root, options)

    def analyze_file(self, file_path: Union[str, Path], options: OptionsInput = None) -> AnalysisResult:
        """Analyze an HTML file, decoding it with its declared charset."""
        file_path = Path(file_path)
        logger.info(f"Reading {file_path.name}")

        # Raw bytes so the <meta> charset can be honoured before decoding
        raw_bytes = file_path.read_bytes()
        try:
            root = self.preprocessor.parse_bytes(raw_bytes)
        except StructureAnalysisError as e:
            logger.error(f"Analysis failed: {e.message}")
            raise
        return self.analyze(root, options)


# --- Convenience functions ---

def analyze_structure(root: Tag, options: OptionsInput = None) -> AnalysisResult:
    """Convenience function to analyze a parsed document."""
    return StructureAnalyzer(options).analyze(root)


def analyze_html_structure(html: str, options: OptionsInput = None) -> AnalysisResult:
    """Convenience function to analyze an HTML string."""
    return StructureAnalyzer(options).analyze_html(html)


def quick_analyze(html: str, max_blocks: int = 5) -> list[InterestBlock]:
    """Blocks only: stricter score threshold, no stats or depth profile."""
    options = {
        "max_blocks": max_blocks,
        "min_block_score": 0.6,
        "include_stats": False,
        "include_depth_profile": False,
    }
    return analyze_html_structure(html, options).blocks


def get_best_block(html: str) -> Optional[InterestBlock]:
    blocks = quick_analyze(html, max_blocks=1)
    return blocks[0] if blocks else None


def get_depth_profile(html: str) -> DepthProfile:
    """Depth profile alone, skipping detection (an all-zero profile when there are no words)."""
    tree = build_structure_tree(Preprocessor().parse(html), DEFAULT_ANALYSIS_OPTIONS.ignored_tags)
    return build_depth_profile(annotate_words_with_depth(tree))
