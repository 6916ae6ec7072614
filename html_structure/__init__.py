"""
HTML Structure Analyzer

Finds the main-content regions of an HTML page from DOM nesting depth and
word distribution alone, without rendering.
- Tree builder: depth-annotated structural mirror of the DOM
- Word annotator / depth profiler: depth-tagged words and their statistics
- Interest detector: text density, depth stability, DBSCAN clustering and
  depth-transition segmentation, merged into candidates
- Block scorer / ranker: composite scoring, de-duplication, selection

Public API surface:
  Orchestrator  : StructureAnalyzer, analyze_structure, analyze_html_structure,
                   quick_analyze, get_best_block, get_depth_profile
  Data models   : AnalysisOptions, AnalysisResult, InterestBlock, WordNode,
                   DepthProfile, DocumentStats, DetectionAlgorithm
  Error types   : StructureAnalysisError and its three fatal subclasses
"""

# --- Orchestrator ---
from .main import (
    StructureAnalyzer,
    analyze_html_structure,
    analyze_structure,
    get_best_block,
    get_depth_profile,
    merge_options,
    quick_analyze,
)

# --- Pipeline stages (usable on their own) ---
from .preprocessor import Preprocessor, parse_html
from .tree_builder import build_structure_tree
from .word_annotator import annotate_words_with_depth
from .depth_profiler import build_depth_profile
from .interest_detector import detect_interest_blocks
from .block_scorer import candidate_to_interest_block, score_block
from .block_ranker import rank_blocks, remove_overlapping_blocks

# --- Data models ---
from .schemas import (
    DEFAULT_ANALYSIS_OPTIONS,
    AnalysisOptions,
    AnalysisResult,
    DepthProfile,
    DetectionAlgorithm,
    DocumentStats,
    InterestBlock,
    StructureTree,
    WordNode,
)

# --- Exceptions (callers should catch these for error handling) ---
from .exceptions import (
    AnalysisFailure,
    NoContentError,
    StructuralParseError,
    StructureAnalysisError,
)

__version__ = "0.1.0"
__all__ = [
    "StructureAnalyzer",
    "analyze_structure",
    "analyze_html_structure",
    "quick_analyze",
    "get_best_block",
    "get_depth_profile",
    "merge_options",
    "Preprocessor",
    "parse_html",
    "build_structure_tree",
    "annotate_words_with_depth",
    "build_depth_profile",
    "detect_interest_blocks",
    "candidate_to_interest_block",
    "score_block",
    "rank_blocks",
    "remove_overlapping_blocks",
    "DEFAULT_ANALYSIS_OPTIONS",
    "AnalysisOptions",
    "AnalysisResult",
    "DepthProfile",
    "DetectionAlgorithm",
    "DocumentStats",
    "InterestBlock",
    "StructureTree",
    "WordNode",
    "StructureAnalysisError",
    "StructuralParseError",
    "NoContentError",
    "AnalysisFailure",
]
