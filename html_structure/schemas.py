"""
Pydantic schemas defining the contracts between pipeline stages.

Data flow through the pipeline:
  DOM (bs4) → StructureTree → list[WordNode] → DepthProfile
                                           ↘ BlockCandidate → InterestBlock → ranked InterestBlock
  StructureTree + words → DocumentStats
  everything → AnalysisResult

All models are frozen: a stage never mutates what the previous stage produced,
it builds a new collection (re-scoring a block is a model_copy).
"""

from enum import Enum
from types import MappingProxyType
from typing import Annotated, Callable, Iterator, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class FrozenModel(BaseModel):
    """Base for immutable pipeline records."""
    model_config = ConfigDict(frozen=True)


# --- Read-only constant tables ---

DEFAULT_IGNORED_TAGS = ("script", "style", "noscript", "iframe", "svg")

# HTML5 sectioning/semantic tags. Shared by block scoring and document stats.
SEMANTIC_TAGS = frozenset({
    "article", "section", "main", "header", "footer",
    "nav", "aside", "figure", "figcaption",
})

SCORING_WEIGHTS = MappingProxyType({
    "density": 0.25,
    "stability": 0.25,
    "semantic": 0.20,
    "length": 0.15,
    "diversity": 0.15,
})

LENGTH_THRESHOLDS = MappingProxyType({
    "very_short": 20,
    "short": 50,
    "medium": 150,
    "long": 300,
})

DEFAULT_TRANSITION_THRESHOLD = 2
MIN_PLATEAU_SIZE = 5
MAX_PLATEAU_VARIANCE = 1.5


# --- Structural tree ---

class StructureNode(FrozenModel):
    """
    One element of the depth-annotated structural mirror of the DOM.

    Nodes live in a StructureTree arena; `children` and `parent_index` are
    arena indices rather than live references.
    """
    node_index: int
    tag_name: str
    depth: int
    attributes: dict[str, str] = Field(default_factory=dict)
    direct_text: str = ""           # Own text only, whitespace-collapsed
    full_text: str = ""             # direct_text + every descendant's text
    children: tuple[int, ...] = ()
    parent_index: Optional[int] = None
    dom_path: str
    node_id: str                    # Debugging aid, collisions are possible


class StructureTree(FrozenModel):
    """Arena of StructureNodes in pre-order; the root sits at index 0."""
    nodes: tuple[StructureNode, ...]

    @property
    def root(self) -> StructureNode:
        return self.nodes[0]

    def node(self, index: int) -> StructureNode:
        return self.nodes[index]

    def children_of(self, node: StructureNode) -> list[StructureNode]:
        return [self.nodes[i] for i in node.children]

    def parent_of(self, node: StructureNode) -> Optional[StructureNode]:
        if node.parent_index is None:
            return None
        return self.nodes[node.parent_index]

    def walk(self) -> Iterator[StructureNode]:
        """Pre-order traversal (the arena is already stored in pre-order)."""
        return iter(self.nodes)

    def __len__(self) -> int:
        return len(self.nodes)


class TreeStats(FrozenModel):
    total_nodes: int
    max_depth: int
    total_text_length: int
    unique_tags: frozenset[str]


# --- Words and depth profile ---

class WordNode(FrozenModel):
    """A single word with its depth metadata. Blocks reference these, never copy them."""
    content: str
    start_index: int                # Approximate offset, an ordering hint only
    end_index: int
    depth: int
    dom_path: str
    parent_tag: str
    parent_attributes: dict[str, str] = Field(default_factory=dict)
    word_index: int


class DepthTransition(FrozenModel):
    word_index: int
    from_depth: int
    to_depth: int
    magnitude: int
    type: Literal["increase", "decrease"]


class DepthPlateau(FrozenModel):
    start_word_index: int
    end_word_index: int
    depth: int
    length: int
    variance: float


class DepthProfile(FrozenModel):
    min_depth: int = 0
    max_depth: int = 0
    average_depth: float = 0.0
    median_depth: float = 0.0
    std_deviation: float = 0.0
    histogram: dict[int, int] = Field(default_factory=dict)
    transitions: list[DepthTransition] = Field(default_factory=list)
    plateaus: list[DepthPlateau] = Field(default_factory=list)


class DepthDistributionStats(FrozenModel):
    total_words: int = 0
    unique_depths: int = 0
    most_common_depth: int = 0
    least_common_depth: int = 0
    depth_range: int = 0


# --- Detection ---

class DetectionAlgorithm(str, Enum):
    """Closed set of detection algorithms."""
    TEXT_DENSITY = "text_density"
    DEPTH_STABILITY = "depth_stability"
    CLUSTERING = "clustering"
    DEPTH_TRANSITION = "depth_transition"


ALL_ALGORITHMS = tuple(DetectionAlgorithm)


class TextDensityDetail(FrozenModel):
    algorithm: Literal["text_density"] = "text_density"
    density: float
    avg_depth: float
    window_size: int


class DepthStabilityDetail(FrozenModel):
    algorithm: Literal["depth_stability"] = "depth_stability"
    variance: float
    avg_depth: float
    stability: float


class ClusteringDetail(FrozenModel):
    algorithm: Literal["clustering"] = "clustering"
    cluster_size: int
    density: float
    center_x: float
    center_y: float


class DepthTransitionDetail(FrozenModel):
    algorithm: Literal["depth_transition"] = "depth_transition"
    boundary: Literal["whole", "start", "middle", "end"]


AlgorithmDetail = Annotated[
    Union[TextDensityDetail, DepthStabilityDetail, ClusteringDetail, DepthTransitionDetail],
    Field(discriminator="algorithm"),
]


class CandidateSource(FrozenModel):
    """One original detection that fed into a (possibly merged) candidate."""
    algorithm: DetectionAlgorithm
    score: float
    detail: AlgorithmDetail


class BlockCandidate(FrozenModel):
    """Transient block proposal; discarded once converted into an InterestBlock."""
    start_word_index: int
    end_word_index: int
    score: float = Field(ge=0.0, le=1.0)
    algorithm: DetectionAlgorithm           # First contributor
    sources: tuple[CandidateSource, ...]    # Best original detection per contributing algorithm
    merge_count: int = 1

    @property
    def size(self) -> int:
        return self.end_word_index - self.start_word_index + 1

    @property
    def algorithms(self) -> tuple[DetectionAlgorithm, ...]:
        return tuple(source.algorithm for source in self.sources)


class DetectionReason(FrozenModel):
    algorithm: DetectionAlgorithm
    score: float
    explanation: str
    detail: Optional[AlgorithmDetail] = None


# --- Blocks ---

class BlockStats(FrozenModel):
    word_count: int
    char_count: int
    text_density: float
    tag_diversity: int
    has_semantic: bool
    semantic_tags: list[str] = Field(default_factory=list)
    average_word_length: float


class InterestBlock(FrozenModel):
    """A contiguous run of words identified as likely main content."""
    id: str
    start_word_index: int
    end_word_index: int
    start_char_index: int
    end_char_index: int
    words: list[WordNode]
    score: float
    average_depth: float
    min_depth: int
    max_depth: int
    depth_variance: float
    stats: BlockStats
    detection_reasons: list[DetectionReason] = Field(min_length=1)
    dominant_tags: list[str] = Field(default_factory=list)
    text_preview: str = ""


class AggregateStats(FrozenModel):
    total_blocks: int = 0
    total_words: int = 0
    average_score: float = 0.0
    average_depth: float = 0.0
    average_length: float = 0.0
    blocks_with_semantic: int = 0
    quality_distribution: dict[str, int] = Field(
        default_factory=lambda: {"low": 0, "medium": 0, "high": 0, "excellent": 0}
    )


# --- Configuration ---

class TextDensityParams(FrozenModel):
    window_size: int = Field(default=50, gt=0)
    min_density: float = Field(default=0.3, gt=0)


class DepthStabilityParams(FrozenModel):
    window_size: int = Field(default=30, gt=0)
    max_variance: float = Field(default=2.0, gt=0)


class ClusteringParams(FrozenModel):
    epsilon: float = Field(default=5.0, gt=0)
    min_points: int = Field(default=5, gt=0)


class DepthTransitionParams(FrozenModel):
    min_magnitude: int = Field(default=3, gt=0)


class AlgorithmParameters(FrozenModel):
    text_density: TextDensityParams = Field(default_factory=TextDensityParams)
    depth_stability: DepthStabilityParams = Field(default_factory=DepthStabilityParams)
    clustering: ClusteringParams = Field(default_factory=ClusteringParams)
    depth_transition: DepthTransitionParams = Field(default_factory=DepthTransitionParams)


class AnalysisOptions(FrozenModel):
    """Effective configuration of one analysis call."""
    algorithms: tuple[DetectionAlgorithm, ...] = ALL_ALGORITHMS
    min_block_score: float = Field(default=0.5, ge=0.0, le=1.0)
    min_block_size: int = Field(default=10, ge=0)
    max_blocks: int = Field(default=10, ge=0)
    algorithm_params: AlgorithmParameters = Field(default_factory=AlgorithmParameters)
    include_stats: bool = True
    include_depth_profile: bool = True
    ignored_tags: tuple[str, ...] = DEFAULT_IGNORED_TAGS

    @field_validator("ignored_tags")
    @classmethod
    def _lowercase_tags(cls, tags: tuple[str, ...]) -> tuple[str, ...]:
        # Tag names coming out of the DOM provider are lowercase
        return tuple(tag.strip().lower() for tag in tags if tag.strip())


DEFAULT_ANALYSIS_OPTIONS = AnalysisOptions()


# --- Results ---

class TagCount(FrozenModel):
    tag: str
    count: int


class DocumentStats(FrozenModel):
    total_words: int
    total_chars: int
    total_nodes: int
    max_tree_depth: int
    unique_tags: int
    top_tags: list[TagCount] = Field(default_factory=list)
    has_semantic_html: bool = False


class AnalysisResult(FrozenModel):
    """The single artifact returned per document; built once, never mutated."""
    blocks: list[InterestBlock] = Field(default_factory=list)
    depth_profile: Optional[DepthProfile] = None
    document_stats: Optional[DocumentStats] = None
    all_words: list[WordNode] = Field(default_factory=list)
    options: AnalysisOptions = Field(default_factory=AnalysisOptions)
    processing_time_ms: float = 0.0


NodePredicate = Callable[[StructureNode], bool]
