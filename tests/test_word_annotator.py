from bs4 import BeautifulSoup

from html_structure.tree_builder import build_structure_tree
from html_structure.word_annotator import (
    annotate_words_with_depth,
    calculate_depth_gradient,
    extract_words,
    get_depth_distribution_stats,
    get_words_at_depth,
    get_words_in_depth_range,
    group_words_by_depth,
)


def _words_of(markup):
    root = BeautifulSoup(markup, "html.parser").find()
    return annotate_words_with_depth(build_structure_tree(root))


def test_extract_words_unicode_and_offsets():
    assert extract_words("Hello world! Ça va?") == [
        ("Hello", 0, 5), ("world", 6, 11), ("Ça", 13, 15), ("va", 16, 18),
    ]


def test_extract_words_splits_on_punctuation_and_underscore():
    assert [w for w, _, _ in extract_words("foo_bar, v2 2024-01 naïve")] == [
        "foo", "bar", "v2", "2024", "01", "naïve",
    ]
    assert extract_words("  ... !! ") == []


def test_annotation_depths_offsets_and_indices():
    words = _words_of("<html><body><p>one two</p><p>three</p></body></html>")

    assert [w.content for w in words] == ["one", "two", "three"]
    assert [w.word_index for w in words] == [0, 1, 2]
    assert all(w.depth == 2 for w in words)
    assert all(w.parent_tag == "p" and w.dom_path == "html > body > p" for w in words)
    # The offset advances by len(direct_text) + 1 after each text node
    assert [(w.start_index, w.end_index) for w in words] == [(0, 3), (4, 7), (8, 13)]


def test_parent_attributes_are_copied():
    words = _words_of('<div><p class="lead intro" data-x="1">hi</p></div>')
    assert words[0].parent_attributes == {"class": "lead intro", "data-x": "1"}


def test_text_after_child_comes_before_child_text():
    # Known ordering divergence: a node's own text is emitted before its children
    words = _words_of("<p><b>bold</b> trailing text</p>")
    assert [w.content for w in words] == ["trailing", "text", "bold"]


def test_ignored_and_whitespace_only_nodes_emit_nothing():
    words = _words_of("<div>  <script>var hidden = 1;</script><p>   </p><span>seen</span></div>")
    assert [w.content for w in words] == ["seen"]


def test_depth_helpers(make_words):
    words = make_words([1, 2, 2, 3, 2])

    assert [w.word_index for w in get_words_at_depth(words, 2)] == [1, 2, 4]
    assert [w.word_index for w in get_words_in_depth_range(words, 2, 3)] == [1, 2, 3, 4]
    groups = group_words_by_depth(words)
    assert sorted(groups) == [1, 2, 3]
    assert len(groups[2]) == 3


def test_depth_distribution_stats(make_words):
    stats = get_depth_distribution_stats(make_words([3, 1, 1, 3, 5]))

    assert stats.total_words == 5
    assert stats.unique_depths == 3
    # Ties go to the depth seen first
    assert stats.most_common_depth == 3
    assert stats.least_common_depth == 5
    assert stats.depth_range == 4


def test_depth_distribution_stats_empty():
    stats = get_depth_distribution_stats([])
    assert stats.total_words == 0
    assert stats.depth_range == 0


def test_depth_gradient(make_words):
    assert calculate_depth_gradient(make_words([1, 3, 2])) == 1.5
    assert calculate_depth_gradient(make_words([4])) == 0.0
