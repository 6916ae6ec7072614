from bs4 import BeautifulSoup

from html_structure.document_stats import calculate_document_stats
from html_structure.tree_builder import build_structure_tree
from html_structure.word_annotator import annotate_words_with_depth


def _stats(markup):
    tree = build_structure_tree(BeautifulSoup(markup, "html.parser").find())
    return calculate_document_stats(tree, annotate_words_with_depth(tree))


def test_counts_and_depth():
    stats = _stats(
        "<html><body><main><p>one two</p><p>three</p>"
        "<ul><li>four</li><li>five</li><li>six</li></ul></main></body></html>"
    )

    assert stats.total_words == 6
    assert stats.total_chars == len("onetwothreefourfivesix")
    assert stats.total_nodes == 9
    assert stats.max_tree_depth == 4
    assert stats.unique_tags == 6
    assert stats.has_semantic_html is True


def test_top_tags_order():
    stats = _stats("<div><span>a</span><p>b</p><span>c</span><p>d</p><em>e</em></div>")

    # Equal counts keep document order
    assert [(t.tag, t.count) for t in stats.top_tags] == [("span", 2), ("p", 2), ("div", 1), ("em", 1)]


def test_top_tags_keeps_ten():
    tags = [f"x{i}" for i in range(15)]
    markup = "<div>" + "".join(f"<{t}>w</{t}>" for t in tags) + "</div>"
    stats = _stats(markup)

    assert len(stats.top_tags) == 10
    assert stats.unique_tags == 16


def test_no_semantic_html():
    stats = _stats("<html><body><div><p>plain</p></div></body></html>")
    assert stats.has_semantic_html is False


def test_figure_counts_as_semantic():
    stats = _stats("<div><figure><figcaption>caption</figcaption></figure></div>")
    assert stats.has_semantic_html is True
