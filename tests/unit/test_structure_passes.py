"""Unit tests for the structural passes that run after sanitizing.

Test Coverage:
- Permalink detection and heading anchor cleanup
- Empty anchor removal
- Heading flattening and level repair
- List repair to a fixpoint
- Literal tag mentions in prose
"""

import pytest

from pastedown.passes.post.anchors import (
    analyze_anchor,
    clean_heading_anchors,
    has_meaningful_descendant,
    is_permalink_anchor,
    remove_empty_anchors,
)
from pastedown.passes.post.headings import normalize_headings, renormalize_levels, strip_heading_formatting
from pastedown.passes.post.lists import fix_orphan_nested_lists, repair_lists, unwrap_invalid_list_wrappers
from pastedown.passes.post.literals import protect_literal_html_tag_mentions


@pytest.mark.unit
class TestPermalinkDetection:
    """Test the three-signal permalink check."""

    def test_github_anchor(self, parse):
        """GitHub's empty ``a.anchor`` is a permalink."""
        root = parse('<h2><a class="anchor" id="user-content-setup" href="#setup"></a>Setup</h2>')
        assert is_permalink_anchor(root.find("a"))

    def test_sphinx_pilcrow(self, parse):
        """Sphinx headerlinks holding a pilcrow are permalinks."""
        root = parse('<h2>Usage<a class="headerlink" href="#usage">&para;</a></h2>')
        assert is_permalink_anchor(root.find("a"))

    def test_titled_permalink(self, parse):
        """A headerlink titled as a permanent link is a permalink."""
        root = parse('<h3>API<a class="headerlink" href="#api" title="Permalink to this heading">link</a></h3>')
        assert is_permalink_anchor(root.find("a"))

    def test_missing_class_is_not_permalink(self, parse):
        """Without a recognized class the anchor is ordinary."""
        root = parse('<h2><a href="#setup"></a>Setup</h2>')
        assert not is_permalink_anchor(root.find("a"))

    def test_external_href_is_not_permalink(self, parse):
        """A recognized class alone is not enough."""
        root = parse('<p><a class="anchor" href="https://example.com"></a></p>')
        assert not is_permalink_anchor(root.find("a"))

    def test_text_link_is_not_permalink(self, parse):
        """Real link text keeps the anchor."""
        root = parse('<p><a class="anchor" href="#intro">Read the intro</a></p>')
        assert not is_permalink_anchor(root.find("a"))


@pytest.mark.unit
class TestHeadingAnchors:
    """Test anchor cleanup around headings."""

    def test_permalink_removed(self, parse, render_tree):
        """Permalinks are removed with their content."""
        root = parse('<h2>Usage<a class="headerlink" href="#usage">&para;</a></h2>')
        clean_heading_anchors(root)
        assert render_tree(root) == "<h2>Usage</h2>"

    def test_anchor_inside_heading_unwrapped(self, parse, render_tree):
        """A normal link inside a heading becomes plain heading text."""
        root = parse('<h2><a href="https://example.com/docs">Docs</a></h2>')
        clean_heading_anchors(root)
        assert render_tree(root) == "<h2>Docs</h2>"

    def test_anchor_wrapping_heading_replaced(self, parse):
        """A link around a heading is replaced by the heading, keeping its id."""
        root = parse('<a href="/post" id="post-1"><h3>Post title</h3></a>')
        clean_heading_anchors(root)
        heading = root.find("h3")
        assert root.find("a") is None
        assert heading["id"] == "post-1"
        assert heading.parent is root

    def test_anchor_wrapping_blocks_unwrapped(self, parse):
        """A link spanning block elements is unwrapped."""
        root = parse('<a href="/card"><div>Title</div><p>Summary</p></a>')
        analysis = analyze_anchor(root.find("a"))
        assert analysis.wraps_blocks
        clean_heading_anchors(root)
        assert root.find("a") is None
        assert root.find("p").get_text() == "Summary"

    def test_inline_link_kept(self, parse):
        """Ordinary inline links are untouched."""
        root = parse('<p>See <a href="https://example.com">this</a>.</p>')
        clean_heading_anchors(root)
        assert root.find("a")["href"] == "https://example.com"


@pytest.mark.unit
class TestEmptyAnchors:
    """Test removal of links without visible content."""

    def test_empty_link_removed(self, parse):
        """A link with no content is removed."""
        root = parse('<p>a<a href="https://x.test"></a>b</p>')
        remove_empty_anchors(root)
        assert root.find("a") is None

    def test_decorative_svg_link_removed(self, parse):
        """An icon link made only of SVG paths is removed."""
        root = parse('<p><a href="/share"><svg><path d="M0 0"></path></svg></a></p>')
        remove_empty_anchors(root)
        assert root.find("a") is None

    def test_labelled_svg_link_kept(self, parse):
        """An SVG with an accessible name counts as content."""
        root = parse('<p><a href="/share"><svg aria-label="Share"><path></path></svg></a></p>')
        remove_empty_anchors(root)
        assert root.find("a") is not None

    def test_image_link_depends_on_setting(self, parse):
        """Image-only links count as content only when images are included."""
        html = '<p><a href="/full"><img src="t.png"></a></p>'
        kept = parse(html)
        remove_empty_anchors(kept, include_images=True)
        assert kept.find("a") is not None

        dropped = parse(html)
        remove_empty_anchors(dropped, include_images=False)
        assert dropped.find("a") is None

    def test_meaningful_descendant_text(self, parse):
        """Nested text is meaningful."""
        root = parse("<a href='#'><span><em>x</em></span></a>")
        assert has_meaningful_descendant(root.find("a"), include_images=False)


@pytest.mark.unit
class TestHeadingNormalization:
    """Test heading flattening and level repair."""

    def test_levels_never_skip_deeper(self):
        """Levels deeper than previous + 1 are pulled up."""
        assert renormalize_levels([1, 3, 6]) == [1, 2, 3]

    def test_shallower_moves_allowed(self):
        """Any shallower level is kept."""
        assert renormalize_levels([3, 1, 2]) == [3, 1, 2]

    def test_first_heading_kept(self):
        """The first heading keeps its level."""
        assert renormalize_levels([4]) == [4]

    def test_formatting_stripped_and_id_hoisted(self, parse, render_tree):
        """Heading markup is flattened and a descendant id is hoisted."""
        root = parse('<h2><span id="intro">Intro</span>  <em>part</em></h2>')
        strip_heading_formatting(root)
        assert render_tree(root) == '<h2 id="intro">Intro part</h2>'

    def test_existing_id_kept(self, parse):
        """An id already on the heading wins."""
        root = parse('<h2 id="own"><span id="inner">Text</span></h2>')
        strip_heading_formatting(root)
        assert root.find("h2")["id"] == "own"

    def test_tree_levels_repaired(self, parse):
        """Headings are renamed in the tree."""
        root = parse("<h1>A</h1><h4>B</h4><h6>C</h6><h2>D</h2>")
        normalize_headings(root)
        assert [h.name for h in root.find_all(["h1", "h2", "h3", "h4", "h5", "h6"])] == ["h1", "h2", "h3", "h2"]

    def test_idempotent(self, parse, render_tree):
        """Running heading normalization twice changes nothing more."""
        root = parse("<h2><b>X</b></h2><h5>Y</h5>")
        normalize_headings(root)
        once = render_tree(root)
        normalize_headings(root)
        assert render_tree(root) == once


@pytest.mark.unit
class TestListRepair:
    """Test list structure repair."""

    def test_orphan_list_moves_into_previous_item(self, parse, render_tree):
        """A list sibling of items is nested into the preceding item."""
        root = parse("<ol><li>One</li><ol><li>Sub</li></ol><li>Two</li></ol>")
        assert fix_orphan_nested_lists(root)
        outer = root.find("ol")
        items = outer.find_all("li", recursive=False)
        assert [li.contents[0] for li in items] == ["One", "Two"]
        assert items[0].find("ol").find("li").get_text() == "Sub"

    def test_orphan_without_previous_item_gets_wrapper(self, parse):
        """An orphan at the start of a list gets a new item."""
        root = parse("<ul><ul><li>Sub</li></ul><li>After</li></ul>")
        fix_orphan_nested_lists(root)
        first = root.find("ul").find("li", recursive=False)
        assert first.find("ul") is not None

    def test_invalid_wrapper_unwrapped(self, parse):
        """A list whose children include no item at all is unwrapped."""
        root = parse("<ul><ol><li>A</li></ol></ul>")
        assert unwrap_invalid_list_wrappers(root)
        assert root.find("ul") is None
        assert root.find("ol").find("li").get_text() == "A"

    def test_multi_level_fixpoint(self, parse):
        """Nested orphan lists are repaired at every level."""
        root = parse(
            "<ul><li>1</li><ul><li>1.1</li><ul><li>1.1.1</li></ul></ul><li>2</li></ul>"
        )
        repair_lists(root)
        top = root.find("ul")
        for lst in root.find_all(["ul", "ol"]):
            assert lst.parent.name not in ("ul", "ol")
        first = top.find("li", recursive=False)
        deepest = first.find("ul").find("li").find("ul").find("li")
        assert deepest.get_text() == "1.1.1"

    def test_checkbox_paragraph_unwrapped(self, parse):
        """A checkbox wrapped in a paragraph becomes a direct child of the item."""
        root = parse('<ul><li><p><input type="checkbox" checked> done</p></li></ul>')
        repair_lists(root)
        li = root.find("li")
        assert li.find("p") is None
        assert li.find("input").parent is li


@pytest.mark.unit
class TestLiteralTagMentions:
    """Test protection of literal tags in prose."""

    def test_tag_mention_wrapped_in_code(self, parse):
        """A tag written as text is wrapped in code."""
        root = parse("<p>Use the &lt;table&gt; element and &lt;/div&gt;.</p>")
        protect_literal_html_tag_mentions(root)
        codes = [code.get_text() for code in root.find_all("code")]
        assert codes == ["<table>", "</div>"]
        assert root.find("p").get_text() == "Use the <table> element and </div>."

    def test_code_text_untouched(self, parse):
        """Text already in code is left alone."""
        root = parse("<p><code>&lt;br&gt;</code></p>")
        protect_literal_html_tag_mentions(root)
        assert len(root.find_all("code")) == 1

    def test_comparison_operators_untouched(self, parse):
        """Text that does not look like a tag is not wrapped."""
        root = parse("<p>a &lt; b and c &gt; d</p>")
        protect_literal_html_tag_mentions(root)
        assert root.find("code") is None
