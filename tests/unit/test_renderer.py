"""Unit tests for the Markdown renderer and output cleanup.

Test Coverage:
- Tag conversions added on top of markdownify (fences, images, highlights)
- Renderer rules and rule replacement by name
- Orphaned table fragments
- Fence-aware Markdown cleanup and tight lists
"""

import pytest

from pastedown.constants import NBSP_SENTINEL
from pastedown.renderer import (
    MarkdownRenderer,
    RendererRule,
    cleanup_markdown,
    render_markdown,
    wrap_orphaned_table_elements,
)


@pytest.mark.unit
class TestTagConversions:
    """Test pastedown-specific tag output."""

    def test_atx_headings_and_dash_bullets(self):
        """Headings use ATX style and bullets use dashes."""
        markdown = render_markdown("<h2>Title</h2><ul><li>one</li><li>two</li></ul>")
        assert markdown.startswith("## Title")
        assert "- one" in markdown
        assert "- two" in markdown

    def test_fenced_code_with_language(self):
        """A language class becomes the fence info string."""
        markdown = render_markdown('<pre><code class="language-python">x = 1\nprint(x)</code></pre>')
        assert markdown == "```python\nx = 1\nprint(x)\n```"

    def test_fence_longer_than_content_backticks(self):
        """The fence grows past any backtick run in the code."""
        markdown = render_markdown("<pre><code>```\nnested\n```</code></pre>")
        assert markdown.startswith("````\n")
        assert markdown.endswith("\n````")

    def test_inline_code_with_backtick(self):
        """Inline code containing a backtick uses a longer delimiter."""
        assert render_markdown("<p><code>a`b</code></p>") == "``a`b``"

    def test_plain_image(self):
        """Unsized images use Markdown image syntax."""
        markdown = render_markdown('<p><img src="https://x.test/a.png" alt="A cat" title="T"></p>')
        assert markdown == '![A cat](https://x.test/a.png "T")'

    def test_sized_image_kept_as_html(self):
        """Images with dimensions render as HTML to keep their size."""
        markdown = render_markdown('<p><img src="a.png" alt="A &amp; B" width="120"></p>')
        assert markdown == '<img src="a.png" alt="A &amp; B" width="120">'

    def test_images_excluded(self):
        """Images and image-only links disappear when excluded."""
        markdown = render_markdown(
            '<p>Before <a href="https://x.test"><img src="a.png"></a><img src="b.png"> after</p>',
            include_images=False,
        )
        assert "a.png" not in markdown
        assert "b.png" not in markdown
        assert "Before" in markdown
        assert "after" in markdown

    def test_mark_and_insertions(self):
        """Highlights and insertions use extended syntax."""
        assert render_markdown("<p><mark>hot</mark></p>") == "==hot=="
        assert render_markdown("<p><ins>new</ins> and <u>under</u></p>") == "++new++ and ++under++"

    def test_insertion_around_link_suppressed(self):
        """Underlined links render as plain links."""
        assert render_markdown('<p><u><a href="https://x.test">link</a></u></p>') == "[link](https://x.test)"

    def test_sup_and_sub_kept_as_html(self):
        """Superscript and subscript keep their tags."""
        assert render_markdown("<p>x<sup>2</sup> H<sub>2</sub>O</p>") == "x<sup>2</sup> H<sub>2</sub>O"

    def test_task_list_checkboxes(self):
        """Checkboxes render as task-list markers."""
        markdown = render_markdown(
            '<ul><li><input type="checkbox" checked="">done</li><li><input type="checkbox">todo</li></ul>'
        )
        assert "- [x] done" in markdown
        assert "- [ ] todo" in markdown

    def test_line_breaks(self):
        """A single break is a hard break; a run becomes a paragraph gap."""
        assert render_markdown("<p>a<br>b</p>") == "a  \nb"
        assert render_markdown("<p>a<br><br>b</p>") == "a\n\nb"

    def test_nested_anchor_flattened(self):
        """Formatting inside a link is flattened to its text."""
        markdown = render_markdown('<p><a href="https://x.test"><span>Hello</span> <b>world</b></a></p>')
        assert markdown == "[Hello world](https://x.test)"

    def test_social_widget_dropped(self):
        """Embedded social widgets are removed."""
        markdown = render_markdown('<div class="twitter-tweet"><p>tweet</p></div><p>after</p>')
        assert markdown == "after"


@pytest.mark.unit
class TestRendererRules:
    """Test rule registration."""

    def test_custom_rule_takes_precedence(self):
        """A matching rule overrides the tag conversion."""
        renderer = MarkdownRenderer()
        renderer.add_rule(RendererRule("shout", ("strong",), lambda el, text, parent_tags: text.upper()))
        assert renderer.convert("<p><strong>loud</strong></p>").strip() == "LOUD"

    def test_rule_replaced_by_name(self):
        """Registering a rule under an existing name replaces it."""
        renderer = MarkdownRenderer()
        renderer.add_rule(RendererRule("custom", ("em",), lambda el, text, parent_tags: "first"))
        renderer.add_rule(RendererRule("custom", ("em",), lambda el, text, parent_tags: "second"))
        assert [rule.name for rule in renderer.rules].count("custom") == 1
        assert renderer.convert("<p><em>x</em></p>").strip() == "second"

    def test_non_matching_rule_falls_through(self):
        """A predicate rule that does not match leaves the default conversion."""
        renderer = MarkdownRenderer()
        renderer.add_rule(RendererRule("never", lambda el: False, lambda el, text, parent_tags: "nope"))
        assert renderer.convert("<p><em>x</em></p>").strip() == "*x*"

    def test_builtin_rules_depend_on_images(self):
        """Image-dropping rules exist only when images are excluded."""
        with_images = {rule.name for rule in MarkdownRenderer(include_images=True).rules}
        without_images = {rule.name for rule in MarkdownRenderer(include_images=False).rules}
        assert "drop-images" not in with_images
        assert {"drop-images", "drop-image-links"} <= without_images


@pytest.mark.unit
class TestOrphanedTables:
    """Test wrapping of table fragments."""

    def test_rows_wrapped(self):
        """Rows without a table get one."""
        assert wrap_orphaned_table_elements("<tr><td>a</td></tr>") == "<table><tr><td>a</td></tr></table>"

    def test_complete_table_unchanged(self):
        """Existing tables are left alone."""
        html = "<table><tr><td>a</td></tr></table>"
        assert wrap_orphaned_table_elements(html) == html

    def test_non_table_unchanged(self):
        """Other markup is left alone."""
        assert wrap_orphaned_table_elements("<p>x</p>") == "<p>x</p>"


@pytest.mark.unit
class TestCleanupMarkdown:
    """Test post-render cleanup."""

    def test_blank_runs_collapsed(self):
        """Leading blank lines go and runs collapse to one blank line."""
        assert cleanup_markdown("\n\n# A\n\n\n\nB\n") == "# A\n\nB"

    def test_nbsp_only_lines_blanked(self):
        """Lines holding only non-breaking space entities are emptied."""
        assert cleanup_markdown("a\n&nbsp;\n\nb") == "a\n\nb"

    def test_fenced_content_untouched(self):
        """Blank lines inside fences survive."""
        markdown = "text\n\n```\nline1\n\n\n\nline2\n```"
        assert cleanup_markdown(markdown) == markdown

    def test_sentinel_restored(self):
        """The NBSP sentinel becomes an entity."""
        assert cleanup_markdown(f"a `{NBSP_SENTINEL}` b") == "a `&nbsp;` b"

    def test_tight_lists(self):
        """Blank lines between list items are dropped on request."""
        loose = "- a\n\n- b\n\n- c\n\nAfter"
        assert cleanup_markdown(loose, force_tight_lists=True) == "- a\n- b\n- c\n\nAfter"
        assert cleanup_markdown(loose) == loose

    def test_tight_lists_skip_fences(self):
        """List-looking lines inside fences are not tightened."""
        markdown = "```\n- a\n\n- b\n```"
        assert cleanup_markdown(markdown, force_tight_lists=True) == markdown
