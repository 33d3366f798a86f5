from bs4 import BeautifulSoup

from converter import clean_tree, has_unterminated_tag, preprocess_html


def _clean(html):
    return str(clean_tree(BeautifulSoup(html, "html.parser")))


class TestPreprocessHtml:
    def test_removes_script_style_and_comments(self):
        html = "<p>a</p><SCRIPT type='x'>bad()</SCRIPT><style>.c{}</style><!-- note -->"
        assert preprocess_html(html) == "<p>a</p>"

    def test_normalises_break_spellings(self):
        assert preprocess_html("a<br/>b<BR >c</br>d< br / >e") == "a<br>b<br>c<br>d<br>e"

    def test_idempotent(self):
        html = "<p>x<br />y</p><!-- c --><script>1</script>"
        once = preprocess_html(html)
        assert preprocess_html(once) == once


class TestUnterminatedTag:
    def test_detects_opener_running_into_next_tag(self):
        assert has_unterminated_tag('<p>Hello <b class="x world</p>')

    def test_detects_opener_at_end(self):
        assert has_unterminated_tag("<p>text</p><div")

    def test_well_formed_html(self):
        assert not has_unterminated_tag('<p class="a">x &lt; y</p><br>')

    def test_lone_less_than_is_text(self):
        assert not has_unterminated_tag("<p>1 < 2</p>")


class TestCleanTree:
    def test_strips_data_and_class_attributes(self):
        assert _clean('<p data-id="1" class="x">t</p>') == "<p>t</p>"

    def test_style_kept_only_on_table_elements(self):
        assert _clean('<span style="color: red">t</span>') == "<span>t</span>"
        assert _clean('<td style="text-align: right">t</td>') == '<td style="text-align: right">t</td>'

    def test_language_class_kept_on_code(self):
        assert _clean('<code class="hljs language-sql">q</code>') == '<code class="language-sql">q</code>'

    def test_empty_paragraphs_removed_unless_they_hold_media(self):
        assert _clean('<p> </p><p><img src="a.png"/></p>') == '<p><img src="a.png"/></p>'
