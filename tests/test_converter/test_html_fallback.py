from converter import fallback_html_to_markdown


def test_keeps_text_after_unterminated_tag():
    result = fallback_html_to_markdown('<p>Hello <b class="x world</p>')
    assert result == 'Hello <b class="x world'


def test_common_formatting():
    html = "<h2>T</h2><p>a <strong>b</strong> <em>c</em></p><ul><li>x</li><li>y</li></ul>"
    assert fallback_html_to_markdown(html) == "## T\n\na **b** *c*\n\n- x\n- y"


def test_links_and_code():
    html = '<p><a href="https://x.test">site</a> and <code>cmd</code></p>'
    assert fallback_html_to_markdown(html) == "[site](https://x.test) and `cmd`"


def test_table_cells_are_pipe_separated():
    assert fallback_html_to_markdown("<table><tr><td>a</td><td>b</td></tr></table>") == "a | b |"


def test_link_tag_is_not_a_list_item():
    assert fallback_html_to_markdown('<link rel="x"><p>text</p>') == "text"


def test_entities_decoded_and_scripts_removed():
    assert fallback_html_to_markdown("<p>a &amp; b</p><script>x()</script>") == "a & b"


def test_empty_input():
    assert fallback_html_to_markdown("") == ""
