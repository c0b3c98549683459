from UncsKit.renderer_storage import markdown_to_storage, render_storage


def test_markdown_to_storage_basic_blocks():
    body = markdown_to_storage("# Title\n\nSome **bold** and `code`.\n\n- a\n- b\n")
    assert "<h1>Title</h1>" in body
    assert "<strong>bold</strong>" in body
    assert "<code>code</code>" in body
    assert "<ul>" in body and "<li>a</li>" in body


def test_tables_and_strikethrough_enabled():
    body = markdown_to_storage("| a | b |\n| --- | --- |\n| 1 | 2 |\n\n~~gone~~")
    assert "<table>" in body
    assert "<s>gone</s>" in body


def test_frontmatter_becomes_metadata():
    doc = render_storage("---\ntitle: Launch plan\nowner: ops\n---\n\nBody text\n")
    assert doc.metadata == {"title": "Launch plan", "owner": "ops"}
    assert doc.title == "Launch plan"
    assert doc.body == "<p>Body text</p>"


def test_without_frontmatter_has_no_title():
    doc = render_storage("Just text")
    assert doc.metadata == {}
    assert doc.title is None


def test_frontmatter_that_is_not_a_mapping_is_ignored():
    doc = render_storage("---\n- a\n- b\n---\nBody\n")
    assert doc.metadata == {}
    assert doc.body == "<p>Body</p>"
