from UncsKit.frontmatter import MAX_FILENAME_LENGTH, generate_frontmatter, sanitize_filename


def test_sanitize_filename():
    assert sanitize_filename("Release Notes: v1.2 (Draft)") == "release-notes-v1-2-draft"
    assert sanitize_filename("  --Hello World--  ") == "hello-world"
    assert sanitize_filename("Ünïcode only") == "n-code-only"
    assert sanitize_filename("!!!") == ""


def test_sanitize_filename_truncates():
    assert len(sanitize_filename("a" * 250)) == MAX_FILENAME_LENGTH


def test_generate_frontmatter_quotes_values():
    block = generate_frontmatter({"title": 'Say "hi"', "page_id": "42"})
    assert block == '---\ntitle: "Say \\"hi\\""\npage_id: "42"\n---\n'
