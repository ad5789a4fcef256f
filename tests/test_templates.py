import pytest
from jinja2 import TemplateSyntaxError

from postgen.content import ContentParser, ParsedDocument, PostSummary
from postgen.renderers import MarkdownConfig, MarkdownRenderer
from postgen.templates import TemplateRenderer, transform

PAGE_TEMPLATE = (
    "<html><head><title>{{ heading }}</title></head><body>"
    "<h2>{{ subheading }}</h2>{{ content }}"
    "{% if refresh %}<script src=\"/reload.js\"></script>{% endif %}"
    "</body></html>"
)

INDEX_TEMPLATE = (
    "<ul>{% for post in posts %}"
    '<li><a href="{{ post.href }}">{{ post.heading }}</a> {{ post.date }}</li>'
    "{% endfor %}</ul>"
)


def test_render_substitutes_and_leaves_unknown_empty():
    renderer = TemplateRenderer("[{{ known }}][{{ missing }}]")
    assert renderer.render({"known": "yes"}) == "[yes][]"


def test_render_does_not_escape():
    renderer = TemplateRenderer("{{ content }}")
    assert renderer.render({"content": "<p>a & b</p>"}) == "<p>a & b</p>"


def test_render_document_passes_metadata_and_refresh():
    document = ParsedDocument({"heading": "Hello", "subheading": "Sub"}, "<p>Body</p>")
    renderer = TemplateRenderer(PAGE_TEMPLATE)

    html = renderer.render_document(document)
    assert "<title>Hello</title>" in html
    assert "<h2>Sub</h2><p>Body</p>" in html
    assert "reload.js" not in html

    dev_html = renderer.render_document(document, refresh=True)
    assert "reload.js" in dev_html


def test_render_index_lists_posts_in_order():
    posts = [
        PostSummary("First", "1-1-2023", "/posts/first"),
        PostSummary("Second", "2-1-2023", "/posts/second"),
    ]
    html = TemplateRenderer(INDEX_TEMPLATE).render_index(posts)
    assert html.index("/posts/first") < html.index("/posts/second")
    assert '<a href="/posts/second">Second</a> 2-1-2023' in html


def test_render_index_with_no_posts():
    assert TemplateRenderer(INDEX_TEMPLATE).render_index([]) == "<ul></ul>"


def test_invalid_template_raises():
    with pytest.raises(TemplateSyntaxError):
        TemplateRenderer("{% if %}")


def test_transform_is_deterministic():
    markdown = "---\nheading: Hello\ndate: 1-1-2023\n---\n# Hi\n"
    first = transform(markdown, PAGE_TEMPLATE)
    assert first == transform(markdown, PAGE_TEMPLATE)
    assert "Hello" in first
    assert "Hi</h1>" in first


def test_transform_dev_and_custom_parser():
    parser = ContentParser(MarkdownRenderer(MarkdownConfig(highlight=False)))
    html = transform("```python\nx = 1\n```\n", PAGE_TEMPLATE, dev=True, parser=parser)
    assert '<code class="language-python">' in html
    assert "reload.js" in html


def test_render_missing_attribute_and_item_is_empty():
    renderer = TemplateRenderer("[{{ author.name }}][{{ meta['x'] }}][{{ a.b.c }}]")
    assert renderer.render({}) == "[][][]"


def test_render_accepts_any_metadata_key():
    document = ParsedDocument({"self": "me", "heading": "H"}, "<p>x</p>")
    html = TemplateRenderer("{{ heading }}|{{ content }}").render_document(document)
    assert html == "H|<p>x</p>"
