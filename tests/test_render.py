import pytest

from sitebuild.errors import CyclicContainmentError, UnknownComponentTypeError
from sitebuild.models import ComponentInstance
from sitebuild.render import (
    RenderOptions,
    RenderSession,
    add_root_attribute,
    minify_html,
    render_template,
    render_to_static_html,
    strip_tags,
)


def box(component_id, *child_ids, **zones):
    if child_ids:
        zones["default"] = list(child_ids)
    return ComponentInstance(id=component_id, type="Box", zones=zones)


def label(component_id, text):
    return ComponentInstance(id=component_id, type="Label", props={"text": text})


def test_children_render_in_zone_order(simple_registry):
    components = [box("root", "b", "a"), label("a", "A"), label("b", "B")]

    markup = render_to_static_html(components, ["root"], simple_registry)

    assert markup == '<div class="dc-root"><span>B</span>\n<span>A</span></div>'


def test_multiple_roots_keep_their_order(simple_registry):
    components = [label("one", "1"), label("two", "2")]

    assert render_to_static_html(components, ["two", "one"], simple_registry) == "<span>2</span>\n<span>1</span>"


def test_unknown_type_fails(simple_registry):
    components = [box("root", "x"), ComponentInstance(id="x", type="Carousel")]

    with pytest.raises(UnknownComponentTypeError) as excinfo:
        render_to_static_html(components, ["root"], simple_registry)

    assert excinfo.value.component_type == "Carousel"
    assert excinfo.value.component_id == "x"


def test_cycle_is_detected(simple_registry):
    components = [box("a", "b"), box("b", "a")]

    with pytest.raises(CyclicContainmentError):
        render_to_static_html(components, ["a"], simple_registry)


def test_missing_child_is_skipped(simple_registry, caplog):
    components = [box("root", "ghost", "a"), label("a", "A")]

    with caplog.at_level("WARNING", logger="sitebuild.render"):
        markup = render_to_static_html(components, ["root"], simple_registry)

    assert markup == '<div class="dc-root"><span>A</span></div>'
    assert "ghost" in caplog.text


def test_children_render_before_parent(simple_registry):
    order = []

    @simple_registry.register("Tracked")
    def render_tracked(props, children, context):
        order.append(context.component_id)
        return "".join(children.values())

    components = [
        ComponentInstance(id="parent", type="Tracked", zones={"main": ["child"]}),
        ComponentInstance(id="child", type="Tracked"),
    ]
    session = RenderSession(components, simple_registry)

    session.render_ids(["parent"])

    assert order == ["child", "parent"]
    assert session.rendered == 2


def test_renderer_receives_zones_by_name(simple_registry):
    seen = {}

    @simple_registry.register("Split")
    def render_split(props, children, context):
        seen.update(children)
        return f"<div>{children['left']}|{children['right']}</div>"

    components = [
        ComponentInstance(id="s", type="Split", zones={"left": ["l"], "right": ["r"]}),
        label("l", "L"),
        label("r", "R"),
    ]

    markup = render_to_static_html(components, ["s"], simple_registry)

    assert markup == "<div><span>L</span>|<span>R</span></div>"
    assert seen == {"left": "<span>L</span>", "right": "<span>R</span>"}


def test_data_attributes_are_optional(simple_registry):
    components = [box("root", "a"), label("a", "A")]

    plain = render_to_static_html(components, ["root"], simple_registry)
    tagged = render_to_static_html(components, ["root"], simple_registry, RenderOptions(include_data_attributes=True))

    assert "data-component-id" not in plain
    assert '<div data-component-id="root" class="dc-root">' in tagged
    assert '<span data-component-id="a">A</span>' in tagged


def test_add_root_attribute_escapes_value():
    assert add_root_attribute("<img src=x>", "data-id", 'a"b') == '<img data-id="a&quot;b" src=x>'
    assert add_root_attribute("plain text", "data-id", "x") == "plain text"


def test_minify_html_preserves_raw_blocks():
    markup = "<div>\n  <!-- note -->\n  <p>Hello\n     world</p>\n  <pre>  keep\n   this </pre>\n</div>"

    assert minify_html(markup) == "<div><p>Hello world</p><pre>  keep\n   this </pre></div>"


def test_minify_html_keeps_text_content():
    markup = "<p>\n  One   two\n</p>\n<script>\n  var a = 1;\n</script>"

    minified = minify_html(markup)

    assert strip_tags(minified).split() == strip_tags(markup).split()
    assert "<script>\n  var a = 1;\n</script>" in minified
    assert len(minified) <= len(markup)


def test_minified_render(simple_registry):
    components = [box("root", "a", "b"), label("a", "A"), label("b", "B")]

    markup = render_to_static_html(components, ["root"], simple_registry, RenderOptions(minify=True))

    assert markup == '<div class="dc-root"><span>A</span><span>B</span></div>'


def test_render_template_inserts_body_last():
    template = "<title>{{title}}</title>{{head_content}}<main>{{body}}</main>"

    output = render_template(template, title="Home", head_content="<meta name='x' content='{{title}}'>", body="B")

    assert output == "<title>Home</title><meta name='x' content='{{title}}'><main>B</main>"


def test_minify_html_leaves_marker_lookalikes_alone():
    assert minify_html("<div><raw-block-3></div><style>a{}</style>") == "<div><raw-block-3></div><style>a{}</style>"
    assert minify_html("<p>a\x00b</p>\n<pre> x </pre>") == "<p>ab</p><pre> x </pre>"
