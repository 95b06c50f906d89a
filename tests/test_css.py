from sitebuild.css import (
    BASE_STYLES,
    CSSOptions,
    class_name,
    extract_critical_css,
    generate_component_css,
    generate_page_css,
    minify_css,
)
from sitebuild.models import ComponentInstance


def component(props, component_id="hero"):
    return ComponentInstance(id=component_id, type="Section", props=props)


def test_class_names_are_distinct_for_distinct_ids():
    assert class_name("abc-123") == "dc-abc-123"
    names = {class_name(value) for value in ("a.b", "a_b", "a-b", "a b", "a_2e_b")}
    assert len(names) == 5
    assert class_name("x", prefix="site") == "site-x"


def test_base_declarations():
    css = generate_component_css(
        component({"padding": 24, "backgroundColor": "#fff", "opacity": 50, "fontWeight": 700, "title": "x"})
    )

    assert css.startswith(".dc-hero {")
    assert "padding: 24px;" in css
    assert "background-color: #fff;" in css
    assert "opacity: 0.5;" in css
    assert "font-weight: 700;" in css
    assert "title" not in css


def test_responsive_values_become_media_queries():
    css = generate_component_css(component({"fontSize": {"mobile": 16, "tablet": 18, "desktop": "1.5rem"}}))

    assert ".dc-hero {\n  font-size: 16px;\n}" in css
    assert "@media (min-width: 768px) {\n  .dc-hero {\n    font-size: 18px;\n  }\n}" in css
    assert "font-size: 1.5rem;" in css
    assert css.index("768px") < css.index("1024px")


def test_state_overrides():
    css = generate_component_css(
        component({"states": {"hover": {"backgroundColor": "#000", "scale": 1.05, "fontSize": 30}}})
    )

    assert ".dc-hero:hover {" in css
    assert "background-color: #000;" in css
    assert "transform: scale(1.05);" in css
    assert "font-size" not in css


def test_states_can_be_disabled():
    css = generate_component_css(
        component({"states": {"focus": {"color": "red"}}}), CSSOptions(include_states=False)
    )
    assert css == ""


def test_transition_declaration():
    css = generate_component_css(
        component({"transition": {"property": "colors", "duration": 300, "easing": "ease-in", "delay": 50}})
    )
    assert "transition: background-color, color, border-color 300ms ease-in 50ms;" in css


def test_component_without_styles_emits_nothing():
    assert generate_component_css(component({"text": "hello", "visible": True})) == ""


def test_annotated_blocks_name_their_component():
    css = generate_component_css(component({"color": "red"}), CSSOptions(annotate=True))
    assert css.startswith("/* hero (Section) */\n")


def test_page_css_contains_base_and_component_rules():
    css = generate_page_css([component({"color": "red"}), component({"margin": 0}, "other")])

    assert css.startswith(BASE_STYLES)
    assert ".dc-hero {" in css
    assert ".dc-other {" in css
    assert "margin: 0px;" in css


def test_minified_page_css():
    full = generate_page_css([component({"color": "red"})])
    minified = generate_page_css([component({"color": "red"})], CSSOptions(minify=True))

    assert minified == minify_css(full)
    assert ".dc-hero{color:red}" in minified
    assert "/*" not in minified
    assert len(minified) < len(full)


def test_minify_css():
    css = "a {\n  color: red;\n}\n/* c */\nb > c { margin: 0 ; }"
    assert minify_css(css) == "a{color:red}b>c{margin:0}"


def test_minify_never_grows():
    samples = [
        "a{color:red}",
        " ",
        "x",
        "@media (min-width: 768px) {\n  .a {\n    width: calc(100% + 2px);\n  }\n}",
        generate_page_css([component({"fontSize": {"mobile": 12, "desktop": 14}})]),
    ]
    for sample in samples:
        assert len(minify_css(sample)) <= len(sample)
    assert "calc(100% + 2px)" in minify_css(samples[3])


def test_critical_css_is_whole_stylesheet():
    css = generate_page_css([component({"color": "red"})])
    assert extract_critical_css(css) == css
    assert extract_critical_css(css, ["hero"]) == css


def test_values_that_could_escape_the_rule_are_dropped():
    css = generate_component_css(
        component(
            {
                "color": "red}</style><script>alert(1)</script>",
                "margin": "0;display:none",
                "padding": 4,
                "states": {"hover": {"rotate": "1deg)}x{", "backgroundColor": "blue"}},
                "transition": {"property": "opacity", "easing": "ease}</style>"},
            }
        )
    )

    assert "<" not in css
    assert "alert" not in css
    assert "display" not in css
    assert "rotate" not in css
    assert "transition" not in css
    assert "padding: 4px;" in css
    assert "background-color: blue;" in css


def test_annotation_cannot_close_the_comment():
    css = generate_component_css(
        ComponentInstance(id="x*/</style>", type="Section", props={"color": "red"}), CSSOptions(annotate=True)
    )

    first_line = css.split("\n", 1)[0]
    assert first_line.startswith("/* ") and first_line.endswith(" */")
    assert "*/" not in first_line[3:-3]
    assert "</style>" not in css


def test_breakpoint_aliases():
    css = generate_component_css(component({"fontSize": {"base": 12, "md": 14, "xl": 20}, "gap": {"sm": 4}}))

    assert ".dc-hero {\n  font-size: 12px;\n}" in css
    assert "@media (min-width: 768px) {\n  .dc-hero {\n    gap: 4px;\n    font-size: 14px;\n  }\n}" in css
    assert "@media (min-width: 1024px) {\n  .dc-hero {\n    font-size: 20px;\n  }\n}" in css
