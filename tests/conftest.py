"""Shared pytest fixtures for the build pipeline tests."""

import pytest

from sitebuild.models import ComponentInstance, Page
from sitebuild.registry import RendererRegistry


@pytest.fixture
def components():
    """A hero section holding a heading and an image that share one URL."""
    return [
        ComponentInstance(
            id="section-1",
            type="Section",
            props={"backgroundImage": "/images/hero.jpg", "padding": 24},
            zones={"default": ["heading-1", "image-1"]},
        ),
        ComponentInstance(
            id="heading-1",
            type="Heading",
            props={"text": "Welcome", "level": 1, "color": "#333333"},
        ),
        ComponentInstance(
            id="image-1",
            type="Image",
            props={"src": "/images/hero.jpg", "alt": "Hero"},
        ),
    ]


@pytest.fixture
def page():
    return Page(
        id="page-home",
        slug="home",
        title="Home",
        root_component_ids=["section-1"],
        description="Landing page",
        updated_at="2024-05-01T10:00:00Z",
    )


@pytest.fixture
def simple_registry():
    """Minimal registry with one container type and one leaf type."""
    registry = RendererRegistry()

    @registry.register("Box")
    def render_box(props, children, context):
        inner = "".join(children.values())
        return f'<div class="{context.class_name}">{inner}</div>'

    @registry.register("Label")
    def render_label(props, children, context):
        return f"<span>{props.get('text', '')}</span>"

    return registry
