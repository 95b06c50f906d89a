from __future__ import annotations


class BuildError(Exception):
    """Raised when a page cannot be turned into a renderable document."""


class UnknownComponentTypeError(BuildError):
    def __init__(self, component_id: str, component_type: str):
        super().__init__(f"Unknown component type {component_type!r} for component {component_id}")
        self.component_id = component_id
        self.component_type = component_type


class CyclicContainmentError(BuildError):
    def __init__(self, component_id: str):
        super().__init__(f"Cyclic containment detected at component {component_id}")
        self.component_id = component_id
