"""
Typed errors raised by the tree store.

Structural violations are rejected before any write and surface to the caller
unchanged; the API layer maps them to 4xx responses.
"""


class TreeStructureError(Exception):
    """Base class for structural violations of the tree/graph model."""


class CycleError(TreeStructureError):
    """A node may not be moved under itself or one of its descendants."""

    def __init__(self, message: str = "Cycle prevented: the new parent is part of the subtree."):
        super().__init__(message)


class SelfParentError(TreeStructureError):
    def __init__(self, message: str = "A category cannot be its own parent."):
        super().__init__(message)


class SelfEdgeError(TreeStructureError):
    def __init__(self, message: str = "An edge cannot connect a node to itself."):
        super().__init__(message)


class InvalidPatchError(TreeStructureError):
    """Raised when a patch tries to change structural columns directly."""


class InvalidDepthError(TreeStructureError, ValueError):
    def __init__(self, max_depth):
        super().__init__(f"maxDepth must be a non-negative integer, got {max_depth!r}")
        self.max_depth = max_depth


class ParentNotFoundError(TreeStructureError):
    def __init__(self, tree_id: str, parent_id: str):
        super().__init__(f"Parent node {parent_id} not found in tree {tree_id}")
        self.tree_id = tree_id
        self.parent_id = parent_id


class InvalidIdError(TreeStructureError):
    """A write referenced another row by an id that is not a valid UUID."""

    def __init__(self, field: str, value):
        super().__init__(f"{field} must be a valid UUID, got {value!r}")
        self.field = field
        self.value = value
