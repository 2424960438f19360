"""Group of geometry nodes evaluated as the union of its children.

A Group has no bound of its own: its distance is the minimum of its
children's distances, and the child that wins (the first one on ties)
identifies the nearest leaf. Groups nest to any depth.

For evaluation on the GPU a tree is flattened depth-first into a list of
leaves (spheres and triangles). Every subtree occupies a contiguous slice of
that list, so the minimum over a subtree is a scan over its slice, visiting
leaves in the same order as the recursive definition.

Example:
    >>> from sdfmarch.geometry import Group, Sphere
    >>> group = Group([Sphere((0, 0, 0), 1.0), Group([Sphere((3, 0, 0), 1.0)])])
    >>> len(list(group.leaves()))
    2
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import Union

from .sphere import Sphere
from .triangle import Triangle

Leaf = Union[Sphere, Triangle]
Geometry = Union[Sphere, Triangle, "Group"]


@dataclass(frozen=True, eq=False)
class Group:
    """An ordered, non-empty collection of geometry nodes.

    Attributes:
        children: The child nodes in evaluation order.
    """

    children: tuple[Geometry, ...]

    def __init__(self, children: Iterable[Geometry]) -> None:
        children = tuple(children)
        if not children:
            raise ValueError("Group must contain at least one child")
        for child in children:
            if not isinstance(child, (Sphere, Triangle, Group)):
                raise TypeError(f"Unsupported geometry in group: {type(child).__name__}")
        object.__setattr__(self, "children", children)

    def leaves(self) -> Iterator[Leaf]:
        """Yield the leaf primitives of this tree depth-first, in order."""
        return iter_leaves(self)

    def __len__(self) -> int:
        return len(self.children)


def iter_leaves(geometry: Geometry) -> Iterator[Leaf]:
    """Yield the leaves of any geometry node depth-first.

    A Sphere or Triangle yields itself.
    """
    if isinstance(geometry, Group):
        for child in geometry.children:
            yield from iter_leaves(child)
    elif isinstance(geometry, (Sphere, Triangle)):
        yield geometry
    else:
        raise TypeError(f"Unsupported geometry: {type(geometry).__name__}")


def is_leaf(geometry: Geometry) -> bool:
    """Whether the node is a primitive with a surface normal."""
    return isinstance(geometry, (Sphere, Triangle))
