"""Plain-text mesh loader.

Reads the vertex and face records of a Wavefront-style text file and builds a
Group of Triangles:

    v x y z              a vertex (three decimal floats)
    f i1 i2 i3           a triangle, 1-based vertex indices
    f i1 i2 i3 i4        a quad, split into (i1, i2, i3) and (i1, i3, i4)

An index may carry extra ``/``-separated fields (``7/3/2``); only the first
one, the position index, is used. Every other line is ignored.

Loading is a one-shot step before rendering: any malformed record aborts it
with a MeshFormatError naming the offending line.

Example:
    >>> from sdfmarch.scene.loader import parse_mesh
    >>> group = parse_mesh(["v 0 0 0", "v 1 0 0", "v 0 1 0", "f 1 2 3"])
    >>> len(group)
    1
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from sdfmarch.geometry.group import Group
from sdfmarch.geometry.triangle import DegenerateTriangleError, Triangle

logger = logging.getLogger(__name__)

VERTEX_TAG = "v"
FACE_TAG = "f"


class MeshFormatError(ValueError):
    """Raised for a malformed mesh file.

    Attributes:
        line_number: 1-based line number of the offending record, or None
            when the error concerns the whole file.
    """

    def __init__(self, message: str, line_number: int | None = None) -> None:
        self.line_number = line_number
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)


def _parse_vertex(tokens: list[str], line_number: int) -> tuple[float, float, float]:
    if len(tokens) != 4:
        raise MeshFormatError(
            f"vertex needs 3 coordinates, got {len(tokens) - 1}", line_number
        )
    try:
        return (float(tokens[1]), float(tokens[2]), float(tokens[3]))
    except ValueError:
        raise MeshFormatError(f"invalid vertex coordinates {tokens[1:]}", line_number) from None


def _parse_index(token: str, vertex_count: int, line_number: int) -> int:
    position = token.split("/", 1)[0]
    try:
        index = int(position)
    except ValueError:
        raise MeshFormatError(f"invalid vertex index {token!r}", line_number) from None
    if not 1 <= index <= vertex_count:
        raise MeshFormatError(
            f"vertex index {index} out of range (1..{vertex_count})", line_number
        )
    return index - 1


def _make_triangle(corners, line_number: int) -> Triangle:
    try:
        return Triangle(*corners)
    except DegenerateTriangleError as e:
        raise MeshFormatError(str(e), line_number) from e


def parse_mesh(lines: Iterable[str]) -> Group:
    """Build a Group of Triangles from the lines of a mesh file.

    Args:
        lines: The text lines of the file.

    Returns:
        A Group with one Triangle per triangular face and two per quad,
        in file order.

    Raises:
        MeshFormatError: On a wrong token count, an unparsable number, an
            out-of-range index, a degenerate face, or a file with no faces.
    """
    vertices: list[tuple[float, float, float]] = []
    triangles: list[Triangle] = []

    for line_number, line in enumerate(lines, start=1):
        tokens = line.split()
        if not tokens:
            continue
        tag = tokens[0]

        if tag == VERTEX_TAG:
            vertices.append(_parse_vertex(tokens, line_number))

        elif tag == FACE_TAG:
            if len(tokens) not in (4, 5):
                raise MeshFormatError(
                    f"face needs 3 or 4 vertex indices, got {len(tokens) - 1}", line_number
                )
            indices = [_parse_index(t, len(vertices), line_number) for t in tokens[1:]]
            corners = [vertices[i] for i in indices]
            triangles.append(_make_triangle(corners[:3], line_number))
            if len(corners) == 4:
                triangles.append(
                    _make_triangle((corners[0], corners[2], corners[3]), line_number)
                )

    if not triangles:
        raise MeshFormatError("mesh contains no faces")

    logger.debug("Parsed %d vertices into %d triangles", len(vertices), len(triangles))
    return Group(triangles)


def load_mesh(path: str | Path) -> Group:
    """Load a mesh file into a Group of Triangles.

    Args:
        path: Path of the text mesh file.

    Returns:
        The mesh as a Group of Triangles.

    Raises:
        OSError: If the file cannot be read.
        MeshFormatError: If the file is malformed (see parse_mesh).
    """
    path = Path(path)
    with path.open("r", encoding="utf-8") as f:
        group = parse_mesh(f)
    logger.info("Loaded mesh %s (%d triangles)", path.name, len(group))
    return group
