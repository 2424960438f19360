"""Unit tests for the plain-text mesh loader.

Tests cover:
- Triangle and quad faces
- Index sub-fields and ignored lines
- Error reporting with line numbers
- Loading from a file
"""

import pytest

SQUARE = [
    "# unit square",
    "v 0 0 0",
    "v 1 0 0",
    "v 1 1 0",
    "v 0 1 0",
]


class TestParseMesh:
    """Tests for parse_mesh."""

    def test_single_triangle(self):
        """Test a one-face mesh."""
        from sdfmarch.geometry import Triangle
        from sdfmarch.scene.loader import parse_mesh

        group = parse_mesh(["v 0 0 0", "v 1 0 0", "v 0 1 0", "f 1 2 3"])
        assert len(group) == 1
        tri = group.children[0]
        assert isinstance(tri, Triangle)
        assert tri.vertices == ((0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0))

    def test_quad_split_along_first_diagonal(self):
        """Test that a quad becomes (1, 2, 3) and (1, 3, 4)."""
        from sdfmarch.scene.loader import parse_mesh

        group = parse_mesh(SQUARE + ["f 1 2 3 4"])
        first, second = group.children
        assert first.vertices == ((0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (1.0, 1.0, 0.0))
        assert second.vertices == ((0.0, 0.0, 0.0), (1.0, 1.0, 0.0), (0.0, 1.0, 0.0))

    def test_index_sub_fields_ignored(self):
        """Test that texture and normal indices after '/' are ignored."""
        from sdfmarch.scene.loader import parse_mesh

        group = parse_mesh(SQUARE + ["f 1/1/1 2/2/1 3//1"])
        assert group.children[0].vertices[2] == (1.0, 1.0, 0.0)

    def test_unknown_lines_ignored(self):
        """Test that comments, normals and blank lines are skipped."""
        from sdfmarch.scene.loader import parse_mesh

        lines = SQUARE + ["", "vn 0 0 1", "vt 0.5 0.5", "o square", "s off", "f 1 2 3"]
        assert len(parse_mesh(lines)) == 1

    def test_faces_in_file_order(self):
        """Test that triangles follow the order of the face lines."""
        from sdfmarch.scene.loader import parse_mesh

        group = parse_mesh(SQUARE + ["f 1 2 3", "f 1 3 4"])
        assert group.children[1].vertices[2] == (0.0, 1.0, 0.0)

    @pytest.mark.parametrize(
        "line, message",
        [
            ("v 1 2", "vertex needs 3 coordinates"),
            ("v 1 2 x", "invalid vertex coordinates"),
            ("f 1 2", "face needs 3 or 4"),
            ("f 1 2 3 4 1", "face needs 3 or 4"),
            ("f 1 2 a", "invalid vertex index"),
            ("f 0 1 2", "out of range"),
            ("f 1 2 9", "out of range"),
        ],
    )
    def test_malformed_line(self, line, message):
        """Test that malformed records raise MeshFormatError with the line number."""
        from sdfmarch.scene.loader import MeshFormatError, parse_mesh

        with pytest.raises(MeshFormatError, match=message) as exc_info:
            parse_mesh(SQUARE + [line])
        assert exc_info.value.line_number == len(SQUARE) + 1
        assert str(exc_info.value).startswith(f"line {len(SQUARE) + 1}:")

    def test_face_before_its_vertices(self):
        """Test that faces may only reference vertices already defined."""
        from sdfmarch.scene.loader import MeshFormatError, parse_mesh

        with pytest.raises(MeshFormatError, match="out of range"):
            parse_mesh(["v 0 0 0", "f 1 2 3", "v 1 0 0", "v 0 1 0"])

    def test_degenerate_face(self):
        """Test that a face with collinear vertices is a format error."""
        from sdfmarch.scene.loader import MeshFormatError, parse_mesh

        with pytest.raises(MeshFormatError, match="Degenerate") as exc_info:
            parse_mesh(["v 0 0 0", "v 1 0 0", "v 2 0 0", "f 1 2 3"])
        assert exc_info.value.line_number == 4

    def test_no_faces(self):
        """Test that a mesh without faces is rejected."""
        from sdfmarch.scene.loader import MeshFormatError, parse_mesh

        with pytest.raises(MeshFormatError, match="no faces") as exc_info:
            parse_mesh(SQUARE)
        assert exc_info.value.line_number is None

    def test_format_error_is_value_error(self):
        """Test that MeshFormatError is a ValueError."""
        from sdfmarch.scene.loader import MeshFormatError

        assert issubclass(MeshFormatError, ValueError)


class TestLoadMesh:
    """Tests for load_mesh."""

    def test_load_from_file(self, tmp_path):
        """Test loading a quad mesh from disk."""
        from sdfmarch.scene.loader import load_mesh

        path = tmp_path / "square.obj"
        path.write_text("\n".join(SQUARE + ["f 1 2 3 4"]) + "\n", encoding="utf-8")

        group = load_mesh(path)
        assert len(group) == 2

    def test_missing_file(self, tmp_path):
        """Test that a missing file raises an OSError."""
        from sdfmarch.scene.loader import load_mesh

        with pytest.raises(OSError):
            load_mesh(tmp_path / "missing.obj")

    def test_loaded_mesh_in_scene(self, tmp_path):
        """Test that a loaded mesh can be added to a scene and queried."""
        from sdfmarch.materials import Material
        from sdfmarch.scene.loader import load_mesh
        from sdfmarch.scene.manager import SceneManager

        path = tmp_path / "square.obj"
        path.write_text("\n".join(SQUARE + ["f 1 2 3 4"]), encoding="utf-8")

        scene = SceneManager()
        mesh = load_mesh(path)
        scene.add_mesh(mesh, Material(color=(0.5, 0.5, 0.5)))

        assert scene.get_triangle_count() == 2
        leaf, d = scene.distance((0.25, 0.75, 0.0))
        assert leaf is mesh.children[1]
        assert abs(d) < 1e-5
