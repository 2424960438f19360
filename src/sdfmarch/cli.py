"""Command line entry point: render the demo scene or a mesh file to PNG.

Usage:
    sdfmarch [options]

Options:
    --mesh PATH             Render a mesh file instead of the demo scene
    --definition N          Output image height in pixels (default: 200)
    --anti-aliasing N       Supersampling factor per axis (default: 1)
    --epsilon E             Hit distance threshold (default: 0.001)
    --ambient R G B         Ambient and background color (default: 0.2 0.2 0.2)
    --max-steps N           Marching iterations per ray (default: 512)
    --output OUTPUT         Output file path (default: render.png)
    --arch {cpu,gpu}        Taichi backend (default: gpu, falls back to cpu)
    --quiet                 Only log warnings and errors, no progress bar
    --verbose               Log debug messages

Example:
    sdfmarch --definition 400 --anti-aliasing 2 --output demo.png
    sdfmarch --mesh bunny.obj --epsilon 0.0005
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import taichi as ti
from tqdm import tqdm

from sdfmarch.core.settings import DEFAULT_MAX_STEPS, RendererSettings
from sdfmarch.logging_config import setup_logging

logger = logging.getLogger(__name__)

_ARCHS = {"cpu": ti.cpu, "gpu": ti.gpu}


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="sdfmarch",
        description="Render a signed distance field scene by sphere tracing.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--mesh",
        type=Path,
        default=None,
        help="Mesh file (v/f records) to render instead of the demo scene",
    )
    parser.add_argument(
        "--definition",
        type=int,
        default=200,
        help="Output image height in pixels (default: 200)",
    )
    parser.add_argument(
        "--anti-aliasing",
        type=int,
        default=1,
        help="Supersampling factor per axis (default: 1)",
    )
    parser.add_argument(
        "--epsilon",
        type=float,
        default=0.001,
        help="Hit distance threshold (default: 0.001)",
    )
    parser.add_argument(
        "--ambient",
        type=float,
        nargs=3,
        default=(0.2, 0.2, 0.2),
        metavar=("R", "G", "B"),
        help="Ambient and background color (default: 0.2 0.2 0.2)",
    )
    parser.add_argument(
        "--max-steps",
        type=int,
        default=DEFAULT_MAX_STEPS,
        help=f"Marching iterations per ray (default: {DEFAULT_MAX_STEPS})",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="render.png",
        help="Output file path (default: render.png)",
    )
    parser.add_argument(
        "--arch",
        choices=sorted(_ARCHS),
        default="gpu",
        help="Taichi backend (default: gpu, falls back to cpu)",
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument(
        "--quiet",
        action="store_true",
        help="Only log warnings and errors, no progress bar",
    )
    verbosity.add_argument(
        "--verbose",
        action="store_true",
        help="Log debug messages",
    )
    return parser.parse_args(argv)


def build_settings(args: argparse.Namespace) -> RendererSettings:
    """Build renderer settings from parsed arguments.

    Raises:
        ValueError: If a setting is out of range.
    """
    return RendererSettings(
        definition=args.definition,
        anti_aliasing=args.anti_aliasing,
        epsilon=args.epsilon,
        ambient=tuple(args.ambient),
        max_steps=args.max_steps,
    )


def log_level(args: argparse.Namespace) -> int:
    """Logging level selected by --quiet / --verbose."""
    if args.quiet:
        return logging.WARNING
    if args.verbose:
        return logging.DEBUG
    return logging.INFO


def render(
    settings: RendererSettings,
    output_path: str,
    mesh_path: Path | None = None,
    quiet: bool = False,
) -> Path:
    """Build the scene, render it and save the image.

    Args:
        settings: Renderer settings.
        output_path: Output file path (PNG).
        mesh_path: Optional mesh file; the demo scene is rendered if None.
        quiet: If True, no progress bar is shown.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports to allow Taichi initialization first
    from sdfmarch.camera.perspective import setup_camera
    from sdfmarch.core.renderer import Renderer
    from sdfmarch.preview.export import save_png
    from sdfmarch.scene.demo import create_demo_scene, create_mesh_scene
    from sdfmarch.scene.loader import load_mesh

    if mesh_path is None:
        scene, camera = create_demo_scene()
    else:
        scene, camera = create_mesh_scene(load_mesh(mesh_path))
    logger.info("Scene: %r", scene)

    setup_camera(camera)
    renderer = Renderer(settings, camera.aspect)
    logger.info(
        "Rendering %dx%d (output %dx%d)",
        renderer.width,
        renderer.height,
        *renderer.output_size,
    )

    with tqdm(total=renderer.height, unit="row", disable=quiet) as bar:

        def progress_callback(done: int, total: int) -> None:
            bar.update(done - bar.n)

        renderer.render(callback=progress_callback)

    output_file = Path(output_path)
    save_png(renderer, str(output_file))
    logger.info("Saved to: %s", output_file.absolute())
    return output_file


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    setup_logging(log_level(args))

    try:
        settings = build_settings(args)
    except ValueError as e:
        logger.error("Invalid settings: %s", e)
        return 1

    # Taichi falls back to the CPU backend when no GPU is available
    ti.init(arch=_ARCHS[args.arch])

    try:
        render(settings, args.output, mesh_path=args.mesh, quiet=args.quiet)
        return 0
    except (OSError, ValueError, TypeError, RuntimeError) as e:
        logger.error("Error: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
