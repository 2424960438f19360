"""Renderer settings.

Settings are read once before rendering and never change during a render.
The triangle slab thickness is not configured separately: it is derived from
the hit epsilon with a fixed ratio so that the distance field stays a safe
lower bound for every scene scale.
"""

from __future__ import annotations

from dataclasses import dataclass

# Triangle slab thickness as a fraction of the hit epsilon
TRIANGLE_DEPTH_RATIO = 0.1

# Default iteration cap for a single ray
DEFAULT_MAX_STEPS = 512


@dataclass(frozen=True)
class RendererSettings:
    """Resolution and quality settings.

    Attributes:
        definition: Output image height in pixels. The width is the height
            times the camera aspect ratio.
        anti_aliasing: Supersampling factor (rays per output pixel per axis).
        epsilon: Distance below which a marching ray counts as a hit.
        ambient: Ambient light color (RGB); also the background color.
        max_steps: Maximum marching iterations per ray; a ray that uses
            them all counts as a miss.

    Example:
        >>> settings = RendererSettings(definition=200, anti_aliasing=2)
        >>> settings.supersampled_height
        400
    """

    definition: int = 200
    anti_aliasing: int = 1
    epsilon: float = 0.001
    ambient: tuple[float, float, float] = (0.2, 0.2, 0.2)
    max_steps: int = DEFAULT_MAX_STEPS

    def __post_init__(self) -> None:
        if self.definition < 1:
            raise ValueError(f"Definition must be at least 1 pixel, got {self.definition}")
        if self.anti_aliasing < 1:
            raise ValueError(f"Anti-aliasing factor must be at least 1, got {self.anti_aliasing}")
        if not self.epsilon > 0.0:
            raise ValueError(f"Epsilon must be positive, got {self.epsilon}")
        if self.max_steps < 1:
            raise ValueError(f"Max steps must be at least 1, got {self.max_steps}")
        if len(self.ambient) != 3:
            raise ValueError(f"Ambient color must have 3 components, got {len(self.ambient)}")
        for i, component in enumerate(self.ambient):
            if component < 0.0 or component > 1.0:
                raise ValueError(f"Ambient component {i} = {component} is outside [0, 1]")
        object.__setattr__(self, "ambient", tuple(float(c) for c in self.ambient))

    @property
    def triangle_depth(self) -> float:
        """Triangle slab thickness in world units."""
        return self.epsilon * TRIANGLE_DEPTH_RATIO

    @property
    def supersampled_height(self) -> int:
        """Height of the supersampled render buffer."""
        return self.definition * self.anti_aliasing

    def supersampled_width(self, aspect: float) -> int:
        """Width of the supersampled render buffer for an aspect ratio."""
        return int(self.supersampled_height * aspect)

    def output_size(self, aspect: float) -> tuple[int, int]:
        """(width, height) of the final, downsampled image."""
        return (
            self.supersampled_width(aspect) // self.anti_aliasing,
            self.definition,
        )
