"""Camera module for view and ray generation.

Components:
    thin_lens: Look-at camera with vertical field of view and defocus blur

Camera responsibilities:
    - Transform (s, t) viewport coordinates to world-space rays
    - Apply anti-aliasing jitter for sub-pixel sampling
    - Sample the lens disk for depth of field

Ray generation uses normalized viewport coordinates:
    s in [0, 1]: left to right across image
    t in [0, 1]: bottom to top across image
"""

from .thin_lens import (
    Camera,
    get_camera_basis,
    get_camera_info,
    get_camera_origin,
    get_ray,
    get_ray_jittered,
    setup_camera,
)

__all__ = [
    "Camera",
    "setup_camera",
    "get_ray",
    "get_ray_jittered",
    "get_camera_origin",
    "get_camera_basis",
    "get_camera_info",
]
