"""Random sphere field showcase scene.

A large grey ground sphere carries a 22 x 22 grid of small spheres with
randomly chosen materials, plus three large feature spheres side by side:
glass in the middle, diffuse brown on the left and polished metal on the
right.

Small sphere materials are drawn as:
- 80% diffuse, albedo = random color * random color
- 15% metal, random albedo and fuzz in [0, 0.5)
- 5% glass, index of refraction 1.5

Small spheres that would land within 0.9 of the metal feature sphere's
footprint are skipped.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.scene.random_scene import (
    ...     create_random_scene, create_random_scene_camera
    ... )
    >>> from pathtracer.camera.thin_lens import setup_camera
    >>>
    >>> scene = create_random_scene(seed=0)
    >>> setup_camera(create_random_scene_camera(16.0 / 9.0))
"""

import numpy as np

from pathtracer.camera.thin_lens import Camera
from pathtracer.scene.manager import SceneManager

# Grid of small spheres spans [-GRID_EXTENT, GRID_EXTENT) on x and z
GRID_EXTENT = 11
SMALL_RADIUS = 0.2

# Small spheres are kept clear of this point
CLEARANCE_POINT = np.array([4.0, 0.2, 0.0])
CLEARANCE_DISTANCE = 0.9

GROUND_ALBEDO = (0.5, 0.5, 0.5)


def _random_color(rng: np.random.Generator) -> tuple[float, float, float]:
    r, g, b = rng.random(3)
    return (float(r), float(g), float(b))


def create_random_scene(seed: int | None = None) -> SceneManager:
    """Build the random sphere field.

    Replaces whatever scene is currently loaded.

    Args:
        seed: Seed for numpy's random generator. None draws fresh entropy,
            so every call gives a different layout.

    Returns:
        The SceneManager holding the new scene.
    """
    rng = np.random.default_rng(seed)
    scene = SceneManager()

    scene.add_lambertian_sphere((0.0, -1000.0, 0.0), 1000.0, albedo=GROUND_ALBEDO)

    for a in range(-GRID_EXTENT, GRID_EXTENT):
        for b in range(-GRID_EXTENT, GRID_EXTENT):
            choose_mat = rng.random()
            center = np.array([a + 0.9 * rng.random(), SMALL_RADIUS, b + 0.9 * rng.random()])

            if np.linalg.norm(center - CLEARANCE_POINT) <= CLEARANCE_DISTANCE:
                continue

            position = (float(center[0]), float(center[1]), float(center[2]))
            if choose_mat < 0.8:
                c1 = _random_color(rng)
                c2 = _random_color(rng)
                albedo = (c1[0] * c2[0], c1[1] * c2[1], c1[2] * c2[2])
                scene.add_lambertian_sphere(position, SMALL_RADIUS, albedo=albedo)
            elif choose_mat < 0.95:
                albedo = _random_color(rng)
                fuzz = float(rng.uniform(0.0, 0.5))
                scene.add_metal_sphere(position, SMALL_RADIUS, albedo=albedo, fuzz=fuzz)
            else:
                scene.add_dielectric_sphere(position, SMALL_RADIUS, ior=1.5)

    scene.add_dielectric_sphere((0.0, 1.0, 0.0), 1.0, ior=1.5)
    scene.add_lambertian_sphere((-4.0, 1.0, 0.0), 1.0, albedo=(0.4, 0.2, 0.1))
    scene.add_metal_sphere((4.0, 1.0, 0.0), 1.0, albedo=(0.7, 0.6, 0.5), fuzz=0.0)

    return scene


def create_random_scene_camera(aspect_ratio: float = 16.0 / 9.0) -> Camera:
    """Camera framing the random sphere field, focused 10 units out."""
    return Camera(
        lookfrom=(13.0, 2.0, 3.0),
        lookat=(0.0, 0.0, 0.0),
        vup=(0.0, 1.0, 0.0),
        vfov=20.0,
        aspect_ratio=aspect_ratio,
        aperture=0.1,
        focus_dist=10.0,
    )
