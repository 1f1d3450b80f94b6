"""CPU path tracer for sphere scenes built on Taichi.

This package renders scenes of spheres with physically motivated materials:
- Lambertian, metal and dielectric (glass) materials
- Positionable thin-lens camera with depth of field
- Monte Carlo ray color estimate with a sky gradient background
- Parallel row rendering with deterministic per-row random streams

Subpackages:
    core: Vector utilities, random streams, rays, integrator and renderer
    geometry: Sphere primitive and intersection
    materials: Material scattering models
    scene: Scene management and hit record structures
    camera: Camera model with ray generation
    preview: Image output
"""

__version__ = "0.1.0"
