"""Raybow: a Monte Carlo raytracer built on Taichi.

This package renders scenes of spheres and parallelograms with diffuse,
metal and glass materials, with support for:
- Anti-aliasing by averaging jittered rays per pixel
- Depth of field through a thin-lens camera
- Binary/ASCII PPM and PNG export

Subpackages:
    core: Vector algebra, intervals, colors, sampling, the integrator and
        the render driver
    camera: Thin-lens camera with primary ray generation
    geometry: Shape primitives and intersection algorithms
    materials: Scattering models and their registries
    scene: Scene storage, the scene manager and the demo scene
    preview: Image export

Most subpackages allocate Taichi fields when imported, so call
``ti.init()`` before importing them.
"""

__version__ = "0.1.0"
