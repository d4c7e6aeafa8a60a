"""Demo scene configuration.

This module provides a factory function for the default scene rendered by
the command line tool: three spheres resting on a large ground sphere in
front of a diffuse backdrop.

The scene consists of:
- Ground: a radius-100 sphere acting as an almost flat yellowish floor
- Center sphere: blue diffuse
- Left sphere: hollow glass (an outer dielectric sphere with an inner
  air bubble of inverted IOR)
- Right sphere: rough gold metal
- Backdrop: a grey diffuse parallelogram behind the spheres

The camera sits at the origin and looks down -z, so the spheres fill the
middle of a 90 degree view.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from raybow.scene.demo import create_demo_scene
    >>> from raybow.camera.camera import setup_camera
    >>>
    >>> scene, camera = create_demo_scene(width=256, height=256)
    >>> setup_camera(camera)
    >>> # Now render using the scene and camera
"""

from dataclasses import dataclass

from raybow.camera.camera import Camera
from raybow.scene.manager import SceneManager

# =============================================================================
# Demo Scene Constants
# =============================================================================

GROUND_ALBEDO = (0.8, 0.8, 0.0)
CENTER_SPHERE_ALBEDO = (0.1, 0.2, 0.5)
BACKDROP_ALBEDO = (0.7, 0.7, 0.7)

GLASS_SPHERE_IOR = 1.5
# Inverted IOR models the air inside the glass shell
BUBBLE_IOR = 1.0 / GLASS_SPHERE_IOR

METAL_SPHERE_ALBEDO = (0.8, 0.6, 0.2)
METAL_SPHERE_ROUGHNESS = 0.3


@dataclass
class DemoCameraParams:
    """Camera settings for the demo scene.

    Attributes:
        vfov: Vertical field of view in degrees.
        focus_distance: Distance to the plane of perfect focus.
        defocus_angle: Depth-of-field cone angle in degrees (0 = pinhole).
    """

    vfov: float = 90.0
    focus_distance: float = 1.0
    defocus_angle: float = 0.0


def create_demo_scene(
    width: int = 256,
    height: int = 256,
    camera_params: DemoCameraParams | None = None,
) -> tuple[SceneManager, Camera]:
    """Create the demo scene and a camera looking at it.

    Creating the scene replaces whatever scene was previously loaded into
    the scene fields.

    Args:
        width: Image width in pixels.
        height: Image height in pixels.
        camera_params: Optional camera settings. Defaults to
            DemoCameraParams().

    Returns:
        A tuple of (SceneManager, Camera).

    Raises:
        ValueError: If the image size or camera settings are invalid.
    """
    if camera_params is None:
        camera_params = DemoCameraParams()

    scene = SceneManager()

    ground = scene.add_lambertian_material(GROUND_ALBEDO)
    center = scene.add_lambertian_material(CENTER_SPHERE_ALBEDO)
    glass = scene.add_dielectric_material(GLASS_SPHERE_IOR)
    bubble = scene.add_dielectric_material(BUBBLE_IOR)
    gold = scene.add_metal_material(METAL_SPHERE_ALBEDO, METAL_SPHERE_ROUGHNESS)
    backdrop = scene.add_lambertian_material(BACKDROP_ALBEDO)

    scene.add_sphere((0.0, -100.5, -1.0), 100.0, ground)
    scene.add_sphere((0.0, 0.0, -1.2), 0.5, center)
    scene.add_sphere((-1.0, 0.0, -1.0), 0.5, glass)
    scene.add_sphere((-1.0, 0.0, -1.0), 0.4, bubble)
    scene.add_sphere((1.0, 0.0, -1.0), 0.5, gold)

    scene.add_parallelogram(
        corner=(-4.0, -0.5, -4.0),
        edge1=(8.0, 0.0, 0.0),
        edge2=(0.0, 4.0, 0.0),
        material_id=backdrop,
    )

    camera = Camera(
        width=width,
        height=height,
        position=(0.0, 0.0, 0.0),
        look_at=(0.0, 0.0, -1.0),
        up=(0.0, 1.0, 0.0),
        vfov=camera_params.vfov,
        focus_distance=camera_params.focus_distance,
        defocus_angle=camera_params.defocus_angle,
    )

    return scene, camera
