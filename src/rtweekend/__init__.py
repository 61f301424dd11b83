"""A Taichi path tracer for scenes made of spheres.

The same kernels run on the CPU and GPU backends of Taichi. Call
``ti.init`` before importing the subpackages that declare fields
(materials, scene, camera, core.integrator, core.progressive).

Subpackages:
    core: Rays, seeded sampling, the path tracer and progressive rendering
    geometry: Sphere primitive and intersection
    materials: Lambertian, metal and dielectric scattering
    scene: Immutable scenes, intersection queries and the demo scene
    camera: Thin-lens camera with ray generation
    preview: Gamma encoding and PNG export

Top-level modules:
    config: Render settings and background
    errors: Exception types
"""

__version__ = "0.1.0"
