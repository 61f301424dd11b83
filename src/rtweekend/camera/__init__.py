"""Camera module for view and ray generation.

Components:
    thin_lens: Look-at camera with optional depth of field

Ray generation uses normalized image coordinates:
    u in [0, 1]: left to right across image
    v in [0, 1]: bottom to top across image
"""

from .thin_lens import (
    DEFAULT_VFOV,
    Camera,
    CameraConfig,
    build_camera,
    camera_ray,
    generate_ray,
    get_camera_info,
    invalidate_active_camera,
    setup_camera,
)

__all__ = [
    "DEFAULT_VFOV",
    "Camera",
    "CameraConfig",
    "build_camera",
    "setup_camera",
    "generate_ray",
    "camera_ray",
    "get_camera_info",
    "invalidate_active_camera",
]
