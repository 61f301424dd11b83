#!/usr/bin/env python3
"""Render the demo scene (or a scene loaded from JSON) to a PNG file.

Usage:
    python examples/render_scene.py [options]

Options:
    --width WIDTH           Image width in pixels (default: 640)
    --height HEIGHT         Image height in pixels (default: 360)
    --frames FRAMES         Frames to accumulate (default: 32)
    --spp SPP               Samples per pixel per frame (default: 2)
    --max-bounces N         Scatter events per path (default: 8)
    --time SECONDS          Animation time of the demo scene (default: 0)
    --vfov DEGREES          Vertical field of view (default: 90)
    --aperture RADIUS       Lens radius for depth of field (default: 0)
    --scene FILE            JSON scene ({"materials": [...], "spheres": [...]})
    --solid-background R G B
                            Use a solid background instead of the sky gradient
    --seed SEED             Base noise seed (default: 0)
    --fixed-noise           Reuse the same noise pattern for every frame
    --output OUTPUT         Output file path (default: render.png)
    --cpu                   Force the CPU backend
    -v, --verbose           Log debug messages

Example:
    python examples/render_scene.py --width 320 --height 180 --frames 64 --aperture 0.05
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import time
from pathlib import Path

import taichi as ti

logger = logging.getLogger("render_scene")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render the demo scene or a JSON scene.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--width", type=int, default=640, help="Image width (default: 640)")
    parser.add_argument("--height", type=int, default=360, help="Image height (default: 360)")
    parser.add_argument("--frames", type=int, default=32, help="Frames to accumulate (default: 32)")
    parser.add_argument(
        "--spp", type=int, default=2, help="Samples per pixel per frame (default: 2)"
    )
    parser.add_argument(
        "--max-bounces", type=int, default=8, help="Scatter events per path (default: 8)"
    )
    parser.add_argument("--time", type=float, default=0.0, help="Animation time (default: 0)")
    parser.add_argument("--vfov", type=float, default=90.0, help="Vertical FOV (default: 90)")
    parser.add_argument("--aperture", type=float, default=0.0, help="Lens radius (default: 0)")
    parser.add_argument("--scene", type=Path, default=None, help="JSON scene file")
    parser.add_argument(
        "--solid-background",
        type=float,
        nargs=3,
        metavar=("R", "G", "B"),
        default=None,
        help="Solid background color instead of the sky gradient",
    )
    parser.add_argument("--seed", type=int, default=0, help="Base noise seed (default: 0)")
    parser.add_argument(
        "--fixed-noise",
        action="store_true",
        help="Reuse the same noise pattern for every frame",
    )
    parser.add_argument(
        "--output", type=str, default="render.png", help="Output file path (default: render.png)"
    )
    parser.add_argument("--cpu", action="store_true", help="Force the CPU backend")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug messages")
    return parser.parse_args(argv)


def render_scene(args: argparse.Namespace) -> Path:
    """Render according to parsed arguments and save the PNG.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports to allow Taichi initialization first
    from rtweekend.config import Background, RenderSettings
    from rtweekend.core.progressive import ProgressiveRenderer
    from rtweekend.preview.export import save_png
    from rtweekend.scene import demo_camera, demo_scene, scene_from_dict

    if args.scene is not None:
        with open(args.scene, encoding="utf-8") as f:
            scene = scene_from_dict(json.load(f))
        logger.info("Loaded scene from %s", args.scene)
    else:
        scene = demo_scene(args.time)

    camera = demo_camera(
        args.width,
        args.height,
        time=args.time,
        vfov=args.vfov,
        aperture_radius=args.aperture,
    )

    background = Background()
    if args.solid_background is not None:
        background = Background.solid(tuple(args.solid_background))

    settings = RenderSettings(
        samples_per_pixel=args.spp,
        max_bounces=args.max_bounces,
        background=background,
        animate_noise=not args.fixed_noise,
        seed=args.seed,
    )

    renderer = ProgressiveRenderer(scene, camera, settings)
    start_time = time.time()

    def progress(current: int, target: int) -> None:
        elapsed = time.time() - start_time
        logger.info("Frame %d/%d (%.1fs)", current, target, elapsed)

    renderer.render(args.frames, batch_size=max(1, args.frames // 8), callback=progress)

    output_file = Path(args.output)
    save_png(renderer, str(output_file))
    logger.info(
        "Saved %s (%d samples per pixel, %.2fs)",
        output_file.absolute(),
        renderer.sample_count,
        time.time() - start_time,
    )
    return output_file


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.cpu:
        ti.init(arch=ti.cpu)
    else:
        # Use GPU if available, fall back to CPU
        try:
            ti.init(arch=ti.gpu)
        except Exception:
            logger.warning("GPU backend unavailable, using CPU")
            ti.init(arch=ti.cpu)

    from rtweekend.errors import RaytracerError

    try:
        render_scene(args)
    except (RaytracerError, ValueError, OSError) as e:
        logger.error("%s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
