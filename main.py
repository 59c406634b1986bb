"""Main entry point for the motion mesh tracker."""

import argparse

from core.tracker_config import TrackerConfig


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Motion Mesh Tracker - follow feature-point meshes across video frames",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s --source 0                      Track from the webcam
  %(prog)s --source clip.mp4 --debug       Log vertex / mesh / match counts per frame
  %(prog)s --source clip.mp4 --max-absence 30 --gate-displacement
        """
    )

    parser.add_argument(
        "--source",
        default=None,
        help="Video source: file path, camera index (0), or None for default"
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Log per-frame tracking instrumentation (does not change results)"
    )

    parser.add_argument(
        "--max-absence",
        type=int,
        default=None,
        help="Drop tracked meshes absent for more than this many frames (default: keep forever)"
    )

    parser.add_argument(
        "--gate-displacement",
        action="store_true",
        help="Refuse matches whose centroid moved farther than the displacement bound"
    )

    parser.add_argument(
        "--max-edge-ratio",
        type=float,
        default=1.0,
        help="Maximum mesh edge length as a fraction of frame height"
    )

    parser.add_argument(
        "--max-displacement-ratio",
        type=float,
        default=0.833,
        help="Maximum centroid displacement per frame as a fraction of frame height"
    )

    parser.add_argument(
        "--structural-channel",
        choices=["hue", "backprojection"],
        default="hue",
        help="Channel used for the structural corner pass"
    )

    parser.add_argument(
        "--loop",
        action="store_true",
        help="Loop file sources"
    )

    parser.add_argument(
        "--realtime",
        action="store_true",
        help="Treat file input like realtime stream (no FPS pacing)"
    )

    parser.add_argument(
        "--output",
        default=None,
        help="Output video file path for rendered frames"
    )

    parser.add_argument(
        "--headless",
        action="store_true",
        help="Disable display window (headless mode)"
    )
    return parser


def config_from_args(args: argparse.Namespace) -> TrackerConfig:
    return TrackerConfig(
        max_edge_ratio=args.max_edge_ratio,
        max_displacement_ratio=args.max_displacement_ratio,
        gate_displacement=args.gate_displacement,
        max_absence=args.max_absence,
        structural_channel=args.structural_channel,
        debug=args.debug,
    )


def main(argv=None):
    """Parse the command line and run the tracking pipeline."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = config_from_args(args)
    except ValueError as e:
        parser.error(str(e))

    from pipelines.motion_pipeline import main as motion_main, setup_logging
    setup_logging(args.debug)

    source = args.source if args.source is not None else "./data/motion.mp4"
    motion_main(
        source=source,
        config=config,
        loop=args.loop,
        realtime=args.realtime,
        output_path=args.output,
        show=not args.headless
    )


if __name__ == "__main__":
    main()
