"""Feature-point mesh motion tracking pipeline."""

import sys
from pathlib import Path

# Add parent directory to path for direct execution
if __name__ == "__main__":
    parent_dir = Path(__file__).parent.parent
    sys.path.insert(0, str(parent_dir))

import logging

import argparse

from core.motion_tracker import MotionTracker
from core.tracker_config import TrackerConfig
from core.video_processor import VideoProcessor
from helpers.renderer import Renderer

logger = logging.getLogger(__name__)


def setup_logging(debug: bool = False, log_file: str = "motion_tracker.log") -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler()
        ]
    )


def build_tracker(config: TrackerConfig) -> MotionTracker:
    return MotionTracker(config=config, renderer=Renderer())


def main(
    source="./data/motion.mp4",
    config: TrackerConfig = None,
    loop: bool = False,
    realtime: bool = False,
    output_path: str = None,
    show: bool = True
):
    """Run the motion mesh tracking pipeline."""
    config = config or TrackerConfig()
    logger.info("Initializing Motion Mesh Pipeline")

    app = VideoProcessor(build_tracker(config), window_title="tracked")

    logger.info(f"Processing source: {source}")

    app.run(
        source,
        loop=loop,
        realtime=realtime,
        output_path=output_path,
        show=show
    )


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Motion Mesh Pipeline")
    parser.add_argument("--source", default="./data/motion.mp4", help="Video source path or camera index")
    parser.add_argument("--debug", action="store_true", help="Log per-frame tracking instrumentation")
    parser.add_argument("--loop", action="store_true", help="Loop file sources")
    parser.add_argument("--realtime", action="store_true", help="Treat file input like realtime stream")
    parser.add_argument("--output", default=None, help="Output video file path for rendered frames")
    parser.add_argument("--headless", action="store_true", help="Disable display window (headless mode)")
    args = parser.parse_args()

    setup_logging(args.debug)
    main(
        source=args.source,
        config=TrackerConfig(debug=args.debug),
        loop=args.loop,
        realtime=args.realtime,
        output_path=args.output,
        show=not args.headless
    )
