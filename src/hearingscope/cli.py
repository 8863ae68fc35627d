"""
CLI entry point for the hearing-loss visualizer.

Usage:
    hearingscope <audio_file> [options]
    python -m hearingscope <audio_file> [options]
"""

import argparse
import logging
import sys
from pathlib import Path

from hearingscope.config import MODES, VisualizerConfig
from hearingscope.core.profile import PRESETS, HearingProfileStore
from hearingscope.exceptions import ResourceUnavailable


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hearingscope",
        description="Real-time spectrum of an audio file as heard through a hearing profile",
    )

    parser.add_argument(
        "audio",
        type=Path,
        help="Input audio file (wav, mp3, flac, ogg)",
    )
    parser.add_argument(
        "-m", "--mode", type=str, default="bar",
        choices=list(MODES),
        help="Visualization: bar (raw vs. adjusted) or line (A-weighted, normalized) (default: bar)",
    )
    parser.add_argument(
        "-p", "--preset", type=str, default="normal",
        choices=list(PRESETS),
        help="Initial hearing profile (default: normal)",
    )

    # Display
    parser.add_argument("--width", type=int, default=800, help="Window width (default: 800)")
    parser.add_argument("--height", type=int, default=300, help="Window height (default: 300)")
    parser.add_argument("-f", "--fps", type=int, default=60, help="Refresh rate (default: 60)")

    # Analyser
    parser.add_argument(
        "--smoothing", type=float, default=0.8,
        help="Spectral smoothing between frames, 0-1 (default: 0.8)",
    )
    parser.add_argument(
        "--paused", action="store_true",
        help="Start with playback paused (space to play)",
    )

    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not args.audio.exists():
        print(f"Error: Audio file not found: {args.audio}", file=sys.stderr)
        sys.exit(1)

    config = VisualizerConfig(
        width=args.width,
        height=args.height,
        fps=args.fps,
        mode=args.mode,
        smoothing=args.smoothing,
    )

    # Imported late so --help works without initializing pygame
    from hearingscope.app import HearingVisualizer

    visualizer = HearingVisualizer(config, store=HearingProfileStore(args.preset))

    print(f"Visualizing: {args.audio} ({args.mode} view, {args.preset} profile)")
    print("Keys: 1-4 presets | B/L view | Space play/pause | arrows adjust bands | Esc quit")

    try:
        visualizer.run(args.audio, autoplay=not args.paused)
    except ResourceUnavailable as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        pass
    finally:
        visualizer.close()


if __name__ == "__main__":
    main()
