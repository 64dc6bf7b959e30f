"""Command line interface for slicseg."""
import argparse
import logging
import sys
from pathlib import Path

from slicseg.pipeline import SlicPipeline
from slicseg.types import ConfigError, DecodeError, EncodeError, SlicConfig


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser."""
    parser = argparse.ArgumentParser(
        prog='slicseg',
        description='SLIC superpixel segmentation of PNG images'
    )

    parser.add_argument(
        'input',
        type=str,
        help='Input PNG path'
    )

    parser.add_argument(
        '-o', '--output',
        type=str,
        default=None,
        help='Output PNG path for the segmented image'
    )

    parser.add_argument(
        '-k', '--segments',
        type=int,
        default=200,
        help='Target number of superpixels (default: 200)'
    )

    parser.add_argument(
        '-m', '--compactness',
        type=float,
        default=15.0,
        help='Compactness: higher gives rounder superpixels, lower follows edges (default: 15.0)'
    )

    parser.add_argument(
        '-t', '--iterations',
        type=int,
        default=10,
        help='Number of refinement iterations (default: 10)'
    )

    parser.add_argument(
        '--boundaries',
        action='store_true',
        help='Draw superpixel boundaries on the output'
    )

    parser.add_argument(
        '--no-show',
        action='store_true',
        help='Do not open a viewer window'
    )

    parser.add_argument(
        '--save-stages',
        type=str,
        default=None,
        help='Directory to save pipeline stage debug images'
    )

    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Verbose logging'
    )

    return parser


def main(args=None):
    """Main entry point."""
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    logging.basicConfig(
        level=logging.INFO if parsed_args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s"
    )

    try:
        config = SlicConfig(
            n_superpixels=parsed_args.segments,
            compactness=parsed_args.compactness,
            n_iterations=parsed_args.iterations
        )
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if parsed_args.save_stages:
        print(f"Debug stages will be saved to: {parsed_args.save_stages}")

    pipeline = SlicPipeline(config, draw_boundaries=parsed_args.boundaries)

    try:
        pipeline.process(
            Path(parsed_args.input),
            parsed_args.output,
            debug_stages=parsed_args.save_stages,
            show=not parsed_args.no_show
        )
    except (DecodeError, EncodeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())
