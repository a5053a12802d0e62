#!/usr/bin/env python3
"""
Parking Occupancy Detection - Main Entry Point

Command-line interface for detecting occupied parking slots in still images,
serving the HTTP API, and loading slot catalogs into the database.
"""

import argparse
import json
import logging
import os
import sys

import yaml

from parking_occupancy_app import ParkingOccupancyApp
from storage.models import create_session_factory
from storage.slot_catalog import SlotCatalog
from utils.config import load_config


def parse_arguments(argv=None):
    """Parse command-line arguments.

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        description='Parking Occupancy Detection - Decide which parking slots are occupied from a single image',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Load slot rectangles into the database
  python main.py seed --slots slots.yaml

  # Detect occupancy for parking lot 1
  python main.py detect --image lot.jpg --lot 1

  # Process all images in a directory and write annotated copies
  python main.py detect --image-dir captures/ --annotate

  # Use the stricter occupancy policy
  python main.py detect --image lot.jpg --policy tiered-centroid

  # Run the HTTP API
  python main.py serve --port 8080
        """
    )

    parser.add_argument(
        '--config', '-c',
        type=str,
        default='config.yaml',
        help='Path to configuration YAML file (default: config.yaml)'
    )

    subparsers = parser.add_subparsers(dest='command', required=True)

    # detect
    detect_parser = subparsers.add_parser('detect', help='Detect slot occupancy in images')
    input_group = detect_parser.add_mutually_exclusive_group(required=True)
    input_group.add_argument(
        '--image', '-i',
        type=str,
        help='Path to input image file'
    )
    input_group.add_argument(
        '--image-dir', '-d',
        type=str,
        help='Path to directory containing image files (processes all images)'
    )
    detect_parser.add_argument(
        '--lot', '-l',
        type=int,
        default=None,
        help='Parking lot id whose slot catalog applies (default: server.default_parking_lot_id)'
    )
    detect_parser.add_argument(
        '--annotate',
        action='store_true',
        help='Write an annotated copy of each image'
    )
    detect_parser.add_argument(
        '--output-dir', '-o',
        type=str,
        help='Output directory for annotated images and reports (overrides config)'
    )

    detection_group = detect_parser.add_argument_group('detection options')
    detection_group.add_argument(
        '--model',
        type=str,
        help='Path to model file (overrides config)'
    )
    detection_group.add_argument(
        '--confidence',
        type=float,
        help='Detection confidence threshold 0.0-1.0 (overrides config)'
    )
    detection_group.add_argument(
        '--policy',
        type=str,
        choices=['sensitive-or', 'tiered-centroid'],
        help='Occupancy decision policy (overrides config)'
    )

    # serve
    serve_parser = subparsers.add_parser('serve', help='Run the HTTP API')
    serve_parser.add_argument('--host', type=str, help='Bind address (overrides config)')
    serve_parser.add_argument('--port', type=int, help='Port (overrides config)')

    # seed
    seed_parser = subparsers.add_parser('seed', help='Load slot catalogs from YAML into the database')
    seed_parser.add_argument(
        '--slots', '-s',
        type=str,
        required=True,
        help='Path to slot catalog YAML file'
    )

    return parser.parse_args(argv)


def apply_cli_overrides(config: dict, args: argparse.Namespace) -> dict:
    """Apply command-line argument overrides to configuration.

    Args:
        config: Base configuration dictionary
        args: Parsed command-line arguments

    Returns:
        Updated configuration dictionary
    """
    if getattr(args, 'output_dir', None):
        config.setdefault('output', {})['output_directory'] = args.output_dir

    if getattr(args, 'model', None):
        config.setdefault('detection', {})['model_path'] = args.model

    if getattr(args, 'confidence', None) is not None:
        config.setdefault('detection', {})['confidence_threshold'] = args.confidence

    if getattr(args, 'policy', None):
        config.setdefault('occupancy', {})['policy'] = args.policy

    if getattr(args, 'host', None):
        config.setdefault('server', {})['host'] = args.host

    if getattr(args, 'port', None) is not None:
        config.setdefault('server', {})['port'] = args.port

    return config


def run_detect(config: dict, args: argparse.Namespace) -> int:
    app = ParkingOccupancyApp.from_config(config)
    parking_lot_id = args.lot if args.lot is not None else config['server'].get('default_parking_lot_id', 1)

    if args.image:
        reports = [app.process_image(args.image, parking_lot_id, annotate=args.annotate)]
    else:
        if not os.path.isdir(args.image_dir):
            print(f"Error: Directory not found: {args.image_dir}")
            return 1
        reports = app.process_directory(args.image_dir, parking_lot_id, annotate=args.annotate)
        if not reports:
            print(f"\n✗ No images found or processed")
            return 1

    for report in reports:
        print(json.dumps(report.to_dict(), indent=2))

    if app.detection_log is not None:
        app.detection_log.close()

    successful = sum(1 for r in reports if r.success)
    print(f"\n{'='*60}")
    print(f"Processed {len(reports)} image(s): {successful} successful, {len(reports) - successful} failed")
    print(f"{'='*60}")

    return 0 if successful > 0 else 1


def run_serve(config: dict) -> int:
    from server import create_app

    occupancy_app = ParkingOccupancyApp.from_config(config)
    server_config = config.get('server', {})
    flask_app = create_app(occupancy_app, config)

    print(f"🚀 Server running on port {server_config.get('port', 5000)}")
    flask_app.run(
        host=server_config.get('host', '0.0.0.0'),
        port=int(server_config.get('port', 5000)),
        threaded=True
    )
    return 0


def run_seed(config: dict, args: argparse.Namespace) -> int:
    if not os.path.exists(args.slots):
        print(f"Error: Slot file not found: {args.slots}")
        return 1

    catalog = SlotCatalog(create_session_factory(config['database']['url']))
    count = catalog.seed_from_yaml(args.slots)
    print(f"🅿️  Parking slots stored: {count}")
    return 0


def main(argv=None):
    """Main entry point for the parking occupancy system."""
    args = parse_arguments(argv)

    # Missing config file falls back to defaults plus environment
    config_path = args.config if os.path.exists(args.config) else None

    try:
        config = load_config(config_path)
    except yaml.YAMLError as e:
        print(f"Error parsing configuration file: {e}")
        sys.exit(1)

    config = apply_cli_overrides(config, args)

    logging.basicConfig(
        level=getattr(logging, str(config['logging'].get('level', 'INFO')).upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        if args.command == 'detect':
            sys.exit(run_detect(config, args))
        elif args.command == 'serve':
            sys.exit(run_serve(config))
        elif args.command == 'seed':
            sys.exit(run_seed(config, args))

    except KeyboardInterrupt:
        print("\n\nProcessing interrupted by user")
        sys.exit(130)

    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
