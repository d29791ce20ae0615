"""
Main entry point for the vehicle image comparison pipeline
"""

import argparse
import json
import logging
import sys

from vehicle_match.data_models import VehicleView, LightingType
from vehicle_match.exceptions import VehicleComparisonError
from vehicle_match.service import VehicleComparisonService
from vehicle_match.utils.config_manager import ConfigManager


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Compare two vehicle images to detect licence plate swap fraud"
    )

    parser.add_argument(
        "--image1",
        type=str,
        help="Path to the first vehicle image"
    )

    parser.add_argument(
        "--image2",
        type=str,
        help="Path to the second vehicle image"
    )

    parser.add_argument(
        "--image1-base64",
        type=str,
        help="First vehicle image as a base64 string"
    )

    parser.add_argument(
        "--image2-base64",
        type=str,
        help="Second vehicle image as a base64 string"
    )

    parser.add_argument(
        "--output",
        type=str,
        help="Write the JSON result to this file"
    )

    parser.add_argument(
        "--config",
        type=str,
        help="Path to configuration file"
    )

    parser.add_argument(
        "--view",
        choices=[VehicleView.FRONT.value, VehicleView.REAR.value],
        help="Declared view of both images (skips view classification)"
    )

    parser.add_argument(
        "--lighting",
        choices=[LightingType.DAYLIGHT.value, LightingType.INFRARED.value],
        help="Declared lighting of both images (skips lighting classification)"
    )

    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging"
    )

    return parser


def configure_logging(config: ConfigManager, verbose: bool) -> None:
    logging_config = config.get_logging_params()
    level = logging.DEBUG if verbose else getattr(logging, str(logging_config.get('level', 'INFO')).upper(),
                                                  logging.INFO)
    logging.basicConfig(
        level=level,
        format=logging_config.get('format', '%(asctime)s - %(name)s - %(levelname)s - %(message)s'),
    )


def main(argv=None):
    """Main entry point for the vehicle comparison CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    use_files = args.image1 is not None or args.image2 is not None
    use_base64 = args.image1_base64 is not None or args.image2_base64 is not None

    if use_files == use_base64:
        print("Error: provide either --image1/--image2 or --image1-base64/--image2-base64")
        return 1
    if use_files and not (args.image1 and args.image2):
        print("Error: both --image1 and --image2 are required")
        return 1
    if use_base64 and not (args.image1_base64 and args.image2_base64):
        print("Error: both --image1-base64 and --image2-base64 are required")
        return 1

    # Load configuration
    try:
        config = ConfigManager(args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error loading configuration: {e}")
        return 1

    configure_logging(config, args.verbose)

    view = VehicleView(args.view) if args.view else None
    lighting = LightingType(args.lighting) if args.lighting else None

    service = VehicleComparisonService(config)

    try:
        if use_files:
            result = service.compare_image_files(args.image1, args.image2, view=view, lighting=lighting)
        else:
            result = service.compare_base64_images(args.image1_base64, args.image2_base64,
                                                   view=view, lighting=lighting)
    except VehicleComparisonError as e:
        print(f"Comparison failed: {e}")
        return 1

    print("Vehicle Comparison Result")
    print("=" * 50)
    print(f"Same vehicle:     {result.is_same_vehicle}")
    print(f"Similarity score: {result.similarity_score:.4f}")
    print(f"Confidence level: {result.confidence_level.value}")
    print(f"Processing time:  {result.processing_info.processing_time_ms} ms")

    if args.verbose:
        scores = result.to_dict()['detailed_scores']
        print("\nDetailed scores:")
        for name, value in scores.items():
            print(f"  {name}: {value:.4f}")

    if args.output:
        with open(args.output, 'w') as file:
            json.dump(result.to_dict(), file, indent=2)
        print(f"\nResult written to: {args.output}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
