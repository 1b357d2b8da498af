import argparse
import json
import logging
import sys

from dotenv import load_dotenv

from helpers.device_classifier import DeviceClassifier, OVERRIDE_MODES
from helpers.environment import EnvironmentInfo
from helpers.reactive import Ref


def classify(user_agent: str, width: int, height: int, mode: str = "auto") -> dict:
    classifier = DeviceClassifier(Ref(mode), EnvironmentInfo(user_agent, width, height))
    return classifier.snapshot()


def print_report(result: dict):
    print(f"Device: {result['device_key']}")
    flags = [name for name, value in result.items() if value is True]
    print(f"Flags:  {', '.join(flags) if flags else '(none)'}")
    if result["root_classes"]:
        print(f"Root classes: {' '.join(result['root_classes'])}")


def main(argv=None):
    load_dotenv()
    logging.basicConfig(level=logging.WARNING, format="[%(asctime)s] [%(levelname)s] %(message)s")

    parser = argparse.ArgumentParser(
        description=(
            "Classify a client as mobile, tablet or desktop from its user agent "
            "and viewport size, and report the detected browser family flags."
        )
    )
    parser.add_argument("--ua", default="", help="User agent string (default: empty).")
    parser.add_argument("--width", type=int, help="Viewport width in CSS pixels.")
    parser.add_argument("--height", type=int, help="Viewport height in CSS pixels.")
    parser.add_argument(
        "--mode",
        default="auto",
        choices=OVERRIDE_MODES,
        help="Force a device category instead of detecting it (default: auto)."
    )
    parser.add_argument("--json", action="store_true", help="Print the result as JSON.")

    args_list = sys.argv[1:] if argv is None else argv

    # If no args provided, show help and exit
    if not args_list:
        parser.print_help()
        return 0

    args = parser.parse_args(args_list)

    if args.width is None or args.height is None:
        parser.error("--width and --height are required")

    if args.width < 0 or args.height < 0:
        parser.error("--width and --height must not be negative")

    result = classify(args.ua, args.width, args.height, args.mode)

    if args.json:
        print(json.dumps(result, indent=2))
    else:
        print_report(result)
    return 0


if __name__ == "__main__":
    sys.exit(main())
