"""
Main entry point for PartScout.
"""

import asyncio
import json
import sys

from partscout.utils.config import get_settings
from partscout.utils.logging import configure_logging, get_logger


async def initialize(json_logs: bool = True) -> None:
    """Initialize the application."""
    settings = get_settings()
    configure_logging(
        log_level=settings.general.log_level,
        json_format=json_logs,
    )

    logger = get_logger(__name__)
    logger.info(
        "PartScout initializing",
        version=settings.general.version,
        log_level=settings.general.log_level,
    )


async def shutdown() -> None:
    """Shutdown the application."""
    from partscout.orchestrator.operations import shutdown as shutdown_operations

    logger = get_logger(__name__)
    logger.info("PartScout shutting down")

    await shutdown_operations()

    logger.info("PartScout shutdown complete")


def main() -> None:
    """Main entry point."""
    import argparse

    parser = argparse.ArgumentParser(
        description="PartScout - appliance part lookup, compatibility and troubleshooting"
    )
    parser.add_argument(
        "--console-logs",
        action="store_true",
        help="Render logs for humans instead of JSON",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    part_parser = subparsers.add_parser("part", help="Look up a part by part number")
    part_parser.add_argument("part_number", help="Part number, e.g. PS11752778")

    compat_parser = subparsers.add_parser("compat", help="Check part/model compatibility")
    compat_parser.add_argument("part_number", help="Part number")
    compat_parser.add_argument("model_number", help="Appliance model number")

    help_parser = subparsers.add_parser("troubleshoot", help="Get repair help for a symptom")
    help_parser.add_argument("appliance", choices=["refrigerator", "dishwasher"])
    help_parser.add_argument("symptom", nargs="+", help="Symptom, e.g. not draining")

    args = parser.parse_args()

    async def async_main() -> dict:
        from partscout.orchestrator.operations import get_orchestrator

        await initialize(json_logs=not args.console_logs)

        try:
            orchestrator = get_orchestrator()

            if args.command == "part":
                result = await orchestrator.search_part(args.part_number)
            elif args.command == "compat":
                result = await orchestrator.check_compatibility(
                    args.part_number, args.model_number
                )
            else:
                result = await orchestrator.get_troubleshooting_info(
                    args.appliance, " ".join(args.symptom)
                )
            return result.to_dict()

        finally:
            await shutdown()

    output = asyncio.run(async_main())
    print(json.dumps(output, indent=2, ensure_ascii=False))
    if "error" in output:
        sys.exit(1)


if __name__ == "__main__":
    main()
