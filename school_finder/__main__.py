"""Command-line entry point: ``python -m school_finder <command>``.

Commands:
    schools        Build ``schools.json`` from the GIAS and Ofsted CSVs.
    boundaries     Fetch and simplify postcode district boundaries.
    commute-times  Estimate commute minutes per district.
    house-prices   Aggregate median house prices per district.
    all            Run every stage (``--download``, ``--skip-house-prices``).

Configuration comes from environment variables (see ``PipelineConfig``).
Exit status is 0 on success, 1 on a pipeline error, and 2 on bad usage.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys

from school_finder import __version__
from school_finder.core.config import PipelineConfig
from school_finder.core.exceptions import PipelineError
from school_finder.orchestrators.data_pipeline import run_pipeline
from school_finder.stages.process_boundaries import process_boundaries
from school_finder.stages.process_commute_times import process_commute_times
from school_finder.stages.process_house_prices import process_house_prices
from school_finder.stages.process_schools import process_schools

logger = logging.getLogger("school_finder.cli")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

STAGES = {
    "schools": process_schools,
    "boundaries": process_boundaries,
    "commute-times": process_commute_times,
    "house-prices": process_house_prices,
}


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="school-finder-data",
        description="Build the School Finder map data artifacts.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "command",
        choices=[*STAGES, "all"],
        help="Stage to run, or 'all' for the full build",
    )
    parser.add_argument(
        "--download",
        action="store_true",
        help="Download the raw inputs first (only with 'all')",
    )
    parser.add_argument(
        "--skip-house-prices",
        action="store_true",
        help="Skip the ~4.5 GB Price Paid download and processing (only with 'all')",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    try:
        config = PipelineConfig.from_env()
    except PipelineError as exc:
        logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
        logger.error("Configuration invalid | %s", json.dumps(exc.to_error_dict()))
        return 1
    except ValueError as exc:
        logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
        logger.error("Configuration invalid | error=%s", exc)
        return 1

    logging.basicConfig(level=config.log_level_value, format=LOG_FORMAT)

    try:
        if args.command == "all":
            result = run_pipeline(
                config,
                download=args.download,
                skip_house_prices=args.skip_house_prices,
            )
        else:
            if args.download or args.skip_house_prices:
                logger.warning("--download and --skip-house-prices only apply to 'all'")
            result = STAGES[args.command](config).to_dict()
    except PipelineError as exc:
        logger.error("Pipeline failed | %s", json.dumps(exc.to_error_dict()))
        return 1

    logger.debug("Result | %s", json.dumps(result, default=str))
    logger.info("Done | command=%s", args.command)
    return 0


if __name__ == "__main__":
    sys.exit(main())
