"""Main entry point for the JSON exporter."""
import argparse
import logging
import sys

from pythonjsonlogger.json import JsonFormatter

from json_exporter.config import load_config, parse_listen_address
from json_exporter.api import ExporterAPI


DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def build_formatter(log_format: str) -> logging.Formatter:
    """Formatter for the configured log format."""
    if log_format == "json":
        return JsonFormatter(
            "%(asctime)s %(levelname)s %(name)s %(message)s",
            datefmt=DATE_FORMAT
        )

    return logging.Formatter(
        "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt=DATE_FORMAT
    )


def setup_logging(log_level: str, log_format: str):
    """Setup logging configuration."""
    level = getattr(logging, log_level.upper(), logging.INFO)

    handler = logging.StreamHandler()
    handler.setFormatter(build_formatter(log_format))

    logging.basicConfig(
        level=level,
        handlers=[handler]
    )

    # Reduce noise from some libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="JSON Exporter - Expose JSON endpoints as Prometheus metrics"
    )
    parser.add_argument(
        "--config",
        "-c",
        default=None,
        help="Path to configuration YAML file"
    )
    parser.add_argument(
        "--listen-address",
        default=None,
        help="The address to listen on for HTTP requests (default :9116)"
    )
    return parser


def main(argv=None):
    """Main function."""
    args = build_parser().parse_args(argv)

    # Load configuration
    try:
        config = load_config(args.config)
        if args.listen_address is not None:
            parse_listen_address(args.listen_address)
            config.server.listen_address = args.listen_address
    except Exception as e:
        print(f"Error loading configuration: {e}", file=sys.stderr)
        sys.exit(1)

    # Setup logging
    setup_logging(config.global_.log_level, config.global_.log_format)
    logger = logging.getLogger(__name__)

    if args.config:
        logger.info(f"Configuration loaded from: {args.config}")
    logger.info(f"Target fetch timeout: {config.http_client.timeout_s}s")

    api = ExporterAPI(config)

    logger.info(f"Listening on {config.server.listen_address}")
    try:
        api.run(host=config.server.host, port=config.server.port)
    except Exception as e:
        logger.error(f"Server error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
