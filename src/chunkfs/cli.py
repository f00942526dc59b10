"""CLI entry point for chunkfs."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from chunkfs.config import ChunkFSConfig, load_config
from chunkfs.errors import ChunkFSError
from chunkfs.logging_config import configure_logging
from chunkfs.orchestrator import DEFAULT_CONTENT_TYPE, UploadOrchestrator
from chunkfs.storage import ACL, create_object_store
from chunkfs.tracking import create_upload_tracker

logger = logging.getLogger("chunkfs")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        argv: Argument list to parse. Defaults to sys.argv[1:].

    Returns:
        Parsed argument namespace.
    """
    parser = argparse.ArgumentParser(
        prog="chunkfs",
        description="chunkfs - upload a file to object storage in parts",
    )
    parser.add_argument("file", type=Path, help="Local file to upload")
    parser.add_argument(
        "--key",
        type=str,
        default=None,
        help="Destination object path (default: the file name)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to YAML configuration file (default: built-in defaults)",
    )
    parser.add_argument(
        "--content-type",
        type=str,
        default=DEFAULT_CONTENT_TYPE,
        help=f"MIME type of the uploaded object (default: {DEFAULT_CONTENT_TYPE})",
    )
    parser.add_argument(
        "--public",
        action="store_true",
        help="Make the object publicly readable",
    )
    parser.add_argument(
        "--part-size",
        type=int,
        default=None,
        help="Part size in bytes (overrides config)",
    )
    parser.add_argument(
        "--concurrency",
        type=int,
        default=4,
        help="Parts in flight at once (default: 4)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (overrides config, default: INFO)",
    )
    parser.add_argument(
        "--log-format",
        type=str,
        default=None,
        choices=["text", "json"],
        help="Log format: 'text' (human-readable) or 'json' (structured)",
    )
    return parser.parse_args(argv)


async def run_upload(config: ChunkFSConfig, args: argparse.Namespace) -> str:
    """Upload ``args.file`` through the configured backends.

    Returns:
        The URL of the uploaded object.
    """
    if config.metrics.enabled:
        from chunkfs import metrics

        metrics.init_metrics()

    storage = create_object_store(config.storage)
    tracker = create_upload_tracker(config.tracking)
    await storage.init()
    try:
        orchestrator = UploadOrchestrator(storage, tracker)
        return await orchestrator.upload(
            args.key or args.file.name,
            args.file.read_bytes(),
            content_type=args.content_type,
            acl=ACL.PUBLIC if args.public else ACL.PRIVATE,
            part_size=config.upload.part_size,
            concurrency=args.concurrency,
        )
    finally:
        await storage.close()


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the chunkfs CLI.

    Loads configuration, applies CLI overrides, uploads the file and prints
    the resulting object URL.

    Args:
        argv: Argument list to parse. Defaults to sys.argv[1:].
    """
    args = parse_args(argv)

    # Basic stderr logger for config-loading errors
    logging.basicConfig(level=logging.INFO, stream=sys.stderr)

    if args.config is None:
        config = ChunkFSConfig()
    else:
        try:
            config = load_config(args.config)
        except FileNotFoundError:
            logger.error("Config file not found: %s", args.config)
            sys.exit(1)
        except Exception as exc:
            logger.error("Failed to load config: %s", exc)
            sys.exit(1)

    if args.log_level is not None:
        config.logging.level = args.log_level
    if args.log_format is not None:
        config.logging.format = args.log_format
    if args.part_size is not None:
        config.upload.part_size = args.part_size

    configure_logging(level=config.logging.level, fmt=config.logging.format)

    if not args.file.is_file():
        logger.error("File not found: %s", args.file)
        sys.exit(1)

    try:
        url = asyncio.run(run_upload(config, args))
    except ChunkFSError as exc:
        logger.error("Upload failed: %s", exc.message)
        sys.exit(1)
    except ValueError as exc:
        logger.error("Invalid storage setup: %s", exc)
        sys.exit(1)

    print(url)


if __name__ == "__main__":
    main()
