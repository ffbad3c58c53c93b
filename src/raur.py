"""raur - Simple AUR helper

    Returns:
        int: Exit code
"""
import logging
import sys
from typing import List, Optional

from args import build_parser, parse_args
from common.http_client import HttpClient
from common.logging_utils import configure_logging, extra_context, is_debug_enabled
from common.process import CommandRunner
from commands import (
    Context,
    cmd_clean,
    cmd_info,
    cmd_install,
    cmd_search,
    cmd_uninstall,
    cmd_update,
)
from config import load_settings
from constants import ExitCodes
from errors import BuildError, ConfigError, InventoryError, SourceUnavailableError


def dispatch(args, ctx: Context) -> int:
    """Run the selected subcommand and return its exit code."""
    use_mirror = bool(getattr(args, "GITHUB", False))
    if args.action == "search":
        return cmd_search(ctx, args.query, use_mirror)
    if args.action == "install":
        return cmd_install(ctx, args.packages, use_mirror)
    if args.action == "update":
        return cmd_update(ctx, use_mirror)
    if args.action == "info":
        return cmd_info(ctx, args.package, use_mirror)
    if args.action == "clean":
        return cmd_clean(ctx)
    if args.action == "uninstall":
        return cmd_uninstall(ctx, args.packages)
    raise ValueError(f"unknown command: {args.action}")


def main(argv: Optional[List[str]] = None) -> int:
    """Main function of the program."""
    logger = logging.getLogger(__name__)

    args = parse_args(argv)
    configure_logging(getattr(args, "LOG_LEVEL", None), getattr(args, "LOG_FILE", None))

    if args.action is None:
        sys.stderr.write(
            f"error: '{build_parser().prog}' requires a subcommand but one was not provided\n"
            "\nFor more information, try '--help'.\n"
        )
        return ExitCodes.USAGE_ERROR.value

    try:
        settings = load_settings(args)
    except ConfigError as e:
        logging.error("Configuration error: %s", e)
        return ExitCodes.FILE_ERROR.value

    if is_debug_enabled(logger):
        logger.debug(
            "CLI start",
            extra=extra_context(
                event="function_entry",
                component="cli",
                action=args.action,
                outcome="mirror" if getattr(args, "GITHUB", False) else "aur"
            )
        )

    with HttpClient(timeout=settings.http_timeout, cache_ttl=settings.http_cache_ttl) as http:
        ctx = Context(settings=settings, http=http, runner=CommandRunner())
        try:
            return dispatch(args, ctx)
        except SourceUnavailableError as e:
            logging.error("%s", e)
            return ExitCodes.CONNECTION_ERROR.value
        except InventoryError as e:
            logging.error("Cannot read installed packages: %s", e)
            return ExitCodes.FILE_ERROR.value
        except BuildError as e:
            logging.error("%s", e)
            return ExitCodes.BUILD_FAILURE.value
        except OSError as e:
            logging.error("IO error: %s", e)
            return ExitCodes.FILE_ERROR.value
        except KeyboardInterrupt:
            logging.info("Interrupted by user")
            return 130


def run() -> None:
    """Console-script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    run()
