"""Argument parsing functionality for raur."""

import argparse
from typing import List, Optional

from constants import Constants


def _add_global_options(parser: argparse.ArgumentParser, suppress: bool) -> None:
    """Register options accepted before or after the subcommand.

    Subparsers register them with SUPPRESS defaults so a value given before
    the subcommand is not overwritten by the subparser's default.
    """
    def default(value):
        return argparse.SUPPRESS if suppress else value

    parser.add_argument("--github",
                        dest="GITHUB",
                        help="Use the GitHub AUR mirror instead of the AUR RPC",
                        action="store_true",
                        default=default(False))
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store",
                        type=str.upper,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        default=default(None))
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store",
                        type=str,
                        default=default(None))
    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help="Path to configuration file (YAML)",
                        action="store",
                        type=str,
                        default=default(None))
    parser.add_argument("-j", "--jobs",
                        dest="JOBS",
                        help="Number of concurrent version lookups during update",
                        action="store",
                        type=int,
                        default=default(None))
    parser.add_argument("--noconfirm",
                        dest="NOCONFIRM",
                        help="Answer yes to every prompt",
                        action="store_true",
                        default=default(False))


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog=Constants.PROG,
        description="Simple AUR Helper",
        add_help=True,
    )
    parser.add_argument("--version", action="version",
                        version=f"%(prog)s {Constants.VERSION}")
    _add_global_options(parser, suppress=False)

    common = argparse.ArgumentParser(add_help=False)
    _add_global_options(common, suppress=True)

    sub = parser.add_subparsers(dest="action", metavar="COMMAND")

    search = sub.add_parser("search", parents=[common], help="Search AUR packages")
    search.add_argument("query", help="Search term")

    install = sub.add_parser("install", aliases=["i"], parents=[common],
                             help="Install AUR packages")
    install.add_argument("packages", nargs="+", help="Package names")

    sub.add_parser("update", aliases=["u"], parents=[common],
                   help="Update installed AUR packages")

    info = sub.add_parser("info", parents=[common], help="Show package information")
    info.add_argument("package", help="Package name")

    sub.add_parser("clean", parents=[common], help="Clean build directories")

    uninstall = sub.add_parser("uninstall", aliases=["r"], parents=[common],
                               help="Uninstall AUR packages")
    uninstall.add_argument("packages", nargs="+", help="Package names")

    return parser


# Subcommand aliases resolve to their canonical names
ALIASES = {"i": "install", "u": "update", "r": "uninstall"}


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parses the arguments passed to the program."""
    ns = build_parser().parse_args(argv)
    if ns.action is not None:
        ns.action = ALIASES.get(ns.action, ns.action)
    return ns
