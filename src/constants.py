"""Constants used in the project."""

from enum import Enum


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    CONNECTION_ERROR = 2
    BUILD_FAILURE = 3
    PACKAGE_NOT_FOUND = 4
    USAGE_ERROR = 64


class SourceKind(Enum):
    """Metadata backends a package version can be resolved from.

    Args:
        Enum (string): Metadata backends supported by the program.
    """

    AUR = "aur"
    MIRROR = "mirror"


class RemoveMakeDeps(Enum):
    """Policy for removing make dependencies after a build.

    Args:
        Enum (string): Accepted values of build.remove_make_deps.
    """

    ASK = "ask"
    ALWAYS = "always"
    NEVER = "never"


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    PROG = "raur"
    VERSION = "1.2.0"

    AUR_RPC_URL = "https://aur.archlinux.org/rpc/?v=5&"
    AUR_GIT_BASE = "https://aur.archlinux.org"
    MIRROR_RAW_BASE = "https://raw.githubusercontent.com/archlinux/aur"
    MIRROR_GIT_URL = "https://github.com/archlinux/aur.git"
    RECIPE_FILENAME = "PKGBUILD"

    # Debug/symbol-only split packages; matched case-insensitively on the name suffix
    DEBUG_SUFFIXES = ("-debug", "-dbg", "-dbgsym", "-debuginfo")

    LOG_FORMAT = "[%(levelname)s] %(message)s"
    ENV_LOG_LEVEL = "RAUR_LOG_LEVEL"
    REQUEST_TIMEOUT = 30  # Timeout in seconds for all HTTP requests
    HTTP_CACHE_TTL_SEC = 300
    USER_AGENT = f"{PROG}/{VERSION}"

    DEFAULT_WORKERS = 1
    CONFIG_FILENAME = "config.yml"
    LOCAL_CONFIG_FILE = "raur.yml"
