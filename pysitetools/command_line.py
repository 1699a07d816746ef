import logging
import os
import sys

from .command_registry import build_parser, registered_commands
from .config import ConfigError
from .logo import LogoBuildError
from .website import ServeError
# importing the modules above registers their subcommands
from . import logo, website  # noqa: F401

LOGLEVEL_ENV_VAR = "PYSITETOOLS_LOGLEVEL"
DEFAULT_COMMAND = "build"


def setup_logging():
    level = os.environ.get(LOGLEVEL_ENV_VAR, "WARNING").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(levelname)s: %(message)s",
    )


def main(argv=None):
    if argv is None:
        argv = sys.argv[1:]
    setup_logging()
    parser = build_parser()
    if not argv:
        # same as running the task runner without a recipe
        argv = [DEFAULT_COMMAND]
    args = parser.parse_args(argv)
    spec = registered_commands()[args.command]
    kwargs = {
        argument["dest"]: getattr(args, argument["dest"])
        for argument in spec["arguments"]
    }
    try:
        retval = spec["handler"](**kwargs)
    except (ConfigError, LogoBuildError, ServeError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        # Ctrl-C while a build runs; the child has already been interrupted
        print("")
        return 130
    return retval if retval is not None else 0


if __name__ == "__main__":
    sys.exit(main())
