import argparse
import inspect


class CommandRegistrationError(Exception):
    """Exception raised when attempting to register a duplicate subcommand."""

# Subcommands known to the dispatcher, keyed by their command-line name.
_COMMAND_SPECS = {}


def _argument_for(parameter, argument_help):
    """Translate one handler parameter into add_argument() flags/kwargs.

    Parameters without a default become positionals; the rest become
    ``--options`` typed after their default, with booleans as switches.
    """
    kwargs = {}
    if parameter.default is inspect.Parameter.empty:
        flags = [parameter.name]
    else:
        flags = ["--" + parameter.name.replace("_", "-")]
        kwargs["dest"] = parameter.name
        kwargs["default"] = parameter.default
        if isinstance(parameter.default, bool):
            kwargs["action"] = "store_true"
        elif parameter.default is not None:
            kwargs["type"] = type(parameter.default)
    if parameter.name in argument_help:
        kwargs["help"] = argument_help[parameter.name].strip()
    return {"flags": flags, "kwargs": kwargs, "dest": parameter.name}


def register_command(help_text, description=None, help=None):
    """Register a command handler for the CLI dispatcher.

    The subcommand is named after the function, with underscores turned
    into dashes (``kill_port`` -> ``kill-port``).
    """
    argument_help = help or {}

    def decorator(func):
        name = func.__name__.replace("_", "-")
        if name in _COMMAND_SPECS:
            raise CommandRegistrationError(
                f"Command '{name}' already registered"
            )
        parameters = [
            p
            for p in inspect.signature(func).parameters.values()
            if p.kind not in (p.VAR_POSITIONAL, p.VAR_KEYWORD)
        ]
        _COMMAND_SPECS[name] = {
            "handler": func,
            "help": help_text.strip(),
            "description": (description or help_text).strip(),
            "arguments": [_argument_for(p, argument_help) for p in parameters],
        }
        return func

    return decorator


def registered_commands():
    """Return the registered command specs, keyed by subcommand name."""
    return dict(_COMMAND_SPECS)


def build_parser(prog="pysitet"):
    parser = argparse.ArgumentParser(
        prog=prog,
        description="Build, preview and decorate the course website.",
    )
    subparsers = parser.add_subparsers(dest="command", metavar="command")
    for name, spec in sorted(_COMMAND_SPECS.items()):
        subparser = subparsers.add_parser(
            name, help=spec["help"], description=spec["description"]
        )
        for argument in spec["arguments"]:
            subparser.add_argument(*argument["flags"], **argument["kwargs"])
    return parser
