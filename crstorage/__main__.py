#!/usr/bin/env python
"""
Read and write keys held in a custom resource storage object
"""

# Standard
from typing import Dict, List, Optional, Tuple
import argparse
import sys

# First Party
import aconfig
import alog

# Local
from .cmd import (
    CmdBase,
    CreateCmd,
    DeleteCmd,
    ExistsCmd,
    ListCmd,
    ProvisionCmd,
    PutCmd,
    SearchCmd,
)
from .config import library_config
from .exceptions import StorageError
from .log_format import StorageJsonFormatter

## Constants ###################################################################

log = alog.use_channel("MAIN")

## Helpers #####################################################################


def add_library_config_args(
    parser, config_obj=None, path=None
) -> Dict[str, List[str]]:
    """Automatically add args for all elements of the library config"""
    path = path or []
    setters = {}
    config_obj = library_config if config_obj is None else config_obj
    for key, val in config_obj.items():
        sub_path = path + [key]

        # If this is a nested arg, recurse
        if isinstance(val, aconfig.AttributeAccessDict):
            setters.update(add_library_config_args(parser, config_obj=val, path=sub_path))
            continue

        arg_name = ".".join(sub_path)
        dest_name = "_".join(sub_path)
        kwargs = {
            "default": val,
            "dest": dest_name,
            "help": f"Library config override for {arg_name} (see crstorage.config)",
        }
        if isinstance(val, bool):
            kwargs["action"] = "store_true"
        elif val is not None:
            kwargs["type"] = type(val)
        parser.add_argument(f"--{arg_name}", **kwargs)
        setters[dest_name] = sub_path
    return setters


def update_library_config(args: argparse.Namespace, setters: Dict[str, List[str]]):
    """Update the library config values based on the parsed arguments"""
    for dest_name, config_path in setters.items():
        config_obj = library_config
        for part in config_path[:-1]:
            config_obj = config_obj[part]
        config_obj[config_path[-1]] = getattr(args, dest_name)


def add_command(
    subparsers: argparse._SubParsersAction,
    cmd: CmdBase,
) -> Tuple[argparse.ArgumentParser, Dict[str, List[str]]]:
    """Add the subparser and set up the default fun call"""
    parser = cmd.add_subparser(subparsers)
    parser.set_defaults(func=cmd.cmd)
    library_args = parser.add_argument_group("Library Configuration")
    library_config_setters = add_library_config_args(library_args)
    return parser, library_config_setters


## Main ########################################################################


def main(argv: Optional[List[str]] = None) -> int:
    """Parse the command line, run the command, and return the exit code"""
    parser = argparse.ArgumentParser(description=__doc__)
    subparsers = parser.add_subparsers(help="Available commands", dest="command")
    subparsers.required = True
    library_config_setters = {}
    for cmd in [
        ProvisionCmd(),
        PutCmd(),
        CreateCmd(),
        SearchCmd(),
        ExistsCmd(),
        ListCmd(),
        DeleteCmd(),
    ]:
        _, library_config_setters = add_command(subparsers, cmd)
    args = parser.parse_args(argv)

    # Provide overrides to the library configs
    update_library_config(args, library_config_setters)

    # Reconfigure logging
    alog.configure(
        default_level=library_config.log_level,
        filters=library_config.log_filters,
        formatter=StorageJsonFormatter() if library_config.log_json else "pretty",
        thread_id=library_config.log_thread_id,
    )

    try:
        return args.func(args) or 0
    except StorageError as err:
        log.error("%s failed [%s]: %s", args.command, err.kind.value, err)
        return 1


def cli():
    """Console script entrypoint"""
    sys.exit(main())


if __name__ == "__main__":  # pragma: no cover
    cli()
