"""
Commands that read and write individual keys of a storage object
"""

# Standard
import argparse
import json

# Third Party
import yaml

# First Party
import alog

# Local
from .base import StorageCmdBase

log = alog.use_channel("MAIN")


class PutCmd(StorageCmdBase):
    """Set the value of a key"""

    name = "put"

    def add_subparser(
        self,
        subparsers: argparse._SubParsersAction,
    ) -> argparse.ArgumentParser:
        parser = subparsers.add_parser(self.name, help=self.__doc__)
        parser.add_argument("key", help="The key to set")
        parser.add_argument("value", help="The value to store")
        self.add_storage_args(parser)
        return parser

    def cmd(self, args: argparse.Namespace):
        self.get_storage(args).put(args.key, args.value)
        log.debug("Put key [%s]", args.key)


class CreateCmd(PutCmd):
    """Set the value of a key (same as put)"""

    name = "create"


class DeleteCmd(StorageCmdBase):
    """Remove a key"""

    def add_subparser(
        self,
        subparsers: argparse._SubParsersAction,
    ) -> argparse.ArgumentParser:
        parser = subparsers.add_parser("delete", help=self.__doc__)
        parser.add_argument("key", help="The key to remove")
        self.add_storage_args(parser)
        return parser

    def cmd(self, args: argparse.Namespace):
        self.get_storage(args).delete(args.key)
        log.debug("Deleted key [%s]", args.key)


class SearchCmd(StorageCmdBase):
    """Print the value of a key"""

    def add_subparser(
        self,
        subparsers: argparse._SubParsersAction,
    ) -> argparse.ArgumentParser:
        parser = subparsers.add_parser("search", help=self.__doc__)
        parser.add_argument("key", help="The key to look up")
        self.add_storage_args(parser)
        return parser

    def cmd(self, args: argparse.Namespace):
        print(self.get_storage(args).search(args.key))


class ExistsCmd(StorageCmdBase):
    """Print whether a key exists. Exits with 1 if it does not."""

    def add_subparser(
        self,
        subparsers: argparse._SubParsersAction,
    ) -> argparse.ArgumentParser:
        parser = subparsers.add_parser("exists", help=self.__doc__)
        parser.add_argument("key", help="The key to check")
        self.add_storage_args(parser)
        return parser

    def cmd(self, args: argparse.Namespace) -> int:
        found = self.get_storage(args).exists(args.key)
        print("true" if found else "false")
        return 0 if found else 1


class ListCmd(StorageCmdBase):
    """Print the keys under a key, relative to it"""

    OUTPUT_FORMATS = ["text", "json", "yaml"]

    def add_subparser(
        self,
        subparsers: argparse._SubParsersAction,
    ) -> argparse.ArgumentParser:
        parser = subparsers.add_parser("list", help=self.__doc__)
        parser.add_argument("key", help="The key to list under")
        parser.add_argument(
            "--output",
            choices=self.OUTPUT_FORMATS,
            default="text",
            help="Output format for the listed keys",
        )
        self.add_storage_args(parser)
        return parser

    def cmd(self, args: argparse.Namespace):
        sub_keys = self.get_storage(args).list(args.key)
        if args.output == "json":
            print(json.dumps(sub_keys))
        elif args.output == "yaml":
            print(yaml.safe_dump(sub_keys, default_flow_style=False), end="")
        else:
            for sub_key in sub_keys:
                print(sub_key)
