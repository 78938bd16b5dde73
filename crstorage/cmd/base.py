"""
Base classes for all crstorage commands
"""

# Standard
from typing import Optional
import abc
import argparse

# Local
from .. import config
from ..storage import Storage


class CmdBase(abc.ABC):
    __doc__ = __doc__

    @abc.abstractmethod
    def add_subparser(
        self,
        subparsers: argparse._SubParsersAction,
    ) -> argparse.ArgumentParser:
        """Add this command's argument parser subcommand

        Args:
            subparsers (argparse._SubParsersAction): The subparser section for
                the central main parser

        Returns:
            subparser (argparse.ArgumentParser): The configured parser for this
                command
        """

    @abc.abstractmethod
    def cmd(self, args: argparse.Namespace) -> Optional[int]:
        """Execute the command with the parsed arguments

        Args:
            args (argparse.Namespace): The parsed command line arguments

        Returns:
            exit_code (Optional[int]): Non-zero to signal failure to the shell
        """


class StorageCmdBase(CmdBase):
    """Shared base for commands that act on a storage object"""

    @staticmethod
    def add_storage_args(parser: argparse.ArgumentParser):
        storage_args = parser.add_argument_group("Storage Object")
        storage_args.add_argument(
            "--object-name",
            "-o",
            default=None,
            help="Name of the storage object. Defaults to storage_object.name",
        )
        storage_args.add_argument(
            "--namespace",
            "-n",
            default=None,
            help="Namespace of the storage object. Defaults to storage_object.namespace",
        )

    @staticmethod
    def get_storage(args: argparse.Namespace) -> Storage:
        """Build the Storage addressed by the parsed args"""
        return Storage.from_config(
            object_name=args.object_name,
            namespace=args.namespace,
            timeout=config.request_timeout,
        )
