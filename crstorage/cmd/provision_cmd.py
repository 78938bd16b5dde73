"""
Register the resource type and create the namespace and storage object
"""

# Standard
import argparse

# First Party
import alog

# Local
from .base import StorageCmdBase

log = alog.use_channel("MAIN")


class ProvisionCmd(StorageCmdBase):
    __doc__ = __doc__

    def add_subparser(
        self,
        subparsers: argparse._SubParsersAction,
    ) -> argparse.ArgumentParser:
        parser = subparsers.add_parser("provision", help=__doc__)
        self.add_storage_args(parser)
        return parser

    def cmd(self, args: argparse.Namespace):
        # Provisioning happens on construction
        storage = self.get_storage(args)
        log.info("Storage object [%s] is ready", storage.endpoint)
