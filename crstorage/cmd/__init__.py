"""
This module holds all of the command classes for crstorage's main entrypoint
"""

# Local
from .base import CmdBase, StorageCmdBase
from .key_cmds import CreateCmd, DeleteCmd, ExistsCmd, ListCmd, PutCmd, SearchCmd
from .provision_cmd import ProvisionCmd
