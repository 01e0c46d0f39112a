"""Services for netmigo."""

from netmigo.services.artifacts import OutputStore
from netmigo.services.connector import ConnectionManager
from netmigo.services.interactive import InteractiveExecutor
from netmigo.services.multi import MultiCommandExecutor
from netmigo.services.pool import JumpClientPool
from netmigo.services.reader import LineReader, StreamEnd
from netmigo.services.scp import FileTransferClient

__all__ = [
    "ConnectionManager",
    "FileTransferClient",
    "InteractiveExecutor",
    "JumpClientPool",
    "LineReader",
    "MultiCommandExecutor",
    "OutputStore",
    "StreamEnd",
]
