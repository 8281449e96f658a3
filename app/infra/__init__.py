"""Infrastructure - Database, remote file transfer, logging."""

from app.infra.database import get_db_session, DatabaseSession, close_db_engine
from app.infra.sftp import SftpFileTransfer, get_file_transfer, RemoteTransferError
from app.infra.logging import setup_logging, get_logger

__all__ = [
    "get_db_session",
    "DatabaseSession",
    "close_db_engine",
    "SftpFileTransfer",
    "get_file_transfer",
    "RemoteTransferError",
    "setup_logging",
    "get_logger",
]
