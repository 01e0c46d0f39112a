"""Output artifact files for captured command output."""

import logging
import secrets
from datetime import datetime
from pathlib import Path

from netmigo.exceptions import TransportError

logger = logging.getLogger(__name__)


class OutputStore:
    """Creates uniquely named output files under one directory.

    The directory is created on first use. Files are never removed here.
    """

    def __init__(self, directory: Path | str = "ssh_command_outputs") -> None:
        self.directory = Path(directory)

    def create(self, index: int | None = None) -> Path:
        """Create a new empty artifact file.

        Args:
            index: Command index within a batch, or None for a single command

        Returns:
            Path of the created file

        Raises:
            TransportError: If the directory or file cannot be created
        """
        stamp = datetime.now().strftime("%Y%m%d%H%M%S.%f")
        nonce = secrets.token_hex(3)
        if index is None:
            name = f"cmd_output_{stamp}_{nonce}.txt"
        else:
            name = f"cmd_multi_output_{index}_{stamp}_{nonce}.txt"
        path = self.directory / name

        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            path.touch(exist_ok=False)
        except OSError as e:
            logger.error("Failed to create output file %s: %s", path, e)
            raise TransportError(f"Failed to create output file {path}: {e}") from e

        logger.debug("Created output file %s", path)
        return path
