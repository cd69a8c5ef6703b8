import logging
import sys
from dataclasses import dataclass
from typing import Callable, List, Optional

LOG_FILE = "/var/log/ha_wizard.log"

def setup_logger() -> logging.Logger:
    logger = logging.getLogger("ha_wizard")
    logger.setLevel(logging.DEBUG)

    fmt = logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )

    # Try to write to log file; fall back to /tmp if /var/log not writable
    try:
        fh = logging.FileHandler(LOG_FILE)
    except PermissionError:
        fh = logging.FileHandler("/tmp/ha_wizard.log")
    fh.setLevel(logging.DEBUG)
    fh.setFormatter(fmt)

    sh = logging.StreamHandler(sys.stderr)
    sh.setLevel(logging.WARNING)
    sh.setFormatter(fmt)

    if not logger.handlers:
        logger.addHandler(fh)
        logger.addHandler(sh)
    return logger

log = setup_logger()


@dataclass
class StatusEntry:
    success: bool
    message: str

    def __str__(self) -> str:
        icon = "✓" if self.success else "✗"
        return f"[{icon}] {self.message}"


class StatusLog:
    """Records the outcome of each system operation run during installation.

    Purely observational: nothing in the configuration sections reads it back.
    """

    def __init__(self, listener: Optional[Callable[[StatusEntry], None]] = None):
        self.entries: List[StatusEntry] = []
        self.listener = listener

    def info(self, message: str) -> None:
        log.info(message)
        self._add(StatusEntry(True, message))

    def log_status(self, success: bool, success_message: str, failure_message: str) -> None:
        if success:
            log.info(success_message)
            self._add(StatusEntry(True, success_message))
        else:
            log.error(failure_message)
            self._add(StatusEntry(False, failure_message))

    @property
    def failures(self) -> List[StatusEntry]:
        return [e for e in self.entries if not e.success]

    def _add(self, entry: StatusEntry) -> None:
        self.entries.append(entry)
        if self.listener:
            self.listener(entry)
