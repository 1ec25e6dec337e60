# stdlib
from pathlib import Path
from datetime import datetime
from typing import Optional
from types import TracebackType
# projectlib
from occupancy_detection.utils.paths import validate_address
from occupancy_detection.utils.typing import Verbosity, Address

# Tags prefixed to messages by verbosity level
LEVEL_TAGS = {0: "INFO", 1: "INFO", 2: "DEBUG"}

class Logger(object):
    """
    Lightweight callable logger for pipeline stages.

    Messages are filtered against a verbosity threshold and either
    printed to stdout or appended to ``log.txt`` in ``log_dir``. Each
    message is prefixed with a timestamp, a level tag and, when given,
    the name of the emitting stage, e.g.
    ``[2012-07-01T10:00:00] INFO alignment: 120 days aligned``.

    Warnings are reserved for recoverable data-quality events (dropped
    days, dropped windows, degenerate features) and are always emitted.
    """

    def __init__(
        self,
        verbose: Verbosity = 0,
        log_dir: Optional[Address] = None,
        write_log: bool = False,
        name: Optional[str] = None,
    ) -> None:
        """
        Initialize the logger.

        Parameters
        ----------
        verbose : Verbosity, default 0
            Verbosity threshold. Messages with a verbosity level less
            than or equal to this value will be emitted.
        log_dir : Address, optional
            Directory in which ``log.txt`` is written if ``write_log``
            is True. Defaults to the current working directory.
        write_log : bool, default False
            If True, messages are appended to the log file instead of
            being printed.
        name : str, optional
            Stage name included in every message.
        """
        self.verbose = verbose
        self.name = name
        self.write_log = write_log
        self.log_path: Optional[Path] = None
        if write_log:
            directory = Path.cwd() if log_dir is None else log_dir
            self.log_path = (
                validate_address(directory, directory=True, mkdir=True)
                / "log.txt"
            )

    def __call__(self, msg: str, verbosity: int = 0) -> None:
        """
        Emit ``msg`` if ``self.verbose >= verbosity``.

        Allows usage such as ``logger("message", verbosity=1)``.
        """
        if self.verbose >= verbosity:
            self.emit(self._format(msg, LEVEL_TAGS.get(verbosity, "DEBUG")))

    def warning(self, msg: str) -> None:
        """Emit a warning regardless of the verbosity threshold."""
        self.emit(self._format(msg, "WARNING"))

    def child(self, name: str) -> "Logger":
        """Return a logger sharing this configuration under a new name."""
        logger = Logger(verbose=self.verbose, name=name)
        logger.write_log = self.write_log
        logger.log_path = self.log_path
        return logger

    def emit(self, formatted: str) -> None:
        """Route a formatted message to the log file or stdout."""
        if self.write_log and self.log_path is not None:
            with open(self.log_path, "a", encoding="utf-8") as file:
                file.write(formatted + "\n")
        else:
            print(formatted)

    def _format(self, msg: str, tag: str) -> str:
        ts = datetime.now().isoformat(timespec="seconds")
        scope = f" {self.name}:" if self.name else ""
        return f"[{ts}] {tag}{scope} {msg}"

    def __enter__(self) -> "Logger":
        return self

    def __exit__(
            self,
            exc_type: Optional[type[BaseException]],
            exc: Optional[BaseException],
            tb: Optional[TracebackType]
        ) -> None:
        if exc is not None:
            self.warning(f"aborted with {type(exc).__name__}: {exc}")
