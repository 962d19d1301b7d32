from __future__ import annotations

import io
from pathlib import Path

from .errors import WriteError


class Printer:
    """In-memory text buffer for one generated artifact."""

    def __init__(self, name: str):
        self.name = name
        self._buf = io.StringIO()

    def write(self, text: str) -> None:
        self._buf.write(text)

    def printf(self, fmt: str, *args: object) -> None:
        self._buf.write(fmt % args if args else fmt)

    def lines(self, lines: list[str]) -> None:
        """Write each line followed by a newline."""
        for ln in lines:
            self._buf.write(ln)
            self._buf.write("\n")

    def getvalue(self) -> str:
        return self._buf.getvalue()


def write_out(out_dir: Path, printer: Printer) -> Path:
    """Flush a printer to `out_dir/printer.name`.

    The file is closed on every path; failures are raised as WriteError.
    """
    path = Path(out_dir) / printer.name
    try:
        with path.open("w", encoding="utf-8", newline="\n") as f:
            f.write(printer.getvalue())
    except OSError as e:
        raise WriteError(f"could not write {path}: {e}") from e
    return path
