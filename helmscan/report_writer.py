"""Report emission to a file or stdout."""

import logging
import sys
from pathlib import Path
from typing import TextIO

from helmscan.errors import ReportWriteError
from helmscan.models.model_report import Report

logger = logging.getLogger(__name__)


def write_report(report: Report, output: Path | None = None, stream: TextIO | None = None) -> None:
    """Write the report as indented JSON.

    Args:
        report: Finished report
        output: File to write, overwritten if it exists. None writes to stream.
        stream: Stream used when output is None (default: sys.stdout)

    Raises:
        ReportWriteError: If the output file cannot be written
    """
    content = report.to_json()

    if output is None:
        stream = stream or sys.stdout
        stream.write(content + "\n")
        stream.flush()
        return

    output = Path(output)
    logger.info(f"Writing report to {output}")
    try:
        output.write_text(content, encoding="utf-8")
    except OSError as e:
        raise ReportWriteError(f"Cannot write report to {output}: {e}") from e
