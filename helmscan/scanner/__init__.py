"""Image scanning: chart labels, the Snyk scanner, and the scan pipeline."""

from helmscan.scanner.chart import get_chart_label, load_chart_descriptor
from helmscan.scanner.scan_orchestrator import ScanOrchestrator
from helmscan.scanner.snyk_scanner import SnykDockerScanner

__all__ = [
    "ScanOrchestrator",
    "SnykDockerScanner",
    "get_chart_label",
    "load_chart_descriptor",
]
