"""Pydantic models and dataclasses for helmscan."""

from helmscan.models.model_chart import ChartDescriptor
from helmscan.models.model_report import ImageEntry, Report
from helmscan.models.model_scanner import (
    CommandResult,
    ImageScanOutcome,
    ScanErrorType,
    ScanRunResult,
    ScanState,
)
from helmscan.models.model_settings import ExtractorKind, FailurePolicy, ScanSettings

__all__ = [
    # Report models
    "ImageEntry",
    "Report",
    # Chart models
    "ChartDescriptor",
    # Scanner models
    "CommandResult",
    "ImageScanOutcome",
    "ScanErrorType",
    "ScanRunResult",
    "ScanState",
    # Settings
    "ExtractorKind",
    "FailurePolicy",
    "ScanSettings",
]
