"""Exception hierarchy for helmscan.

Fatal errors abort the run before any report is produced. Per-image errors
(subclasses of ImageScanError) are caught at the image-loop boundary and only
drop the offending image from the report.
"""


class HelmScanError(Exception):
    """Base class for all helmscan errors."""


class MissingTokenError(HelmScanError):
    """The scanner authentication token is not set."""


class ChartDescriptorError(HelmScanError):
    """Chart.yaml could not be read or does not carry name and version."""


class RenderError(HelmScanError):
    """Template rendering failed (raised only in fail-fast mode)."""


class ScannerPullError(HelmScanError):
    """The scanner runtime image could not be pulled (fail-fast mode only)."""


class ReportWriteError(HelmScanError):
    """The report could not be written to the requested output path."""


class ExtractionError(HelmScanError):
    """Image references could not be extracted from rendered manifests."""


class ManifestParseError(ExtractionError):
    """Rendered manifests are not valid YAML."""


class ImageScanError(HelmScanError):
    """Per-image failure. The image is dropped from the report."""

    def __init__(self, image_ref: str, message: str):
        super().__init__(f"{image_ref}: {message}")
        self.image_ref = image_ref
        self.message = message


class ImagePullError(ImageScanError):
    """Pulling the image to scan failed."""


class ScanRunError(ImageScanError):
    """Running the scanner container failed."""


class ScanOutputError(ImageScanError):
    """Scanner output is not valid JSON."""


class ContainerRuntimeError(HelmScanError):
    """The container runtime could not pull or start an image."""

    def __init__(self, message: str, returncode: int | None = None, stderr: str = ""):
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class ContainerRuntimeTimeout(ContainerRuntimeError):
    """A container runtime call exceeded its timeout."""
