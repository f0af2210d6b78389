"""Image reference extraction strategies."""

from helmscan.extraction.base import ImageExtractor
from helmscan.extraction.line_scanner import LineImageExtractor, parse_image_line
from helmscan.extraction.manifest_parser import ManifestImageExtractor
from helmscan.models.model_settings import ExtractorKind


def get_extractor(kind: ExtractorKind | str) -> ImageExtractor:
    """Create the extractor for a strategy name."""
    kind = ExtractorKind(kind)
    if kind == ExtractorKind.MANIFEST:
        return ManifestImageExtractor()
    return LineImageExtractor()


__all__ = [
    "ImageExtractor",
    "LineImageExtractor",
    "ManifestImageExtractor",
    "get_extractor",
    "parse_image_line",
]
