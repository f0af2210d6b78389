"""Extractor protocol shared by all image extraction strategies."""

from typing import Protocol


class ImageExtractor(Protocol):
    """Protocol defining the extractor contract.

    Extractors are pure: rendered manifest text in, ordered unique image
    references out. The orchestrator depends only on this protocol, so
    strategies can be swapped without touching it.
    """

    def extract(self, rendered: str) -> list[str]:
        """Extract image references.

        Args:
            rendered: Full rendered manifest text (multi-document YAML)

        Returns:
            Image references in first-seen order, without duplicates
        """
        ...
