"""Line-based image extraction that tolerates non-YAML rendered output."""

import logging

logger = logging.getLogger(__name__)

IMAGE_KEY = "image:"
KEY_VALUE_SEPARATOR = ": "
QUOTE_CHARS = ('"', "'")


def _strip_quotes(value: str) -> str:
    """Strip exactly one layer of matching double or single quotes."""
    if len(value) >= 2 and value[0] in QUOTE_CHARS and value[0] == value[-1]:
        return value[1:-1]
    return value


def parse_image_line(line: str) -> str | None:
    """Return the image reference on an `image:` line, or None.

    Only the first ": " splits key from value, so registry ports and tags
    survive intact:
        image: registry:5000/repo:tag -> registry:5000/repo:tag
        image: "repo/img:tag"         -> repo/img:tag
        imageTag: something           -> None
        image:                        -> None
    """
    trimmed = line.strip()
    if not trimmed.startswith(IMAGE_KEY):
        return None

    parts = trimmed.split(KEY_VALUE_SEPARATOR, 1)
    if len(parts) != 2:
        return None

    image_ref = _strip_quotes(parts[1].strip())
    return image_ref or None


class LineImageExtractor:
    """Scans rendered text line by line for `image:` keys.

    Does not parse YAML, so templating artifacts and broken documents do not
    stop extraction. Any line starting with `image:` counts, including lines
    inside block scalars.
    """

    def extract(self, rendered: str) -> list[str]:
        # dict keeps insertion order
        images: dict[str, None] = {}

        for line in rendered.split("\n"):
            image_ref = parse_image_line(line)
            if image_ref is not None and image_ref not in images:
                logger.debug(f"Found image: {image_ref}")
                images[image_ref] = None

        return list(images)
