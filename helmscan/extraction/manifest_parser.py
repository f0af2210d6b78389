"""YAML-based image extraction walking pod specs of each document."""

import logging
from typing import Any

import yaml

from helmscan.errors import ManifestParseError

logger = logging.getLogger(__name__)

CONTAINER_LIST_KEYS = ("containers", "initContainers")

# Paths from a document root to the pod spec that holds container lists
POD_SPEC_PATHS = (
    ("spec",),  # Pod
    ("spec", "template", "spec"),  # Deployment, StatefulSet, DaemonSet, Job, ...
    ("spec", "jobTemplate", "spec", "template", "spec"),  # CronJob
)


def _dig(doc: dict, path: tuple[str, ...]) -> Any:
    node: Any = doc
    for key in path:
        if not isinstance(node, dict):
            return None
        node = node.get(key)
    return node


def find_pod_spec_images(doc: Any) -> list[str]:
    """Collect container and init container images from one document.

    Args:
        doc: A parsed YAML document (may be None or a non-mapping)

    Returns:
        Image references in document order, duplicates included
    """
    if not isinstance(doc, dict):
        return []

    found: list[str] = []
    for path in POD_SPEC_PATHS:
        pod_spec = _dig(doc, path)
        if not isinstance(pod_spec, dict):
            continue
        for list_key in CONTAINER_LIST_KEYS:
            for container in pod_spec.get(list_key) or []:
                if isinstance(container, dict) and container.get("image"):
                    found.append(str(container["image"]))
    return found


class ManifestImageExtractor:
    """Parses every rendered document and reads container images.

    More precise than LineImageExtractor but requires the rendered output to
    be valid YAML. Empty documents are skipped.
    """

    def extract(self, rendered: str) -> list[str]:
        try:
            docs = list(yaml.safe_load_all(rendered))
        except yaml.YAMLError as e:
            raise ManifestParseError(f"Rendered manifests are not valid YAML: {e}") from e

        images: dict[str, None] = {}
        for doc in docs:
            if not doc:
                continue
            for image_ref in find_pod_spec_images(doc):
                images.setdefault(image_ref, None)

        logger.debug(f"Parsed {len(docs)} documents, {len(images)} unique images")
        return list(images)
