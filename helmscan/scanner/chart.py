"""Chart descriptor loading for the report's chart identity label."""

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from helmscan.consts import CHART_DESCRIPTOR_FILENAME
from helmscan.errors import ChartDescriptorError
from helmscan.models.model_chart import ChartDescriptor

logger = logging.getLogger(__name__)


def load_chart_descriptor(chart_directory: Path | str) -> ChartDescriptor:
    """Read and validate <chart_directory>/Chart.yaml.

    Args:
        chart_directory: Chart root directory

    Returns:
        ChartDescriptor with name and version

    Raises:
        ChartDescriptorError: If the file is missing, unreadable, not YAML,
            or lacks name/version
    """
    path = Path(chart_directory) / CHART_DESCRIPTOR_FILENAME

    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ChartDescriptorError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ChartDescriptorError(f"Cannot parse {path}: {e}") from e

    if not isinstance(data, dict):
        raise ChartDescriptorError(f"{path} is not a YAML mapping")

    try:
        return ChartDescriptor.model_validate(data)
    except ValidationError as e:
        raise ChartDescriptorError(f"{path} must declare name and version: {e}") from e


def get_chart_label(chart_directory: Path | str) -> str:
    """Return the `name@version` label of a chart."""
    descriptor = load_chart_descriptor(chart_directory)
    logger.debug(f"Chart label: {descriptor.label}")
    return descriptor.label
