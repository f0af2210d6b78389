"""Consolidated scan report models."""

import json

from pydantic import BaseModel, ConfigDict, Field, JsonValue

from helmscan.consts import REPORT_INDENT


class ImageEntry(BaseModel):
    """Scan outcome for one image.

    `results` is the scanner's JSON output passed through unmodified, or an
    empty object when scanning is disabled.
    """

    model_config = ConfigDict(populate_by_name=True)

    image_name: str = Field(alias="imageName", description="Image reference as discovered")
    results: JsonValue = Field(default_factory=dict, description="Opaque scanner payload")


class Report(BaseModel):
    """Chart identity label plus per-image results in discovery order."""

    model_config = ConfigDict(populate_by_name=True)

    chart_label: str = Field(alias="helmChart", description="name@version of the source chart")
    images: list[ImageEntry] = Field(default_factory=list)

    @property
    def image_names(self) -> list[str]:
        return [entry.image_name for entry in self.images]

    def to_json(self) -> str:
        """Serialize as indented JSON using the wire field names."""
        data = self.model_dump(mode="json", by_alias=True)
        return json.dumps(data, indent=REPORT_INDENT)
