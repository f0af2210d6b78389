from pydantic import BaseModel, ConfigDict, Field


class ChartDescriptor(BaseModel):
    """The fields of Chart.yaml needed to label a report."""

    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    name: str = Field(description="Chart name")
    version: str = Field(description="Chart version (SemVer 2)")

    @property
    def label(self) -> str:
        return f"{self.name}@{self.version}"
