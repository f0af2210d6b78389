from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field, SecretStr

from helmscan.consts import DEFAULT_CONCURRENCY, DEFAULT_TIMEOUT, SNYK_CLI_DOCKER_IMAGE


class ExtractorKind(str, Enum):
    """Available image extraction strategies."""

    LINES = "lines"
    MANIFEST = "manifest"


class FailurePolicy(str, Enum):
    """How to treat render failures and scanner-runtime pull failures."""

    BEST_EFFORT = "best-effort"
    FAIL_FAST = "fail-fast"


class ScanSettings(BaseModel):
    """Configuration for one orchestration run."""

    input_directory: Path = Field(description="Chart root or materialized manifests")
    output: Path | None = Field(default=None, description="Report path, stdout if None")
    scan_enabled: bool = Field(default=True, description="Pull and scan each image")
    token: SecretStr = Field(default=SecretStr(""), description="Scanner authentication token")
    extractor: ExtractorKind = Field(default=ExtractorKind.LINES)
    scanner_image: str = Field(default=SNYK_CLI_DOCKER_IMAGE)
    concurrency: int = Field(default=DEFAULT_CONCURRENCY, ge=1)
    timeout: float | None = Field(
        default=DEFAULT_TIMEOUT, gt=0, description="Seconds per external call"
    )
    failure_policy: FailurePolicy = Field(default=FailurePolicy.BEST_EFFORT)

    @property
    def fail_fast(self) -> bool:
        return self.failure_policy == FailurePolicy.FAIL_FAST
