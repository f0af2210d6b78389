"""Tests for ScanOrchestrator."""

import asyncio
import json
import logging
from pathlib import Path

import pytest

from helmscan.errors import (
    ChartDescriptorError,
    ContainerRuntimeTimeout,
    RenderError,
    ScannerPullError,
)
from helmscan.extraction import LineImageExtractor, ManifestImageExtractor
from helmscan.models.model_scanner import ScanErrorType, ScanState
from helmscan.models.model_settings import FailurePolicy
from helmscan.scanner.scan_orchestrator import ScanOrchestrator
from helmscan.scanner.snyk_scanner import SnykDockerScanner

THREE_IMAGES = "image: first:1\nimage: second:2\nimage: third:3\n"


class TestScanOrchestrator:
    """Tests for ScanOrchestrator class."""

    @pytest.fixture
    def make_orchestrator(self, fake_renderer_factory, fake_runtime_factory):
        """Build an orchestrator over fake collaborators."""

        def _make(
            rendered: str = THREE_IMAGES,
            runtime=None,
            renderer=None,
            **kwargs,
        ) -> ScanOrchestrator:
            runtime = runtime or fake_runtime_factory()
            extractor = kwargs.pop("extractor", LineImageExtractor())
            return ScanOrchestrator(
                renderer=renderer or fake_renderer_factory(stdout=rendered),
                extractor=extractor,
                scanner=SnykDockerScanner(runtime, token="t"),
                **kwargs,
            )

        return _make

    @pytest.mark.asyncio
    async def test_end_to_end_two_images(
        self, chart_dir: Path, rendered_two_containers: str, make_orchestrator
    ) -> None:
        """Test the two-container chart yields both scan payloads in order."""
        orchestrator = make_orchestrator(rendered=rendered_two_containers)

        report = await orchestrator.run(chart_dir)

        assert json.loads(report.to_json()) == {
            "helmChart": "foo@1.2.3",
            "images": [
                {"imageName": "a:1", "results": {"ok": True}},
                {"imageName": "b:2", "results": {"ok": True}},
            ],
        }

    @pytest.mark.asyncio
    async def test_partial_failure_drops_failed_image(
        self, chart_dir: Path, make_orchestrator, fake_runtime_factory, caplog
    ) -> None:
        """Test a failing second scan leaves first and third in order."""
        runtime = fake_runtime_factory(run_failures=["second:2"])
        orchestrator = make_orchestrator(runtime=runtime)

        with caplog.at_level(logging.WARNING):
            result = await orchestrator.execute(chart_dir)

        assert result.report.image_names == ["first:1", "third:3"]
        assert result.failed == 1
        assert "second:2" in result.failures
        warnings = [r.getMessage() for r in caplog.records if r.levelno == logging.WARNING]
        assert any("second:2" in message for message in warnings)

    @pytest.mark.asyncio
    async def test_pull_failure_drops_image_without_running(
        self, chart_dir: Path, make_orchestrator, fake_runtime_factory
    ) -> None:
        """Test an image that cannot be pulled is never scanned."""
        runtime = fake_runtime_factory(pull_failures=["first:1"])
        result = await make_orchestrator(runtime=runtime).execute(chart_dir)

        assert result.report.image_names == ["second:2", "third:3"]
        scanned = [run["command"][3] for run in runtime.runs]
        assert scanned == ["second:2", "third:3"]
        assert result.outcomes[0].error_type == ScanErrorType.PULL_FAILED

    @pytest.mark.asyncio
    async def test_invalid_output_drops_image(
        self, chart_dir: Path, make_orchestrator, fake_runtime_factory
    ) -> None:
        """Test non-JSON scanner output drops the image."""
        runtime = fake_runtime_factory(outputs={"third:3": "Error: unauthorized"})
        result = await make_orchestrator(runtime=runtime).execute(chart_dir)

        assert result.report.image_names == ["first:1", "second:2"]
        assert result.outcomes[2].state == ScanState.FAILED
        assert result.outcomes[2].error_type == ScanErrorType.INVALID_OUTPUT

    @pytest.mark.asyncio
    async def test_scan_disabled_makes_no_runtime_calls(
        self, chart_dir: Path, make_orchestrator, fake_runtime_factory
    ) -> None:
        """Test disabled scanning reports empty results and pulls nothing."""
        runtime = fake_runtime_factory()
        report = await make_orchestrator(runtime=runtime).run(chart_dir, scan_enabled=False)

        assert [(e.image_name, e.results) for e in report.images] == [
            ("first:1", {}),
            ("second:2", {}),
            ("third:3", {}),
        ]
        assert runtime.pulls == []
        assert runtime.runs == []

    @pytest.mark.asyncio
    async def test_scan_disabled_needs_no_scanner(
        self, chart_dir: Path, fake_renderer_factory
    ) -> None:
        orchestrator = ScanOrchestrator(
            renderer=fake_renderer_factory(stdout="image: x:1\n"),
            extractor=LineImageExtractor(),
        )
        report = await orchestrator.run(chart_dir, scan_enabled=False)
        assert report.image_names == ["x:1"]

    @pytest.mark.asyncio
    async def test_scan_enabled_without_scanner_rejected(
        self, chart_dir: Path, fake_renderer_factory
    ) -> None:
        orchestrator = ScanOrchestrator(
            renderer=fake_renderer_factory(stdout="image: x:1\n"),
            extractor=LineImageExtractor(),
        )
        with pytest.raises(ValueError):
            await orchestrator.run(chart_dir)

    @pytest.mark.asyncio
    async def test_scanner_pulled_once_before_images(
        self, chart_dir: Path, make_orchestrator, fake_runtime_factory
    ) -> None:
        """Test one scanner pull per run, ahead of the image pulls."""
        runtime = fake_runtime_factory()
        await make_orchestrator(runtime=runtime).run(chart_dir)

        assert runtime.pulls == ["snyk/snyk:docker", "first:1", "second:2", "third:3"]
        assert len(runtime.runs) == 3
        socket_bind = "/var/run/docker.sock:/var/run/docker.sock"
        assert all(run["binds"] == [socket_bind] for run in runtime.runs)

    @pytest.mark.asyncio
    async def test_scanner_pull_failure_best_effort(
        self, chart_dir: Path, make_orchestrator, fake_runtime_factory
    ) -> None:
        """Test a failed scanner pull is logged and the run continues."""
        runtime = fake_runtime_factory(pull_failures=["snyk/snyk:docker"])
        report = await make_orchestrator(runtime=runtime).run(chart_dir)
        assert report.image_names == ["first:1", "second:2", "third:3"]

    @pytest.mark.asyncio
    async def test_scanner_pull_failure_fail_fast(
        self, chart_dir: Path, make_orchestrator, fake_runtime_factory
    ) -> None:
        runtime = fake_runtime_factory(pull_failures=["snyk/snyk:docker"])
        orchestrator = make_orchestrator(runtime=runtime, failure_policy=FailurePolicy.FAIL_FAST)

        with pytest.raises(ScannerPullError):
            await orchestrator.run(chart_dir)
        assert runtime.runs == []

    @pytest.mark.asyncio
    async def test_render_failure_best_effort_uses_output(
        self, chart_dir: Path, make_orchestrator, fake_renderer_factory
    ) -> None:
        """Test a non-zero render exit still feeds its stdout forward."""
        renderer = fake_renderer_factory(stdout="", returncode=1, stderr="Error: parse error")
        report = await make_orchestrator(renderer=renderer).run(chart_dir)

        assert report.chart_label == "foo@1.2.3"
        assert report.images == []

    @pytest.mark.asyncio
    async def test_render_failure_fail_fast(
        self, chart_dir: Path, make_orchestrator, fake_renderer_factory, fake_runtime_factory
    ) -> None:
        renderer = fake_renderer_factory(stdout="", returncode=1, stderr="Error: parse error")
        runtime = fake_runtime_factory()
        orchestrator = make_orchestrator(
            renderer=renderer, runtime=runtime, failure_policy=FailurePolicy.FAIL_FAST
        )

        with pytest.raises(RenderError, match="parse error"):
            await orchestrator.run(chart_dir)
        assert runtime.pulls == []

    @pytest.mark.asyncio
    async def test_render_timeout_fail_fast(
        self, chart_dir: Path, make_orchestrator, fake_renderer_factory
    ) -> None:
        renderer = fake_renderer_factory(returncode=-1, timed_out=True)
        orchestrator = make_orchestrator(renderer=renderer, failure_policy=FailurePolicy.FAIL_FAST)
        with pytest.raises(RenderError, match="timed out"):
            await orchestrator.run(chart_dir)

    @pytest.mark.asyncio
    async def test_missing_chart_descriptor_aborts_before_scanning(
        self, tmp_path: Path, make_orchestrator, fake_runtime_factory
    ) -> None:
        """Test no image is pulled when Chart.yaml is missing."""
        runtime = fake_runtime_factory()
        with pytest.raises(ChartDescriptorError):
            await make_orchestrator(runtime=runtime).run(tmp_path)
        assert runtime.pulls == []
        assert runtime.runs == []

    @pytest.mark.asyncio
    async def test_renderer_called_with_input_directory(
        self, chart_dir: Path, make_orchestrator, fake_renderer_factory
    ) -> None:
        renderer = fake_renderer_factory(stdout=THREE_IMAGES)
        await make_orchestrator(renderer=renderer).run(chart_dir, scan_enabled=False)
        assert renderer.calls == [chart_dir]

    @pytest.mark.asyncio
    async def test_custom_chart_label_loader(self, tmp_path: Path, make_orchestrator) -> None:
        orchestrator = make_orchestrator(chart_label_loader=lambda directory: "custom@0.0.1")
        report = await orchestrator.run(tmp_path, scan_enabled=False)
        assert report.chart_label == "custom@0.0.1"

    @pytest.mark.asyncio
    async def test_manifest_extractor_swappable(
        self, chart_dir: Path, rendered_two_containers: str, make_orchestrator
    ) -> None:
        """Test the extraction strategy changes without touching the pipeline."""
        orchestrator = make_orchestrator(
            rendered=rendered_two_containers, extractor=ManifestImageExtractor()
        )
        report = await orchestrator.run(chart_dir)
        assert report.image_names == ["a:1", "b:2"]

    @pytest.mark.asyncio
    async def test_duplicate_images_scanned_once(
        self, chart_dir: Path, make_orchestrator, fake_runtime_factory
    ) -> None:
        runtime = fake_runtime_factory()
        rendered = "image: a:1\nimage: a:1\nimage: 'a:1'\n"
        report = await make_orchestrator(rendered=rendered, runtime=runtime).run(chart_dir)

        assert report.image_names == ["a:1"]
        assert len(runtime.runs) == 1

    @pytest.mark.asyncio
    async def test_timeout_classified(
        self, chart_dir: Path, make_orchestrator, fake_runtime_factory
    ) -> None:
        runtime = fake_runtime_factory()
        original_pull = runtime.pull

        async def pull(image_ref: str) -> str:
            if image_ref == "second:2":
                raise ContainerRuntimeTimeout("docker pull second:2 timed out after 1s")
            return await original_pull(image_ref)

        runtime.pull = pull
        result = await make_orchestrator(runtime=runtime).execute(chart_dir)

        assert result.report.image_names == ["first:1", "third:3"]
        assert result.outcomes[1].error_type == ScanErrorType.TIMEOUT

    @pytest.mark.asyncio
    async def test_unexpected_error_contained(
        self, chart_dir: Path, make_orchestrator, fake_runtime_factory
    ) -> None:
        """Test an unexpected exception on one image does not abort the batch."""
        runtime = fake_runtime_factory()
        original_run = runtime.run

        async def run(image_ref, command, **kwargs):
            if "first:1" in command:
                raise RuntimeError("boom")
            return await original_run(image_ref, command, **kwargs)

        runtime.run = run
        result = await make_orchestrator(runtime=runtime).execute(chart_dir)

        assert result.report.image_names == ["second:2", "third:3"]
        assert result.outcomes[0].error == "boom"
        assert result.outcomes[0].error_type == ScanErrorType.RUN_FAILED

    @pytest.mark.asyncio
    async def test_progress_callback(self, chart_dir: Path, make_orchestrator) -> None:
        calls: list[tuple[int, int]] = []
        await make_orchestrator().execute(
            chart_dir, progress_callback=lambda current, total: calls.append((current, total))
        )
        assert calls == [(1, 3), (2, 3), (3, 3)]

    @pytest.mark.asyncio
    async def test_outcome_states(
        self, chart_dir: Path, make_orchestrator, fake_runtime_factory
    ) -> None:
        runtime = fake_runtime_factory(exit_codes={"first:1": 1})
        result = await make_orchestrator(runtime=runtime).execute(chart_dir)

        assert [o.state for o in result.outcomes] == [ScanState.PARSED] * 3
        assert result.outcomes[0].scanner_exit_code == 1
        assert result.discovered == ["first:1", "second:2", "third:3"]

    def test_invalid_concurrency(self, fake_renderer_factory) -> None:
        with pytest.raises(ValueError):
            ScanOrchestrator(
                renderer=fake_renderer_factory(),
                extractor=LineImageExtractor(),
                concurrency=0,
            )


class TestConcurrentScanning:
    """Tests for bounded parallel scanning."""

    @pytest.mark.asyncio
    async def test_order_preserved_when_scans_finish_out_of_order(
        self, chart_dir: Path, fake_renderer_factory, fake_runtime_factory
    ) -> None:
        """Test report order follows discovery even if later scans finish first."""
        runtime = fake_runtime_factory(run_failures=["c:3"])
        original_run = runtime.run
        delays = {"a:1": 0.05, "b:2": 0.0, "c:3": 0.01, "d:4": 0.0}

        async def run(image_ref, command, **kwargs):
            await asyncio.sleep(delays[command[3]])
            return await original_run(image_ref, command, **kwargs)

        runtime.run = run
        orchestrator = ScanOrchestrator(
            renderer=fake_renderer_factory(stdout="".join(f"image: {ref}\n" for ref in delays)),
            extractor=LineImageExtractor(),
            scanner=SnykDockerScanner(runtime, token="t"),
            concurrency=4,
        )

        result = await orchestrator.execute(chart_dir)

        assert result.report.image_names == ["a:1", "b:2", "d:4"]
        assert [o.image_ref for o in result.outcomes] == ["a:1", "b:2", "c:3", "d:4"]

    @pytest.mark.asyncio
    async def test_concurrency_bounded(
        self, chart_dir: Path, fake_renderer_factory, fake_runtime_factory
    ) -> None:
        runtime = fake_runtime_factory()
        original_run = runtime.run
        active = 0
        peak = 0

        async def run(image_ref, command, **kwargs):
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.01)
            active -= 1
            return await original_run(image_ref, command, **kwargs)

        runtime.run = run
        rendered = "".join(f"image: img{i}:1\n" for i in range(6))
        orchestrator = ScanOrchestrator(
            renderer=fake_renderer_factory(stdout=rendered),
            extractor=LineImageExtractor(),
            scanner=SnykDockerScanner(runtime, token="t"),
            concurrency=2,
        )

        report = await orchestrator.run(chart_dir)

        assert len(report.images) == 6
        assert peak <= 2

