"""Unit tests for StreamNormalizer directive computation."""

import asyncio
import dataclasses
from pathlib import Path

import pytest

from streamnorm.analysis.crop import CropAggregation
from streamnorm.config.models import NormalizationOptions
from streamnorm.core.subprocess_utils import ToolOutput
from streamnorm.domain.models import ProbeResult, StreamMap
from streamnorm.exceptions import ConfigError, ProcessingError, ProbeInvocationError
from streamnorm.workflow.processor import StreamNormalizer


def _probe(*streams) -> ProbeResult:
    return ProbeResult(
        file_path=Path("/media/movie.mkv"),
        container_duration=100.0,
        streams={s.index: s for s in streams},
    )


class TestInitialize:
    """Tests for StreamNormalizer.initialize."""

    def test_from_mapping(self):
        normalizer = StreamNormalizer.initialize({"language": "fr"})
        assert normalizer.options.target_language == "French"

    def test_defaults(self):
        normalizer = StreamNormalizer.initialize()
        assert normalizer.options.target_language == "English"

    def test_invalid_language(self):
        with pytest.raises(ConfigError, match="Invalid language parameter"):
            StreamNormalizer.initialize({"language": "klingon"})

    def test_negative_scale(self):
        with pytest.raises(ConfigError, match="scale"):
            StreamNormalizer.initialize({"scale": -1})

    def test_unknown_option(self):
        with pytest.raises(ConfigError):
            StreamNormalizer.initialize({"colour": "blue"})


class TestResolve:
    def test_unknown_stream(self, multi_language_probe):
        normalizer = StreamNormalizer.initialize({"autocrop_intervals": 0})
        with pytest.raises(ProcessingError, match="0:9"):
            normalizer.resolve(multi_language_probe, StreamMap.from_specs(["0:9"]))

    def test_second_input_rejected(self, multi_language_probe):
        normalizer = StreamNormalizer.initialize({"autocrop_intervals": 0})
        with pytest.raises(ProcessingError):
            normalizer.resolve(multi_language_probe, StreamMap.from_specs(["1:0"]))


class TestComputeDirectives:
    """End-to-end directive computation with fake analysis passes."""

    @pytest.mark.asyncio
    async def test_metadata_only(self, multi_language_probe, default_options):
        normalizer = StreamNormalizer(default_options, show_progress=False)

        changes = await normalizer.compute_directives(multi_language_probe)

        assert list(changes.streams) == [0, 1, 2, 3, 4]
        assert changes.streams[0].metadata == []
        assert changes.streams[1].metadata == [
            "title=French (AC3 6)",
            "DISPOSITION:default=0",
        ]
        # Existing title is kept without force
        assert changes.streams[2].metadata == ["DISPOSITION:default=1"]
        assert changes.streams[3].metadata == [
            "title=Spanish (DTS 6.1)",
            "DISPOSITION:default=0",
        ]
        assert changes.streams[4].metadata == ["title=English (SUBRIP)"]
        assert changes.audio_default_set
        assert not changes.subtitle_default_set
        assert changes.filter_complex is None
        assert not changes.has_errors

    @pytest.mark.asyncio
    async def test_subtitle_fallback_skips_commentary(self, commentary_probe):
        options = NormalizationOptions(autocrop_intervals=0)
        normalizer = StreamNormalizer(options, show_progress=False)

        changes = await normalizer.compute_directives(commentary_probe)

        assert not changes.audio_default_set
        assert changes.subtitle_default_set
        assert changes.streams[1].metadata[-1] == "DISPOSITION:default=0"
        assert changes.streams[2].metadata == []
        assert changes.streams[3].metadata == ["DISPOSITION:default=1"]
        assert changes.streams[4].metadata == [
            "title=English (ASS)",
            "DISPOSITION:default=0",
        ]

    @pytest.mark.asyncio
    async def test_idempotent_without_force(self, multi_language_probe):
        """Applying the computed titles and recomputing yields no new titles."""
        options = NormalizationOptions(autocrop_intervals=0)
        normalizer = StreamNormalizer(options, show_progress=False)
        first = await normalizer.compute_directives(multi_language_probe)

        retitled = {}
        for index, stream in multi_language_probe.streams.items():
            titles = [
                v[len("title=") :]
                for v in first.streams[index].metadata
                if v.startswith("title=")
            ]
            retitled[index] = dataclasses.replace(
                stream, title=titles[0] if titles else stream.title
            )
        second = await normalizer.compute_directives(
            ProbeResult(multi_language_probe.file_path, 5400.0, retitled)
        )

        for change in second.streams.values():
            assert not any(v.startswith("title=") for v in change.metadata)

    @pytest.mark.asyncio
    async def test_custom_map_positions(self, multi_language_probe, default_options):
        normalizer = StreamNormalizer(default_options, show_progress=False)
        stream_map = StreamMap.from_specs(["0:3", "0:2"])

        changes = await normalizer.compute_directives(multi_language_probe, stream_map)

        assert list(changes.streams) == [0, 1]
        assert changes.streams[0].metadata[-1] == "DISPOSITION:default=0"
        assert changes.streams[1].metadata[-1] == "DISPOSITION:default=1"

    @pytest.mark.asyncio
    async def test_crop_and_scale(
        self, stream_factory, fake_runner_factory, cropdetect_output
    ):
        probe = _probe(stream_factory(0, "video", duration_seconds=100.0))
        options = NormalizationOptions(autocrop_intervals=3, scale=720)
        runner = fake_runner_factory(
            lambda command: cropdetect_output(1920, 816, 0, 132)
        )
        normalizer = StreamNormalizer(options, runner=runner, show_progress=False)

        changes = await normalizer.compute_directives(probe)

        assert changes.filter_complex == (
            "[0:0]crop=1920:816:0:132[0-0-crop];[0-0-crop]scale=-2:720[0-0-scale]"
        )
        assert changes.streams[0].filter_output == "[0-0-scale]"
        assert len(runner.calls) == 3

    @pytest.mark.asyncio
    async def test_failure_isolated_to_stream(
        self,
        stream_factory,
        fake_runner_factory,
        loudnorm_stderr,
        cropdetect_output,
        failing_response,
    ):
        """A failing crop probe drops only the crop stage of that stream."""
        probe = _probe(
            stream_factory(0, "video", duration_seconds=100.0),
            stream_factory(1, "audio", language="eng", duration_seconds=100.0),
        )

        def respond(command: list[str]) -> str:
            if "cropdetect" in command:
                return failing_response(command)
            return loudnorm_stderr

        options = NormalizationOptions(autocrop_intervals=2, audio_level=True)
        normalizer = StreamNormalizer(
            options, runner=fake_runner_factory(respond), show_progress=False
        )

        changes = await normalizer.compute_directives(probe)

        assert changes.has_errors
        assert changes.streams[0].errors[0].startswith("crop: ")
        assert changes.streams[0].filter_graph is None
        assert changes.streams[1].errors == []
        assert changes.streams[1].filter_graph.startswith("[0:1]loudnorm=")
        assert changes.streams[1].codec == "aac"
        assert changes.filter_complex == changes.streams[1].filter_graph

    @pytest.mark.asyncio
    async def test_best_effort_tolerates_sample_failure(
        self, stream_factory, fake_runner_factory, cropdetect_output
    ):
        probe = _probe(stream_factory(0, "video", duration_seconds=100.0))
        calls = []

        def respond(command: list[str]) -> str:
            calls.append(command)
            if len(calls) == 1:
                raise ProbeInvocationError(command, 1)
            return cropdetect_output(1920, 800, 0, 140)

        options = NormalizationOptions(
            autocrop_intervals=3, crop_aggregation=CropAggregation.BEST_EFFORT
        )
        normalizer = StreamNormalizer(
            options, runner=fake_runner_factory(respond), show_progress=False
        )

        changes = await normalizer.compute_directives(probe)

        assert not changes.has_errors
        assert changes.streams[0].filter_graph == "[0:0]crop=1920:800:0:140[0-0-crop]"

    @pytest.mark.asyncio
    async def test_default_selection_independent_of_completion_order(
        self, stream_factory, loudnorm_stderr
    ):
        """Defaults depend on map order even when later streams finish first."""
        probe = _probe(
            stream_factory(0, "audio", language="eng", duration_seconds=100.0),
            stream_factory(1, "audio", language="eng", duration_seconds=100.0),
            stream_factory(2, "audio", language="fre", duration_seconds=100.0),
        )
        delays = {"0:0": 0.05, "0:1": 0.0, "0:2": 0.02}
        finished: list[str] = []

        async def runner(args, on_stderr_line=None, timeout=None):
            stream = args[args.index("-map") + 1]
            await asyncio.sleep(delays[stream])
            finished.append(stream)
            return ToolOutput("", loudnorm_stderr, 0)

        options = NormalizationOptions(audio_level=True, autocrop_intervals=0)
        normalizer = StreamNormalizer(options, runner=runner, show_progress=False)

        changes = await normalizer.compute_directives(probe)

        assert finished == ["0:1", "0:2", "0:0"]
        assert list(changes.streams) == [0, 1, 2]
        assert changes.streams[0].metadata[-1] == "DISPOSITION:default=1"
        assert changes.streams[1].metadata[-1] == "DISPOSITION:default=0"
        assert changes.streams[2].metadata[-1] == "DISPOSITION:default=0"
        assert changes.filter_complex.split(";")[0].startswith("[0:0]")
