"""Unit tests for filter chain composition."""

import pytest

from streamnorm.config.models import NormalizationOptions
from streamnorm.domain.models import (
    CropRegion,
    LoudnessMeasurement,
    StreamChange,
    StreamRef,
)
from streamnorm.filters.graph import (
    FilterChain,
    FilterStage,
    apply_chain,
    build_stream_filters,
    crop_stage,
    loudnorm_stage,
    scale_stage,
)

MEASUREMENT = LoudnessMeasurement(
    input_i=-27.61, input_lra=18.06, input_tp=-4.47, input_thresh=-39.2
)


class TestFilterChain:
    """Tests for FilterChain label wiring."""

    def test_empty_chain(self):
        chain = FilterChain(StreamRef(0, 3))
        assert chain.frontier == "[0:3]"
        assert chain.render() is None

    def test_stages_connect(self):
        chain = FilterChain(StreamRef(0, 0))
        chain.append(FilterStage("crop", "crop=1920:816:0:132"))
        chain.append(FilterStage("scale", "scale=-2:720"))

        assert chain.render() == (
            "[0:0]crop=1920:816:0:132[0-0-crop];[0-0-crop]scale=-2:720[0-0-scale]"
        )
        assert chain.frontier == "[0-0-scale]"

    def test_none_stage_ignored(self):
        chain = FilterChain(StreamRef(0, 0)).append(None)
        assert chain.stages == []

    def test_duplicate_stage_rejected(self):
        chain = FilterChain(StreamRef(0, 0)).append(FilterStage("scale", "scale=1"))
        with pytest.raises(ValueError, match="already present"):
            chain.append(FilterStage("scale", "scale=2"))


class TestStages:
    def test_crop_requires_offset(self):
        assert crop_stage(None) is None
        assert crop_stage(CropRegion(1920, 1080, 0, 0)) is None
        stage = crop_stage(CropRegion(1920, 816, 0, 132))
        assert stage.expression == "crop=1920:816:0:132"

    def test_scale_only_downscales(self):
        assert scale_stage(1080, 0) is None
        assert scale_stage(720, 720) is None
        assert scale_stage(480, 720) is None
        assert scale_stage(None, 720) is None
        assert scale_stage(2160, 1080).expression == "scale=-2:1080"

    def test_loudnorm_measured_values(self):
        stage = loudnorm_stage(MEASUREMENT, NormalizationOptions())
        assert stage.expression == (
            "loudnorm=measured_I=-27.61:measured_LRA=18.06:"
            "measured_TP=-4.47:measured_thresh=-39.20"
        )

    def test_loudnorm_targets(self):
        options = NormalizationOptions(
            loudnorm_target_i=-16, loudnorm_target_lra=11, loudnorm_target_tp=-1.5
        )
        stage = loudnorm_stage(MEASUREMENT, options)
        assert stage.expression.endswith(":I=-16:LRA=11:TP=-1.5")


class TestBuildStreamFilters:
    """Tests for build_stream_filters and apply_chain."""

    def test_video_crop_then_scale(self, stream_factory):
        video = stream_factory(0, "video", height=1080)
        options = NormalizationOptions(scale=720)

        chain = build_stream_filters(
            StreamRef(0, 0), video, options, crop=CropRegion(1920, 816, 0, 132)
        )

        assert chain.stage_names == ["crop", "scale"]

    def test_crop_skipped_when_autocrop_disabled(self, stream_factory):
        video = stream_factory(0, "video", height=1080)
        options = NormalizationOptions(autocrop_intervals=0, scale=720)

        chain = build_stream_filters(
            StreamRef(0, 0), video, options, crop=CropRegion(1920, 816, 0, 132)
        )

        assert chain.render() == "[0:0]scale=-2:720[0-0-scale]"

    def test_audio_loudnorm(self, stream_factory):
        audio = stream_factory(1, "audio")
        options = NormalizationOptions(audio_level=True)

        chain = build_stream_filters(
            StreamRef(0, 1), audio, options, loudness=MEASUREMENT
        )
        change = StreamChange()
        apply_chain(change, chain, options)

        assert change.filter_graph.startswith("[0:1]loudnorm=measured_I=-27.61")
        assert change.filter_output == "[0-1-loudnorm]"
        assert change.codec == "aac"
        assert change.quality == ("b", "320k")

    def test_audio_without_measurement(self, stream_factory):
        """A failed measurement leaves the stream without a chain."""
        audio = stream_factory(1, "audio")
        options = NormalizationOptions(audio_level=True)

        chain = build_stream_filters(StreamRef(0, 1), audio, options)
        change = StreamChange()
        apply_chain(change, chain, options)

        assert change.filter_graph is None
        assert change.filter_output is None
        assert change.codec is None

    def test_subtitles_never_filtered(self, stream_factory):
        subtitle = stream_factory(2, "subtitle")
        options = NormalizationOptions(audio_level=True, scale=720)
        chain = build_stream_filters(
            StreamRef(0, 2), subtitle, options, loudness=MEASUREMENT
        )
        assert chain.stages == []

    def test_custom_codec(self, stream_factory):
        options = NormalizationOptions(
            audio_level=True, loudnorm_codec="libopus", loudnorm_bitrate="192k"
        )
        chain = build_stream_filters(
            StreamRef(0, 1), stream_factory(1, "audio"), options, loudness=MEASUREMENT
        )
        change = StreamChange()
        apply_chain(change, chain, options)
        assert (change.codec, change.quality) == ("libopus", ("b", "192k"))
