"""Unit tests for default track selection."""

from streamnorm.config.models import NormalizationOptions
from streamnorm.selection.defaults import select_defaults


def _positions(*streams):
    return list(enumerate(streams))


class TestAudioSelection:
    """Phase A: default audio."""

    def test_first_matching_audio_is_default(self, stream_factory):
        streams = _positions(
            stream_factory(0, "video"),
            stream_factory(1, "audio", language="fre"),
            stream_factory(2, "audio", language="eng"),
            stream_factory(3, "audio", language="spa"),
        )

        selection = select_defaults(streams, "English", NormalizationOptions())

        assert selection.flags == {1: 0, 2: 1, 3: 0}
        assert selection.audio_position == 2
        assert selection.audio_default_set
        assert selection.disposition(2) == "DISPOSITION:default=1"
        assert selection.disposition(1) == "DISPOSITION:default=0"
        assert selection.disposition(0) is None

    def test_second_matching_audio_not_default(self, stream_factory):
        streams = _positions(
            stream_factory(0, "audio", language="en"),
            stream_factory(1, "audio", language="eng"),
        )
        selection = select_defaults(streams, "English", NormalizationOptions())
        assert selection.flags == {0: 1, 1: 0}

    def test_subtitles_untouched_when_audio_matched(self, stream_factory):
        streams = _positions(
            stream_factory(0, "audio", language="eng"),
            stream_factory(1, "subtitle", language="eng"),
        )
        selection = select_defaults(streams, "English", NormalizationOptions())

        assert selection.disposition(1) is None
        assert not selection.subtitle_default_set

    def test_map_order_breaks_ties(self, stream_factory):
        """Selection follows output position order, not stream index."""
        streams = [
            (0, stream_factory(5, "audio", language="eng")),
            (1, stream_factory(2, "audio", language="eng")),
        ]
        selection = select_defaults(streams, "English", NormalizationOptions())
        assert selection.audio_position == 0


class TestSubtitleFallback:
    """Phase B: default subtitle when no audio matches."""

    def test_subtitle_fallback(self, stream_factory):
        streams = _positions(
            stream_factory(0, "audio", language="jpn"),
            stream_factory(1, "subtitle", language="fre"),
            stream_factory(2, "subtitle", language="eng"),
        )

        selection = select_defaults(streams, "English", NormalizationOptions())

        assert not selection.audio_default_set
        assert selection.flags == {0: 0, 1: 0, 2: 1}
        assert selection.subtitle_position == 2

    def test_commentary_skipped(self, stream_factory):
        streams = _positions(
            stream_factory(0, "audio", language="jpn"),
            stream_factory(1, "subtitle", language="eng", title="Commentary"),
            stream_factory(2, "subtitle", language="eng", title="Full"),
        )

        selection = select_defaults(streams, "English", NormalizationOptions())

        assert selection.subtitle_position == 2
        assert selection.skipped_commentary == [1]
        assert selection.disposition(1) is None
        assert selection.disposition(2) == "DISPOSITION:default=1"

    def test_only_commentary_subtitles(self, stream_factory):
        streams = _positions(
            stream_factory(0, "subtitle", language="eng", title="commentary"),
        )
        selection = select_defaults(streams, "English", NormalizationOptions())
        assert not selection.subtitle_default_set
        assert selection.flags == {}

    def test_fallback_disabled(self, stream_factory):
        streams = _positions(
            stream_factory(0, "audio", language="jpn"),
            stream_factory(1, "subtitle", language="eng"),
        )
        options = NormalizationOptions(set_default_subtitle=False)
        selection = select_defaults(streams, "English", options)
        assert selection.flags == {0: 0}

    def test_audio_disabled_still_falls_back(self, stream_factory):
        streams = _positions(
            stream_factory(0, "audio", language="eng"),
            stream_factory(1, "subtitle", language="eng"),
        )
        options = NormalizationOptions(set_default_audio=False)
        selection = select_defaults(streams, "English", options)
        assert selection.flags == {1: 1}


class TestNoTarget:
    def test_unknown_target_selects_nothing(self, stream_factory):
        streams = _positions(stream_factory(0, "audio"))
        selection = select_defaults(streams, "Unknown", NormalizationOptions())
        assert selection.flags == {}
        assert not selection.audio_default_set
