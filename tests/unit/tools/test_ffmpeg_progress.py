"""Unit tests for FFmpeg progress line parsing."""

from streamnorm.tools.ffmpeg_progress import FFmpegProgress, parse_stderr_progress


class TestParseStderrProgress:
    """Tests for parse_stderr_progress function."""

    def test_video_progress_line(self):
        line = (
            "frame= 1234 fps= 30 q=-0.0 size=N/A time=00:01:23.45 "
            "bitrate=N/A speed=2.01x"
        )
        progress = parse_stderr_progress(line)

        assert progress is not None
        assert progress.frame == 1234
        assert progress.out_time_us == 83_450_000
        assert progress.speed == "2.01x"

    def test_audio_progress_line_without_frame(self):
        progress = parse_stderr_progress(
            "size=N/A time=01:00:00.00 bitrate=N/A speed=N/A"
        )

        assert progress is not None
        assert progress.frame is None
        assert progress.speed is None
        assert progress.out_time_seconds == 3600.0

    def test_non_progress_line(self):
        assert parse_stderr_progress("[Parsed_loudnorm_0 @ 0x55]") is None
        assert parse_stderr_progress("time=N/A bitrate=N/A") is None


class TestGetPercent:
    def test_percent_of_duration(self):
        progress = FFmpegProgress(out_time_us=30_000_000)
        assert progress.get_percent(120.0) == 25.0

    def test_capped_at_100(self):
        assert FFmpegProgress(out_time_us=200_000_000).get_percent(100.0) == 100.0

    def test_unknown_duration_or_time(self):
        assert FFmpegProgress(out_time_us=1_000_000).get_percent(None) == 0.0
        assert FFmpegProgress(out_time_us=1_000_000).get_percent(0) == 0.0
        assert FFmpegProgress().get_percent(60.0) == 0.0
