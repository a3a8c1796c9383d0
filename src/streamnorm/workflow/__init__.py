"""Directive computation workflow: orchestration, progress and shutdown."""

from streamnorm.workflow.formatters import (
    format_plan_human,
    format_plan_json,
    format_titles,
)
from streamnorm.workflow.processor import ResolvedStream, StreamNormalizer
from streamnorm.workflow.progress import ProgressReporter
from streamnorm.workflow.signals import run_with_shutdown

__all__ = [
    "ProgressReporter",
    "ResolvedStream",
    "StreamNormalizer",
    "format_plan_human",
    "format_plan_json",
    "format_titles",
    "run_with_shutdown",
]
