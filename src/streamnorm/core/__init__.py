"""Core utilities package.

External tool invocation helpers shared by the introspector and the
analysis passes.
"""

from streamnorm.core.subprocess_utils import (
    ToolOutput,
    ToolRunner,
    run_command,
    run_tool_async,
)

__all__ = [
    "ToolOutput",
    "ToolRunner",
    "run_command",
    "run_tool_async",
]
