"""Agent tools module."""

from ragent.tools.builtin import (
    WeatherTool,
    activity_tool,
    calculate,
    calculator_tool,
    suggest_activity,
)
from ragent.tools.models import ToolFunc, ToolSpec
from ragent.tools.registry import ToolRegistry

__all__ = [
    "ToolFunc",
    "ToolRegistry",
    "ToolSpec",
    "WeatherTool",
    "activity_tool",
    "calculate",
    "calculator_tool",
    "suggest_activity",
]
