"""Built-in tools: arithmetic, current weather and activity suggestions."""

import ast
import operator
from collections.abc import Callable
from typing import Any

import httpx

from ragent.config import WeatherSettings, get_settings
from ragent.logging_config import get_logger
from ragent.tools.models import ToolSpec

logger = get_logger(__name__)

_BINARY_OPS: dict[type[ast.operator], Callable[[Any, Any], Any]] = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
    ast.Pow: operator.pow,
}

_UNARY_OPS: dict[type[ast.unaryop], Callable[[Any], Any]] = {
    ast.UAdd: operator.pos,
    ast.USub: operator.neg,
}

# Keeps ``**`` from producing numbers too large to print.
MAX_EXPONENT = 1000


def _evaluate(node: ast.AST) -> int | float:
    if isinstance(node, ast.Expression):
        return _evaluate(node.body)

    if isinstance(node, ast.Constant) and type(node.value) in (int, float):
        return node.value

    if isinstance(node, ast.BinOp) and type(node.op) in _BINARY_OPS:
        left = _evaluate(node.left)
        right = _evaluate(node.right)
        if isinstance(node.op, ast.Pow) and abs(right) > MAX_EXPONENT:
            raise ValueError(f"Exponent too large: {right}")
        return _BINARY_OPS[type(node.op)](left, right)

    if isinstance(node, ast.UnaryOp) and type(node.op) in _UNARY_OPS:
        return _UNARY_OPS[type(node.op)](_evaluate(node.operand))

    raise ValueError(f"Unsupported expression: {ast.dump(node)[:40]}")


def calculate(expression: str) -> str:
    """Evaluate an arithmetic expression.

    Supports numbers, ``+ - * / // % **``, unary signs and parentheses.
    Names, calls and attribute access are rejected.

    Args:
        expression: Expression text, e.g. ``"(2 + 3) * 4"``.

    Returns:
        The result rendered as text.

    Raises:
        ValueError: If the expression is empty or not plain arithmetic.
        ZeroDivisionError: On division by zero.
    """
    if not expression.strip():
        raise ValueError("Empty expression")

    try:
        tree = ast.parse(expression.strip(), mode="eval")
    except SyntaxError as e:
        raise ValueError(f"Invalid expression: {expression}") from e

    result = _evaluate(tree)
    if isinstance(result, float) and result.is_integer():
        return str(int(result))
    return str(result)


def calculator_tool() -> ToolSpec:
    """Tool spec for :func:`calculate`."""
    return ToolSpec(
        name="calculator",
        description="Evaluates arithmetic expressions. Use it for any math.",
        input_description="An arithmetic expression such as (2 + 3) * 4",
        func=calculate,
    )


class WeatherTool:
    """Current weather lookup against the OpenWeather API."""

    name = "get-weather"
    description = "Provides current weather information for a specified city."

    def __init__(
        self,
        settings: WeatherSettings | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the weather tool.

        Args:
            settings: OpenWeather configuration.
            client: HTTP client (for testing).
        """
        self._settings = settings or get_settings().weather
        self._client = client
        self._owns_client = client is None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._settings.timeout)
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if we own it."""
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __call__(self, city: str) -> str:
        """Describe the current weather in a city.

        Raises:
            RuntimeError: If the lookup fails for any reason.
        """
        city = city.strip()
        if self._settings.api_key is None:
            raise RuntimeError("OPENWEATHER_API_KEY is not configured")

        client = await self._get_client()
        try:
            response = await client.get(
                f"{self._settings.base_url}/weather",
                params={
                    "q": city,
                    "appid": self._settings.api_key.get_secret_value(),
                    "units": "metric",
                },
            )
            response.raise_for_status()
            data = response.json()
            return (
                f"The weather in {data['name']}: "
                f"{data['weather'][0]['description']}, "
                f"temperature: {data['main']['temp']}°C."
            )
        except (httpx.HTTPError, KeyError, IndexError, ValueError) as e:
            logger.warning(
                "Weather lookup failed",
                extra={"city": city, "error": str(e)},
            )
            raise RuntimeError(f'Unable to retrieve weather data for "{city}"') from e

    def as_tool(self) -> ToolSpec:
        """Tool spec wrapping this instance."""
        return ToolSpec(
            name=self.name,
            description=self.description,
            input_description="Name of the city, e.g. London",
            func=self,
        )


def suggest_activity(weather_description: str) -> str:
    """Frame a weather report as a request for activity ideas.

    The tool does not pick activities itself. Its observation hands the
    conditions back to the model, which writes the suggestions.

    Raises:
        ValueError: If the description is empty.
    """
    weather_description = weather_description.strip()
    if not weather_description:
        raise ValueError("Weather description is empty")
    return f"Request for activity suggestions based on: {weather_description}"


def activity_tool() -> ToolSpec:
    """Tool spec for :func:`suggest_activity`."""
    return ToolSpec(
        name="suggest-activity",
        description="Suggests an outdoor activity based on the current weather conditions.",
        input_description="Current weather, e.g. light rain, temperature: 12°C",
        func=suggest_activity,
    )
