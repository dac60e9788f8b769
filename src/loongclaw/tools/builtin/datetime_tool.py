"""Clock tool — current date and time in a named time zone."""

from datetime import datetime, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from loongclaw.exceptions import ParameterValidationError
from loongclaw.tools.context import ToolContext
from loongclaw.tools.models import ToolCategory, ToolDefinition
from loongclaw.tools.registry import RegisteredTool

DEFAULT_TIMEZONE = "Asia/Shanghai"


def _get_current_time(args: dict, context: ToolContext) -> dict:
    """Return the current time as ISO (UTC), unix seconds and local wall-clock text."""
    tz_name = args.get("timezone") or DEFAULT_TIMEZONE
    try:
        zone = ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError, TypeError) as e:
        raise ParameterValidationError(f"unknown timezone: {tz_name}", parameter="timezone") from e

    now = datetime.now(timezone.utc)
    return {
        "iso": now.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
        "unix": int(now.timestamp()),
        "timezone": tz_name,
        "formatted": now.astimezone(zone).strftime("%Y/%m/%d %H:%M:%S"),
    }


GET_CURRENT_TIME_TOOL = RegisteredTool(
    definition=ToolDefinition(
        name="get_current_time",
        description="Get the current date and time.",
        input_schema={
            "type": "object",
            "properties": {
                "timezone": {
                    "type": "string",
                    "description": f"IANA time zone name (default: {DEFAULT_TIMEZONE})",
                    "default": DEFAULT_TIMEZONE,
                },
            },
            "required": [],
        },
    ),
    handler=_get_current_time,
    category=ToolCategory.UTILITY,
)
