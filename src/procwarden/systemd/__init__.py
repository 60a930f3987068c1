"""systemd integration for procwarden."""

from ._unit import (
    UNIT_TEMPLATE,
    UnitContext,
    UnitMode,
    build_unit_context,
    create_environment,
    find_command,
    render_unit,
)

__all__ = [
    "UNIT_TEMPLATE",
    "UnitContext",
    "UnitMode",
    "build_unit_context",
    "create_environment",
    "find_command",
    "render_unit",
]
