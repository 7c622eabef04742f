"""MCP server entry point for the decide experiment controller.

Exposes one tool per verified operation via the Model Context Protocol
using the official Python MCP SDK with stdio transport. Each tool performs
its own round trips against the controller's request endpoint; the server
keeps no connection between calls.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from google.protobuf.json_format import MessageToDict
from mcp.server.fastmcp import FastMCP

from . import operations
from .errors import DecideError
from .protocol.envelope import TypedEnvelope
from .registry import COMPONENT_SCHEMAS, LED_LOCATIONS, check_registry, decode_envelope
from .transport.zmq_connection import REQ_ENDPOINT

logger = logging.getLogger(__name__)

mcp = FastMCP(
    "decide-client",
    instructions="Configure and drive decide experiment controller components",
)


def _envelope_dict(envelope: TypedEnvelope) -> dict[str, Any]:
    """Render an envelope with its payload decoded through the registry."""
    message = decode_envelope(envelope)
    return {
        "type_id": envelope.type_id,
        "payload": MessageToDict(message, preserving_proto_field_name=True),
    }


def _error(e: Exception) -> dict[str, Any]:
    return {"error": str(e), "kind": type(e).__name__}


def _call(fn: Callable[..., Any], *args: Any, **kwargs: Any) -> dict[str, Any]:
    """Run an operation, turning client errors into an error result."""
    try:
        result = fn(*args, endpoint=REQ_ENDPOINT, **kwargs)
        if result is None:
            return {"ok": True}
        if isinstance(result, list):
            return {"ok": True, "verified": [_envelope_dict(e) for e in result]}
        return {"ok": True, "verified": _envelope_dict(result)}
    except DecideError as e:
        logger.warning("%s failed: %s", fn.__name__, e)
        return _error(e)
    except ValueError as e:
        return _error(e)


# ─── DISCOVERY TOOLS ──────────────────────────────────────────────────

@mcp.tool()
def list_components() -> dict[str, Any]:
    """List the components of the reference deployment and their schemas."""
    return {
        "components": [
            {"name": name, "params_type": params, "state_type": state}
            for name, (params, state) in COMPONENT_SCHEMAS.items()
        ]
    }


@mcp.tool()
def get_parameters(component: str) -> dict[str, Any]:
    """Read the parameters currently installed on a component.

    Args:
        component: Component identifier, e.g. 'house-light'.
    """
    try:
        envelope = operations.get_parameters(component, endpoint=REQ_ENDPOINT)
        return _envelope_dict(envelope)
    except (DecideError, ValueError) as e:
        return _error(e)


# ─── PARAMETER TOOLS ──────────────────────────────────────────────────

@mcp.tool()
def set_house_light_params(interval: int = 300) -> dict[str, Any]:
    """Set the house light clock interval and verify it by reading back.

    Args:
        interval: Seconds between brightness updates (default 300).
    """
    return _call(operations.set_house_light_params, interval)


@mcp.tool()
def set_led_params() -> dict[str, Any]:
    """Set parameters on all three peckboard LED locations and verify them."""
    return _call(operations.set_led_params, LED_LOCATIONS)


@mcp.tool()
def set_key_params() -> dict[str, Any]:
    """Set the peckboard key parameters and verify them."""
    return _call(operations.set_key_params)


@mcp.tool()
def set_stepper_params(timeout: int = 1000) -> dict[str, Any]:
    """Set the stepper motor run duration and verify it.

    Args:
        timeout: Milliseconds the motor runs after one signal (default 1000).
    """
    return _call(operations.set_stepper_params, timeout)


@mcp.tool()
def set_playback_params(audio_dir: str = "") -> dict[str, Any]:
    """Set the audio playback parameters and verify them.

    Args:
        audio_dir: Stimulus directory on the controller host.
    """
    return _call(operations.set_playback_params, audio_dir)


# ─── STATE TOOLS ──────────────────────────────────────────────────────

@mcp.tool()
def change_house_light_state(
    switch: bool,
    light_override: bool = False,
    fake_clock: bool = False,
    brightness: int = 0,
) -> dict[str, Any]:
    """Change the house light state.

    Args:
        switch: Turn the light on or off.
        light_override: Hold the given brightness instead of following the clock.
        fake_clock: Run on a simulated clock.
        brightness: Brightness level to hold.
    """
    return _call(
        operations.change_house_light_state,
        switch,
        light_override,
        fake_clock,
        brightness,
    )


@mcp.tool()
def change_led_state(location: str, led_state: str) -> dict[str, Any]:
    """Change one peckboard LED.

    Args:
        location: LED component (peck-leds-left, peck-leds-center, peck-leds-right).
        led_state: Color or pattern name.
    """
    if location not in LED_LOCATIONS:
        return _error(
            ValueError(f"Unknown LED location '{location}'. Valid: {list(LED_LOCATIONS)}")
        )
    return _call(operations.change_led_state, location, led_state)


@mcp.tool()
def change_stepper_state(switch: bool, on: bool, direction: bool) -> dict[str, Any]:
    """Change the stepper motor state.

    Args:
        switch: Manual switch position.
        on: Run the motor.
        direction: Rotation direction.
    """
    return _call(operations.change_stepper_state, switch, on, direction)


@mcp.tool()
def change_playback_state(audio_id: str, playback: int) -> dict[str, Any]:
    """Start, stop or advance audio playback.

    Args:
        audio_id: Stimulus identifier.
        playback: Playback command code.
    """
    return _call(operations.change_playback_state, audio_id, playback)


# ─── ENTRY POINT ─────────────────────────────────────────────────────

def main():
    """Run the MCP server with stdio transport."""
    logging.basicConfig(level=logging.INFO)
    check_registry(COMPONENT_SCHEMAS)
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
