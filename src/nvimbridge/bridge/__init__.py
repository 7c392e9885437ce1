"""Session bridge between tool calls and a remote Neovim instance.

Example:
    from nvimbridge.bridge import NeovimBridge
    from nvimbridge.services.settings import env_settings_provider

    bridge = NeovimBridge(env_settings_provider())
    contents = await bridge.get_buffer_contents()
"""

from .errors import (
    BridgeConnectionError,
    BridgeError,
    CommandError,
    ErrorCode,
    InvalidEndpointError,
    ValidationError,
)
from .manager import NeovimBridge
from .models import (
    BufferInfo,
    EditorStatus,
    SearchOptions,
    Selection,
    WindowInfo,
)
from .session import ConnectionResolver, NvimSession, SessionHandle

__all__ = [
    # errors.py
    "BridgeError",
    "BridgeConnectionError",
    "CommandError",
    "ValidationError",
    "InvalidEndpointError",
    "ErrorCode",
    # manager.py
    "NeovimBridge",
    # models.py
    "BufferInfo",
    "EditorStatus",
    "SearchOptions",
    "Selection",
    "WindowInfo",
    # session.py
    "ConnectionResolver",
    "NvimSession",
    "SessionHandle",
]
