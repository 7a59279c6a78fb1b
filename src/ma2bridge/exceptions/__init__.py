"""
Custom exception hierarchy for ma2bridge.

```
BridgeError (base)
├── ConfigurationError
│   ├── ConfigFileInvalidError
│   └── ConfigValidationError
├── DeviceConnectionError
└── FatalSessionError
```

Expected protocol conditions (connection limit, session echoed as 0,
malformed frames) are state transitions, not exceptions. Only conditions
that end the process or stop a command are raised. Each error names
its Component and the exit status the CLI ends with.
"""

from .base import EXIT_CONFIG, EXIT_FAILURE, BridgeError, Component
from .config import ConfigFileInvalidError, ConfigurationError, ConfigValidationError
from .handlers import exit_code_for, format_error_for_display, wrap_pydantic_error
from .session import DeviceConnectionError, FatalSessionError

__all__ = [
    # Base
    "BridgeError",
    "Component",
    "EXIT_CONFIG",
    "EXIT_FAILURE",
    # Config
    "ConfigFileInvalidError",
    "ConfigValidationError",
    "ConfigurationError",
    # Session / device
    "DeviceConnectionError",
    "FatalSessionError",
    # Handlers
    "exit_code_for",
    "format_error_for_display",
    "wrap_pydantic_error",
]
