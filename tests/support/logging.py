"""Helper functions for testing logging."""

from __future__ import annotations

import json
from typing import Any

from _pytest.logging import LogCaptureFixture


def parse_log(caplog: LogCaptureFixture) -> list[dict[str, Any]]:
    """Parse the accumulated samlsync logs as JSON.

    Checks and strips off common log attributes and returns the rest as a list
    of dictionaries holding the parsed JSON of the log message. The log level
    is always reported in lowercase under the ``level`` key.

    Parameters
    ----------
    caplog
        The log capture fixture.

    Returns
    -------
    list of dict
        List of parsed JSON dictionaries with the common log attributes
        removed (after validation).
    """
    messages = []

    for log_tuple in caplog.record_tuples:
        if log_tuple[0] != "samlsync":
            continue
        message = json.loads(log_tuple[2])
        if "logger" in message:
            assert message["logger"] == "samlsync"
            del message["logger"]
        message.pop("timestamp", None)
        severity = message.pop("severity", None)
        level = message.pop("level", severity)
        message["level"] = level.lower()
        messages.append(message)

    return messages
