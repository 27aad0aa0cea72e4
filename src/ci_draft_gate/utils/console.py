# Licensed to the Apache Software Foundation (ASF) under one
# or more contributor license agreements.  See the NOTICE file
# distributed with this work for additional information
# regarding copyright ownership.  The ASF licenses this file
# to you under the Apache License, Version 2.0 (the
# "License"); you may not use this file except in compliance
# with the License.  You may obtain a copy of the License at
#
#   http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing,
# software distributed under the License is distributed on an
# "AS IS" BASIS, WITHOUT WARRANTIES OR CONDITIONS OF ANY
# KIND, either express or implied.  See the License for the
# specific language governing permissions and limitations
# under the License.
"""
Console used by all gate commands.

Messages are styled with the ``[info]``, ``[warning]``, ``[error]``, ``[success]`` and ``[special]``
theme markers. When running inside GitHub Actions, errors and warnings can additionally be
emitted as workflow annotations so they show up on the run summary.
"""

from __future__ import annotations

import os
from enum import Enum
from functools import lru_cache

from rich.console import Console
from rich.theme import Theme


def get_theme() -> Theme:
    if os.environ.get("NO_COLOR"):
        return Theme(
            {
                "success": "bold italic",
                "info": "bold",
                "warning": "italic",
                "error": "italic underline",
                "special": "bold italic underline",
            }
        )
    return Theme(
        {
            "success": "green",
            "info": "bright_blue",
            "warning": "bright_yellow",
            "error": "red",
            "special": "magenta",
        }
    )


class MessageType(Enum):
    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    SPECIAL = "special"


def is_github_actions() -> bool:
    return os.environ.get("GITHUB_ACTIONS") == "true"


@lru_cache(maxsize=None)
def get_console() -> Console:
    return Console(
        force_terminal=is_github_actions() or None,
        color_system="standard",
        width=202 if is_github_actions() else None,
        theme=get_theme(),
    )


def _escape_annotation(message: str) -> str:
    # Workflow commands treat newlines and '%' specially
    return message.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def print_annotation(message_type: MessageType, message: str) -> None:
    """Print a GitHub Actions workflow annotation (``::error::`` / ``::warning::``) when in CI."""
    if not is_github_actions():
        return
    # workflow commands must reach stdout unwrapped and without markup
    print(f"::{message_type.value}::{_escape_annotation(message)}", flush=True)
