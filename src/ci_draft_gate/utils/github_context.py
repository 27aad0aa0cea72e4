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
"""Reading the pull request being gated from the GitHub Actions event payload."""

from __future__ import annotations

import json
import subprocess
from pathlib import Path
from typing import Any

from ci_draft_gate.exceptions import InputError


def load_event_payload(event_path: Path | None) -> dict[str, Any]:
    """Load the webhook payload GitHub Actions writes to ``GITHUB_EVENT_PATH``."""
    if event_path is None:
        return {}
    try:
        payload = json.loads(event_path.read_text())
    except OSError as e:
        raise InputError(f"Cannot read event payload {event_path}: {e}") from e
    except ValueError as e:
        raise InputError(f"Event payload {event_path} is not valid JSON: {e}") from e
    if not isinstance(payload, dict):
        raise InputError(f"Event payload {event_path} is not a JSON object")
    return payload


def pull_request_from_event(event_path: Path | None) -> tuple[int | None, str | None]:
    """
    Return the pull request number and head SHA of the event, if the event is about a pull request.

    Either value is None when the payload does not carry it, e.g. for push or schedule events.
    """
    pull_request = load_event_payload(event_path).get("pull_request") or {}
    pr_number = pull_request.get("number")
    head_sha = (pull_request.get("head") or {}).get("sha")
    return pr_number, head_sha


def resolve_github_token(github_token: str | None) -> str | None:
    """Resolve GitHub token from option, environment, or gh CLI."""
    if github_token:
        return github_token
    try:
        gh_token_result = subprocess.run(
            ["gh", "auth", "token"],
            capture_output=True,
            text=True,
            check=False,
        )
    except FileNotFoundError:
        return None
    if gh_token_result.returncode == 0:
        return gh_token_result.stdout.strip() or None
    return None
