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
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from rich.markup import escape

from ci_draft_gate.config import GateConfig, GateContext
from ci_draft_gate.exceptions import CommentError, SchemaError
from ci_draft_gate.utils.console import get_console
from ci_draft_gate.utils.github_client import CIDirectory


@dataclass(frozen=True)
class PullRequestState:
    """Current state of a pull request, as read from the directory."""

    number: int
    node_id: str
    draft: bool
    head_sha: str
    state: str = "open"

    @property
    def is_open(self) -> bool:
        return self.state == "open"

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> PullRequestState:
        return cls(
            number=int(data["number"]),
            node_id=data["node_id"],
            draft=bool(data.get("draft", False)),
            head_sha=(data.get("head") or {}).get("sha", ""),
            state=data.get("state", "open"),
        )


@dataclass
class MutationOutcome:
    """What the mutator did to the pull request."""

    already_draft: bool = False
    skipped_closed: bool = False
    skipped_stale_head: bool = False
    converted: bool = False
    comment_posted: bool = False
    comment_error: CommentError | None = None


def read_pull_request_state(directory: CIDirectory, pr_number: int) -> PullRequestState:
    data = directory.get_pull_request(pr_number)
    try:
        return PullRequestState.from_api(data)
    except (KeyError, TypeError, ValueError) as e:
        raise SchemaError(f"Malformed response for pull request #{pr_number}: {e!r}") from e


def convert_to_draft_if_needed(
    directory: CIDirectory, context: GateContext, config: GateConfig
) -> MutationOutcome:
    """
    Convert the pull request to draft, at most once.

    The pull request is read again first: a pull request that already is a draft is left alone (no
    mutation and no comment), and so is a closed one or one whose head moved past the evaluated
    commit, as the newer commit gets its own evaluation. A rejected conversion raises
    ``MutationError``. A rejected comment does not undo the conversion; it is returned in
    ``MutationOutcome.comment_error``.
    """
    pr_number = context.pr_number
    state = read_pull_request_state(directory, pr_number)
    if state.draft:
        get_console().print(f"[info]PR #{pr_number} is already a draft. Nothing to do.[/]")
        return MutationOutcome(already_draft=True)
    if not state.is_open:
        get_console().print(
            f"[warning]PR #{pr_number} is {escape(state.state)}. It cannot be converted to draft.[/]"
        )
        return MutationOutcome(skipped_closed=True)
    if state.head_sha and state.head_sha != context.head_sha:
        get_console().print(
            f"[warning]PR #{pr_number} head moved from {context.head_sha} to {state.head_sha}. "
            "Leaving it to the evaluation of the newer commit.[/]"
        )
        return MutationOutcome(skipped_stale_head=True)

    get_console().print(f"Converting PR #{pr_number} to draft...")
    directory.convert_pull_request_to_draft(state.node_id)
    get_console().print(f"[success]PR #{pr_number} converted to draft.[/]")
    outcome = MutationOutcome(converted=True)

    if not config.leave_comment:
        return outcome
    get_console().print(f"Posting comment on PR #{pr_number}...")
    try:
        directory.create_issue_comment(pr_number, config.comment_body)
    except CommentError as e:
        get_console().print(f"[warning]{escape(str(e))}. The pull request stays converted to draft.[/]")
        outcome.comment_error = e
        return outcome
    get_console().print(f"[success]Comment posted on PR #{pr_number}.[/]")
    outcome.comment_posted = True
    return outcome
