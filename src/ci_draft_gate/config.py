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

from ci_draft_gate.exceptions import InputError

DEFAULT_SETTLE_SECONDS = 5.0
DEFAULT_MAX_WORKERS = 4

DEFAULT_COMMENT_BODY = (
    "This pull request has been converted to **draft** because not all CI workflows for its latest "
    "commit have passed yet.\n\n"
    "Please wait for the running workflows to finish and fix any failing checks, then mark the pull "
    'request as "Ready for review".'
)


@dataclass(frozen=True)
class GateContext:
    """
    Identity of the invocation being evaluated.

    :param github_repository: repository coordinates in ``owner/name`` form
    :param pr_number: number of the pull request to gate
    :param head_sha: the commit whose workflow runs are evaluated
    :param run_id: id of the workflow run invoking the gate, excluded from the evaluation
    """

    github_repository: str
    pr_number: int | None
    head_sha: str | None
    run_id: int | None = None

    def __post_init__(self):
        if not self.pr_number:
            raise InputError("Pull request number is undefined")
        if not self.head_sha:
            raise InputError("Head commit SHA is undefined")
        owner, _, repo = (self.github_repository or "").partition("/")
        if not owner or not repo or "/" in repo:
            raise InputError(f"Repository must be given as owner/name, got: {self.github_repository!r}")

    @property
    def owner(self) -> str:
        return self.github_repository.split("/", 1)[0]

    @property
    def repo(self) -> str:
        return self.github_repository.split("/", 1)[1]


@dataclass(frozen=True)
class GateConfig:
    """Behaviour of the gate once a verdict is reached."""

    leave_comment: bool = False
    comment_body: str = DEFAULT_COMMENT_BODY
    settle_seconds: float = DEFAULT_SETTLE_SECONDS
    max_workers: int = DEFAULT_MAX_WORKERS

    def __post_init__(self):
        if self.settle_seconds < 0:
            raise InputError("Settle delay must not be negative")
        if self.max_workers < 1:
            raise InputError("At least one worker is needed to fetch workflow jobs")
        if self.leave_comment and not self.comment_body.strip():
            raise InputError("Comment body must not be empty when leaving a comment")
