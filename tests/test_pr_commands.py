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

import json
from unittest import mock

import pytest
from click.testing import CliRunner

from ci_draft_gate.exceptions import CommentError, FetchError
from ci_draft_gate.main import main
from tests.github_fakes import (
    CURRENT_RUN_ID,
    HEAD_SHA,
    PR_NODE_ID,
    PR_NUMBER,
    FakeDirectory,
    make_pull_request,
    make_run,
)

_CLEAN_ENV = {
    "GITHUB_ACTIONS": None,
    "GITHUB_API_URL": None,
    "GITHUB_EVENT_PATH": None,
    "GITHUB_RUN_ID": None,
    "GITHUB_TOKEN": None,
    "LEAVE_COMMENT": None,
    "COMMENT_BODY": None,
    "DRY_RUN": None,
    "VERBOSE": None,
}


def _gate_args(*extra: str, pr_number: bool = True, head_sha: bool = True) -> list[str]:
    args = [
        "pr",
        "gate",
        "--github-token",
        "gh-token",
        "--github-repository",
        "owner/repo",
        "--run-id",
        str(CURRENT_RUN_ID),
        "--settle-seconds",
        "0",
    ]
    if pr_number:
        args += ["--pr-number", str(PR_NUMBER)]
    if head_sha:
        args += ["--head-sha", HEAD_SHA]
    return args + list(extra)


@pytest.fixture
def fake_directory():
    directory = FakeDirectory(
        run_pages=[[make_run(1), make_run(CURRENT_RUN_ID, status="in_progress", conclusion=None)]]
    )
    with mock.patch("ci_draft_gate.commands.pr_commands.GitHubDirectory", return_value=directory) as factory:
        directory.factory = factory
        yield directory


def _invoke(args: list[str], **env: str):
    return CliRunner().invoke(main, args, env={**_CLEAN_ENV, **env}, catch_exceptions=False)


class TestGateCommand:
    def test_ready_commit_leaves_pull_request_alone(self, fake_directory):
        result = _invoke(_gate_args())
        assert result.exit_code == 0, result.output
        assert "All workflows passed." in result.output
        assert "READY" in result.output
        assert fake_directory.write_count == 0
        fake_directory.factory.assert_called_once_with(
            "gh-token", "owner/repo", api_url="https://api.github.com"
        )
        assert fake_directory.closed

    def test_pending_sibling_converts_to_draft(self, fake_directory):
        fake_directory.run_pages = [[make_run(1, status="queued", conclusion=None)]]
        result = _invoke(_gate_args("--leave-comment", "--comment-body", "Wait for CI"))
        assert result.exit_code == 0, result.output
        assert "PENDING" in result.output
        assert fake_directory.draft_mutations == [PR_NODE_ID]
        assert fake_directory.comments == [(PR_NUMBER, "Wait for CI")]

    def test_leave_comment_from_environment(self, fake_directory):
        fake_directory.run_pages = [[make_run(1, conclusion="failure")]]
        result = _invoke(_gate_args(), LEAVE_COMMENT="1")
        assert result.exit_code == 0, result.output
        assert len(fake_directory.comments) == 1

    def test_already_draft_is_not_converted_again(self, fake_directory):
        fake_directory.run_pages = [[make_run(1, status="in_progress", conclusion=None)]]
        fake_directory.pull_request = make_pull_request(draft=True)
        result = _invoke(_gate_args("--leave-comment"))
        assert result.exit_code == 0, result.output
        assert fake_directory.write_count == 0

    def test_dry_run_does_not_convert(self, fake_directory):
        fake_directory.run_pages = [[make_run(1, status="in_progress", conclusion=None)]]
        result = _invoke(_gate_args("--dry-run"))
        assert result.exit_code == 0, result.output
        assert "Dry run" in result.output
        assert fake_directory.write_count == 0

    def test_reads_pull_request_from_event_payload(self, fake_directory, tmp_path):
        event_path = tmp_path / "event.json"
        event_path.write_text(json.dumps({"pull_request": {"number": PR_NUMBER, "head": {"sha": HEAD_SHA}}}))
        fake_directory.run_pages = [[make_run(1, status="in_progress", conclusion=None)]]
        result = _invoke(
            _gate_args(pr_number=False, head_sha=False), GITHUB_EVENT_PATH=str(event_path)
        )
        assert result.exit_code == 0, result.output
        assert f"PR Number: {PR_NUMBER}" in result.output
        assert fake_directory.draft_mutations == [PR_NODE_ID]

    def test_missing_pull_request_number_fails(self, fake_directory):
        result = _invoke(_gate_args(pr_number=False))
        assert result.exit_code == 1
        assert "Pull request number is undefined" in result.output
        assert fake_directory.run_requests == []

    def test_fetch_error_fails_with_annotation(self, fake_directory):
        fake_directory.runs_error = FetchError("Failed to fetch workflow runs: 500")
        result = _invoke(_gate_args(), GITHUB_ACTIONS="true")
        assert result.exit_code == 1
        assert "::error::Failed to fetch workflow runs: 500" in result.output
        assert fake_directory.write_count == 0
        assert fake_directory.closed

    def test_comment_failure_is_a_warning(self, fake_directory):
        fake_directory.run_pages = [[make_run(1, conclusion="failure")]]
        fake_directory.comment_error = CommentError("Failed to comment on pull request #42: 403 Forbidden")
        result = _invoke(_gate_args("--leave-comment"), GITHUB_ACTIONS="true")
        assert result.exit_code == 0, result.output
        assert "::warning::Failed to comment on pull request #42: 403 Forbidden" in result.output
        assert fake_directory.draft_mutations == [PR_NODE_ID]

    def test_missing_token_fails(self, fake_directory):
        with mock.patch("ci_draft_gate.commands.pr_commands.resolve_github_token", return_value=None):
            result = _invoke(_gate_args())
        assert result.exit_code == 1
        assert "GitHub token not found" in result.output
        fake_directory.factory.assert_not_called()

    def test_help(self):
        result = _invoke(["pr", "gate", "--help"])
        assert result.exit_code == 0
        assert "Usage:" in result.output
