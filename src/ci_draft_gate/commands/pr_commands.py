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

import sys
from pathlib import Path

import click
from rich.markup import escape
from rich.table import Table

from ci_draft_gate.commands.common_options import (
    option_dry_run,
    option_github_api_url,
    option_github_repository,
    option_github_token,
    option_verbose,
)
from ci_draft_gate.config import (
    DEFAULT_COMMENT_BODY,
    DEFAULT_MAX_WORKERS,
    DEFAULT_SETTLE_SECONDS,
    GateConfig,
    GateContext,
)
from ci_draft_gate.exceptions import DraftGateException
from ci_draft_gate.utils.click_utils import GateGroup
from ci_draft_gate.utils.console import MessageType, get_console, print_annotation
from ci_draft_gate.utils.draft_gate import GateResult, run_draft_gate
from ci_draft_gate.utils.github_client import GitHubDirectory
from ci_draft_gate.utils.github_context import pull_request_from_event, resolve_github_token
from ci_draft_gate.utils.readiness import Verdict
from ci_draft_gate.utils.shared_options import get_dry_run

_VERDICT_STYLES = {
    Verdict.READY: "[success]READY[/]",
    Verdict.PENDING: "[warning]PENDING[/]",
    Verdict.FAILED: "[error]FAILED[/]",
}


@click.group(cls=GateGroup, name="pr", help="Tools for gating GitHub pull requests on CI readiness.")
def pr_group():
    pass


def _fail(message: str):
    get_console().print(f"[error]{escape(message)}[/]")
    print_annotation(MessageType.ERROR, message)
    sys.exit(1)


def _display_result(result: GateResult):
    table = Table(title=f"Workflow runs ({len(result.signals)})")
    table.add_column("Run", style="cyan", no_wrap=True)
    table.add_column("Workflow", max_width=50)
    table.add_column("Status")
    table.add_column("Conclusion")
    table.add_column("Jobs", justify="right")
    for signal in result.signals:
        run = signal.run
        if run.conclusion == "success":
            conclusion = "[green]success[/]"
        elif run.conclusion is None:
            conclusion = "[dim]-[/]"
        else:
            conclusion = f"[red]{escape(run.conclusion)}[/]"
        jobs = "-" if signal.jobs is None else str(len(signal.jobs))
        run_label = f"[link={run.html_url}]#{run.run_number}[/link]" if run.html_url else f"#{run.run_number}"
        table.add_row(run_label, escape(run.name), escape(run.status), conclusion, jobs)
    get_console().print(table)
    get_console().print(f"Verdict: {_VERDICT_STYLES[result.evaluation.verdict]}")


@pr_group.command(
    name="gate",
    help="Convert the pull request to draft unless every other workflow run for its head commit passed.",
)
@option_github_token
@option_github_repository
@option_github_api_url
@click.option(
    "--pr-number",
    type=int,
    default=None,
    help="Number of the pull request. Read from the GitHub event payload when not given.",
)
@click.option(
    "--head-sha",
    default=None,
    help="Commit whose workflow runs are evaluated. Read from the GitHub event payload when not given.",
)
@click.option(
    "--run-id",
    type=int,
    default=None,
    envvar="GITHUB_RUN_ID",
    show_envvar=True,
    help="Id of the workflow run invoking the gate. It is excluded from the evaluation.",
)
@click.option(
    "--event-path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    envvar="GITHUB_EVENT_PATH",
    show_envvar=True,
    help="GitHub Actions event payload to read the pull request from.",
)
@click.option(
    "--leave-comment/--no-leave-comment",
    default=False,
    show_default=True,
    envvar="LEAVE_COMMENT",
    show_envvar=True,
    help="Post a comment explaining why the pull request was converted to draft.",
)
@click.option(
    "--comment-body",
    default=DEFAULT_COMMENT_BODY,
    envvar="COMMENT_BODY",
    show_envvar=True,
    help="Body of the comment posted with --leave-comment.",
)
@click.option(
    "--settle-seconds",
    type=click.FloatRange(min=0),
    default=DEFAULT_SETTLE_SECONDS,
    show_default=True,
    help="Seconds to wait for sibling workflow runs to register before collecting them.",
)
@click.option(
    "--max-workers",
    type=click.IntRange(min=1),
    default=DEFAULT_MAX_WORKERS,
    show_default=True,
    help="Number of concurrent job listings.",
)
@option_dry_run
@option_verbose
def gate(
    github_token: str | None,
    github_repository: str,
    github_api_url: str,
    pr_number: int | None,
    head_sha: str | None,
    run_id: int | None,
    event_path: Path | None,
    leave_comment: bool,
    comment_body: str,
    settle_seconds: float,
    max_workers: int,
):
    token = resolve_github_token(github_token)
    if not token:
        _fail(
            "GitHub token not found. Provide --github-token, "
            "set GITHUB_TOKEN, or authenticate with `gh auth login`."
        )

    try:
        if pr_number is None or head_sha is None:
            event_pr_number, event_head_sha = pull_request_from_event(event_path)
            pr_number = pr_number if pr_number is not None else event_pr_number
            head_sha = head_sha or event_head_sha
        context = GateContext(
            github_repository=github_repository, pr_number=pr_number, head_sha=head_sha, run_id=run_id
        )
        config = GateConfig(
            leave_comment=leave_comment,
            comment_body=comment_body,
            settle_seconds=settle_seconds,
            max_workers=max_workers,
        )
        get_console().print(f"[info]PR Number: {context.pr_number}[/]")
        get_console().print(f"[info]Owner: {context.owner}[/]")
        get_console().print(f"[info]Repo: {context.repo}[/]")
        get_console().print(f"[info]Head SHA: {context.head_sha}[/]")

        with GitHubDirectory(token, context.github_repository, api_url=github_api_url) as directory:
            result = run_draft_gate(directory, context, config, dry_run=get_dry_run())
    except DraftGateException as e:
        _fail(str(e))

    _display_result(result)
    if result.mutation and result.mutation.comment_error:
        print_annotation(MessageType.WARNING, str(result.mutation.comment_error))
