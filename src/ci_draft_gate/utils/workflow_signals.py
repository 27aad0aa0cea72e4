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
Collection of workflow run and job signals for a single commit.

The snapshot is built fresh on every invocation: runs are listed by head SHA (never by pull request
event, which lags behind pushes), runs with an ambiguous outcome are expanded into their jobs, and
the run invoking the gate is removed so it does not block itself.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Any

from ci_draft_gate.exceptions import SchemaError
from ci_draft_gate.utils.console import get_console
from ci_draft_gate.utils.github_client import ApiPage, CIDirectory
from ci_draft_gate.utils.shared_options import get_verbose

COMPLETED = "completed"
SUCCESS = "success"
SKIPPED = "skipped"


@dataclass(frozen=True)
class WorkflowRun:
    """A workflow run as listed by the CI directory."""

    id: int
    run_number: int
    name: str
    head_sha: str
    status: str
    conclusion: str | None
    pull_requests: tuple[int, ...] = ()
    html_url: str = ""

    @property
    def is_completed(self) -> bool:
        return self.status == COMPLETED

    @property
    def is_successful(self) -> bool:
        return self.is_completed and self.conclusion == SUCCESS

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> WorkflowRun:
        return cls(
            id=int(data["id"]),
            run_number=int(data.get("run_number") or 0),
            name=data.get("name") or "unknown",
            head_sha=data.get("head_sha") or "",
            status=data.get("status") or "unknown",
            conclusion=data.get("conclusion"),
            pull_requests=tuple(pr["number"] for pr in data.get("pull_requests") or [] if pr),
            html_url=data.get("html_url") or "",
        )


@dataclass(frozen=True)
class WorkflowJob:
    """A job of a workflow run."""

    id: int
    run_id: int
    name: str
    status: str
    conclusion: str | None

    @property
    def is_completed(self) -> bool:
        return self.status == COMPLETED

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> WorkflowJob:
        return cls(
            id=int(data["id"]),
            run_id=int(data["run_id"]),
            name=data.get("name") or "unknown",
            status=data.get("status") or "unknown",
            conclusion=data.get("conclusion"),
        )


@dataclass(frozen=True)
class RunSignal:
    """A run together with its jobs. ``jobs`` is None when the run was not expanded."""

    run: WorkflowRun
    jobs: tuple[WorkflowJob, ...] | None = None


def _array_field(payload: dict[str, Any], field: str, description: str) -> list[dict[str, Any]]:
    entries = payload.get(field)
    if not isinstance(entries, list):
        raise SchemaError(f"'{field}' is missing from the response for {description}")
    return entries


def _read_all_pages(
    fetch_page: Callable[[int], ApiPage], field: str, description: str
) -> tuple[list[dict[str, Any]], int | None]:
    """Follow pagination until the directory reports no further page."""
    entries: list[dict[str, Any]] = []
    total_count: int | None = None
    page = 1
    while True:
        api_page = fetch_page(page)
        entries.extend(_array_field(api_page.payload, field, f"{description} (page {page})"))
        total_count = api_page.payload.get("total_count", total_count)
        if not api_page.has_next:
            return entries, total_count
        page += 1


def collect_workflow_runs(directory: CIDirectory, head_sha: str) -> list[WorkflowRun]:
    """
    Collect every workflow run triggered for ``head_sha``.

    Runs that show up on more than one page (the listing can shift while it is paginated) are
    counted once. Runs for any other commit are ignored. The result is ordered by run number.

    :param directory: the CI directory to read from
    :param head_sha: the commit under evaluation
    """
    description = f"workflow runs for commit {head_sha}"
    entries, total_count = _read_all_pages(
        lambda page: directory.list_workflow_runs(head_sha, page), "workflow_runs", description
    )
    runs: dict[int, WorkflowRun] = {}
    for entry in entries:
        try:
            run = WorkflowRun.from_api(entry)
        except (KeyError, TypeError, ValueError) as e:
            raise SchemaError(f"Malformed workflow run in {description}: {e!r}") from e
        if run.head_sha != head_sha:
            if get_verbose():
                get_console().print(
                    f"  [dim]Ignoring run {run.name} #{run.run_number} for commit {run.head_sha}[/]"
                )
            continue
        runs[run.id] = run
    if total_count is not None and total_count > len(entries):
        get_console().print(
            f"[warning]Directory reported {total_count} runs for {head_sha} but listed {len(entries)}.[/]"
        )
    get_console().print(f"[info]Found {len(runs)} workflow run(s) for commit {head_sha}.[/]")
    return sorted(runs.values(), key=lambda run: (run.run_number, run.id))


def _collect_jobs(directory: CIDirectory, run: WorkflowRun) -> tuple[WorkflowJob, ...]:
    description = f"jobs of workflow run {run.name} #{run.run_number}"
    entries, _ = _read_all_pages(lambda page: directory.list_workflow_jobs(run.id, page), "jobs", description)
    jobs: dict[int, WorkflowJob] = {}
    for entry in entries:
        try:
            job = WorkflowJob.from_api(entry)
        except (KeyError, TypeError, ValueError) as e:
            raise SchemaError(f"Malformed job in {description}: {e!r}") from e
        jobs[job.id] = job
    return tuple(jobs.values())


def needs_expansion(run: WorkflowRun) -> bool:
    """Only completed runs that did not succeed need job-level inspection."""
    return run.is_completed and run.conclusion != SUCCESS


def expand_workflow_jobs(
    directory: CIDirectory,
    runs: Iterable[WorkflowRun],
    max_workers: int = 4,
    current_run_id: int | None = None,
) -> list[RunSignal]:
    """
    Fetch the jobs of every run whose outcome is ambiguous.

    Runs still in flight are not expanded as they already block readiness. If no run needs
    expansion, no request is made. A failure fetching jobs of any run aborts the expansion: the
    remaining fetches are cancelled and the error is propagated, no partial snapshot is returned.
    The run invoking the gate is never expanded, as it is excluded from the evaluation anyway.

    :param directory: the CI directory to read from
    :param runs: the runs collected for the commit
    :param max_workers: upper bound on concurrent job listings
    :param current_run_id: id of the run invoking the gate, if known
    """
    runs = list(runs)
    to_expand = [run for run in runs if run.id != current_run_id and needs_expansion(run)]
    if not to_expand:
        return [RunSignal(run) for run in runs]

    get_console().print(f"[info]Fetching jobs for {len(to_expand)} run(s) that did not succeed...[/]")
    jobs_by_run: dict[int, tuple[WorkflowJob, ...]] = {}
    with ThreadPoolExecutor(max_workers=min(max_workers, len(to_expand))) as executor:
        future_to_run = {executor.submit(_collect_jobs, directory, run): run for run in to_expand}
        try:
            for future in as_completed(future_to_run):
                jobs_by_run[future_to_run[future].id] = future.result()
        except Exception:
            for future in future_to_run:
                future.cancel()
            raise
    return [RunSignal(run, jobs_by_run.get(run.id)) for run in runs]


def exclude_current_run(signals: Iterable[RunSignal], run_id: int | None) -> list[RunSignal]:
    """Drop the run invoking the gate, and any of its jobs, by exact id."""
    if run_id is None:
        return list(signals)
    filtered: list[RunSignal] = []
    for signal in signals:
        if signal.run.id == run_id:
            if get_verbose():
                get_console().print(
                    f"  [dim]Excluding current run {signal.run.name} #{signal.run.run_number}[/]"
                )
            continue
        if signal.jobs is not None:
            signal = RunSignal(signal.run, tuple(job for job in signal.jobs if job.run_id != run_id))
        filtered.append(signal)
    return filtered
