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

import threading
import time

import pytest

from ci_draft_gate.exceptions import FetchError, SchemaError
from ci_draft_gate.utils.github_client import ApiPage
from ci_draft_gate.utils.workflow_signals import (
    RunSignal,
    WorkflowJob,
    WorkflowRun,
    collect_workflow_runs,
    exclude_current_run,
    expand_workflow_jobs,
)
from tests.github_fakes import CURRENT_RUN_ID, HEAD_SHA, FakeDirectory, make_job, make_run


class SlowDirectory(FakeDirectory):
    """Directory whose job listings take a while, recording how many overlap."""

    def __init__(self, delay: float = 0.05, **kwargs):
        super().__init__(**kwargs)
        self.delay = delay
        self.active = 0
        self.peak = 0
        self._lock = threading.Lock()

    def list_workflow_jobs(self, run_id: int, page: int) -> ApiPage:
        with self._lock:
            self.active += 1
            self.peak = max(self.peak, self.active)
        try:
            if run_id not in self.failing_job_runs:
                time.sleep(self.delay)
            return super().list_workflow_jobs(run_id, page)
        finally:
            with self._lock:
                self.active -= 1


class TestWorkflowRunFromApi:
    def test_parses_fields(self):
        run = WorkflowRun.from_api(make_run(7, status="in_progress", conclusion=None, run_number=3))
        assert run.id == 7
        assert run.run_number == 3
        assert run.head_sha == HEAD_SHA
        assert run.pull_requests == (42,)
        assert not run.is_completed
        assert not run.is_successful

    def test_missing_optional_fields(self):
        run = WorkflowRun.from_api({"id": 5})
        assert run.name == "unknown"
        assert run.status == "unknown"
        assert run.conclusion is None
        assert run.pull_requests == ()


class TestCollectWorkflowRuns:
    def test_merges_all_pages(self):
        directory = FakeDirectory(run_pages=[[make_run(1)], [make_run(2)]])
        runs = collect_workflow_runs(directory, HEAD_SHA)
        assert [run.id for run in runs] == [1, 2]
        assert directory.run_requests == [1, 2]

    def test_empty_listing_is_no_runs(self):
        directory = FakeDirectory(run_pages=[[]])
        assert collect_workflow_runs(directory, HEAD_SHA) == []

    def test_runs_listed_twice_are_counted_once(self):
        directory = FakeDirectory(
            run_pages=[[make_run(1), make_run(2)], [make_run(2, status="completed"), make_run(3)]]
        )
        runs = collect_workflow_runs(directory, HEAD_SHA)
        assert [run.id for run in runs] == [1, 2, 3]

    def test_orders_by_run_number(self):
        directory = FakeDirectory(run_pages=[[make_run(1, run_number=9), make_run(2, run_number=4)]])
        assert [run.id for run in collect_workflow_runs(directory, HEAD_SHA)] == [2, 1]

    def test_ignores_runs_for_other_commits(self):
        directory = FakeDirectory(run_pages=[[make_run(1), make_run(2, head_sha="def456")]])
        assert [run.id for run in collect_workflow_runs(directory, HEAD_SHA)] == [1]

    def test_missing_array_raises_schema_error(self):
        directory = FakeDirectory()
        directory.list_workflow_runs = lambda head_sha, page: ApiPage(
            payload={"message": "ok"}, has_next=False
        )
        with pytest.raises(SchemaError, match="'workflow_runs' is missing"):
            collect_workflow_runs(directory, HEAD_SHA)

    def test_schema_error_is_a_fetch_error(self):
        assert issubclass(SchemaError, FetchError)

    def test_malformed_run_raises_schema_error(self):
        directory = FakeDirectory(run_pages=[[{"name": "no id"}]])
        with pytest.raises(SchemaError, match="Malformed workflow run"):
            collect_workflow_runs(directory, HEAD_SHA)

    def test_fetch_error_is_propagated(self):
        directory = FakeDirectory()
        directory.runs_error = FetchError("Failed to fetch workflow runs: 500 Server Error")
        with pytest.raises(FetchError, match="500"):
            collect_workflow_runs(directory, HEAD_SHA)


class TestExpandWorkflowJobs:
    def test_all_successful_runs_are_not_expanded(self):
        directory = FakeDirectory()
        runs = [WorkflowRun.from_api(make_run(1)), WorkflowRun.from_api(make_run(2))]
        signals = expand_workflow_jobs(directory, runs)
        assert directory.job_requests == []
        assert all(signal.jobs is None for signal in signals)

    def test_runs_in_flight_are_not_expanded(self):
        directory = FakeDirectory()
        runs = [WorkflowRun.from_api(make_run(1, status="in_progress", conclusion=None))]
        expand_workflow_jobs(directory, runs)
        assert directory.job_requests == []

    def test_expands_unsuccessful_runs_across_pages(self):
        directory = FakeDirectory(
            job_pages={
                2: [[make_job(21, 2, conclusion="skipped")], [make_job(22, 2, conclusion="failure")]],
                3: [[make_job(31, 3, conclusion="cancelled")]],
            }
        )
        runs = [
            WorkflowRun.from_api(make_run(1)),
            WorkflowRun.from_api(make_run(2, conclusion="failure")),
            WorkflowRun.from_api(make_run(3, conclusion="cancelled")),
        ]
        signals = expand_workflow_jobs(directory, runs, max_workers=2)
        assert [signal.run.id for signal in signals] == [1, 2, 3]
        assert signals[0].jobs is None
        assert [job.id for job in signals[1].jobs] == [21, 22]
        assert [job.id for job in signals[2].jobs] == [31]
        assert sorted(directory.job_requests) == [(2, 1), (2, 2), (3, 1)]

    def test_one_failing_expansion_aborts(self):
        directory = FakeDirectory(job_pages={2: [[make_job(21, 2)]]})
        directory.failing_job_runs = {3}
        runs = [
            WorkflowRun.from_api(make_run(2, conclusion="failure")),
            WorkflowRun.from_api(make_run(3, conclusion="failure")),
        ]
        with pytest.raises(FetchError, match="workflow run 3"):
            expand_workflow_jobs(directory, runs)

    def test_job_fetches_are_bounded_by_max_workers(self):
        directory = SlowDirectory()
        runs = [WorkflowRun.from_api(make_run(run_id, conclusion="failure")) for run_id in range(1, 7)]
        signals = expand_workflow_jobs(directory, runs, max_workers=2)
        assert 1 <= directory.peak <= 2
        assert sorted(directory.job_requests) == [(run_id, 1) for run_id in range(1, 7)]
        assert all(signal.jobs == () for signal in signals)

    def test_failing_fetch_cancels_outstanding_fetches(self):
        directory = SlowDirectory(delay=0.5)
        directory.failing_job_runs = {1}
        runs = [WorkflowRun.from_api(make_run(run_id, conclusion="failure")) for run_id in range(1, 9)]
        with pytest.raises(FetchError, match="workflow run 1"):
            expand_workflow_jobs(directory, runs, max_workers=1)
        assert directory.job_requests[0] == (1, 1)
        assert len(directory.job_requests) < 8

    def test_current_run_is_not_expanded(self):
        directory = FakeDirectory(job_pages={2: [[make_job(21, 2, conclusion="failure")]]})
        directory.failing_job_runs = {CURRENT_RUN_ID}
        runs = [
            WorkflowRun.from_api(make_run(CURRENT_RUN_ID, conclusion="failure")),
            WorkflowRun.from_api(make_run(2, conclusion="failure")),
        ]
        signals = expand_workflow_jobs(directory, runs, current_run_id=CURRENT_RUN_ID)
        assert directory.job_requests == [(2, 1)]
        assert signals[0].jobs is None
        assert [job.id for job in signals[1].jobs] == [21]

    def test_missing_jobs_array_raises_schema_error(self):
        directory = FakeDirectory()
        directory.list_workflow_jobs = lambda run_id, page: ApiPage(payload={}, has_next=False)
        with pytest.raises(SchemaError, match="'jobs' is missing"):
            expand_workflow_jobs(directory, [WorkflowRun.from_api(make_run(1, conclusion="failure"))])


class TestExcludeCurrentRun:
    def test_removes_current_run_by_id(self):
        signals = [
            RunSignal(WorkflowRun.from_api(make_run(CURRENT_RUN_ID, status="in_progress", conclusion=None))),
            RunSignal(WorkflowRun.from_api(make_run(1))),
        ]
        assert [signal.run.id for signal in exclude_current_run(signals, CURRENT_RUN_ID)] == [1]

    def test_keeps_siblings_sharing_the_status_of_the_current_run(self):
        signals = [
            RunSignal(WorkflowRun.from_api(make_run(CURRENT_RUN_ID, status="in_progress", conclusion=None))),
            RunSignal(WorkflowRun.from_api(make_run(1, status="in_progress", conclusion=None))),
        ]
        filtered = exclude_current_run(signals, CURRENT_RUN_ID)
        assert [signal.run.id for signal in filtered] == [1]

    def test_removes_jobs_of_current_run(self):
        signal = RunSignal(
            WorkflowRun.from_api(make_run(1, conclusion="failure")),
            (
                WorkflowJob.from_api(make_job(11, 1)),
                WorkflowJob.from_api(make_job(12, CURRENT_RUN_ID, status="in_progress", conclusion=None)),
            ),
        )
        (filtered,) = exclude_current_run([signal], CURRENT_RUN_ID)
        assert [job.id for job in filtered.jobs] == [11]

    def test_without_run_id_nothing_is_removed(self):
        signals = [RunSignal(WorkflowRun.from_api(make_run(CURRENT_RUN_ID)))]
        assert exclude_current_run(signals, None) == signals
