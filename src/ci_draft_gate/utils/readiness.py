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

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from ci_draft_gate.utils.workflow_signals import SKIPPED, SUCCESS, RunSignal, WorkflowJob, WorkflowRun

# Job conclusions that do not count against readiness
_PASSING_JOB_CONCLUSIONS = {SUCCESS, SKIPPED}


class Verdict(str, Enum):
    """Readiness of the commit under evaluation."""

    READY = "ready"
    PENDING = "pending"
    FAILED = "failed"


@dataclass(frozen=True)
class ReadinessEvaluation:
    """Verdict plus the entries that caused it, for diagnostics."""

    verdict: Verdict
    pending: tuple[str, ...] = ()
    failed: tuple[str, ...] = ()

    @property
    def should_convert_to_draft(self) -> bool:
        return self.verdict != Verdict.READY

    @property
    def summary(self) -> str:
        if self.verdict == Verdict.READY:
            return "all workflows passed"
        entries = self.pending if self.verdict == Verdict.PENDING else self.failed
        noun = "entries" if len(entries) != 1 else "entry"
        state = "still running" if self.verdict == Verdict.PENDING else "did not pass"
        return f"{len(entries)} workflow {noun} {state}"


def _describe_run(run: WorkflowRun) -> str:
    return f"{run.name} #{run.run_number} ({run.status}/{run.conclusion or '-'})"


def _describe_job(run: WorkflowRun, job: WorkflowJob) -> str:
    return f"{run.name} #{run.run_number} / {job.name} ({job.status}/{job.conclusion or '-'})"


def _failed_entries(signal: RunSignal) -> list[str]:
    run = signal.run
    if run.conclusion == SUCCESS:
        return []
    if signal.jobs:
        return [
            _describe_job(run, job) for job in signal.jobs if job.conclusion not in _PASSING_JOB_CONCLUSIONS
        ]
    # Nothing finer-grained to look at, so the run-level conclusion decides
    if run.conclusion == SKIPPED:
        return []
    return [_describe_run(run)]


def evaluate_readiness(signals: Iterable[RunSignal]) -> ReadinessEvaluation:
    """
    Reduce a filtered snapshot to a verdict.

    Any run or job that is not completed makes the commit PENDING, before any failure is looked at.
    Otherwise the commit is READY when every run succeeded, or when every job of a run that did not
    succeed was either successful or skipped. A completed entry without a conclusion counts as failed.
    An empty snapshot is READY.
    """
    signals = list(signals)
    pending: list[str] = []
    for signal in signals:
        if not signal.run.is_completed:
            pending.append(_describe_run(signal.run))
        for job in signal.jobs or ():
            if not job.is_completed:
                pending.append(_describe_job(signal.run, job))
    if pending:
        return ReadinessEvaluation(Verdict.PENDING, pending=tuple(pending))

    failed = [entry for signal in signals for entry in _failed_entries(signal)]
    if failed:
        return ReadinessEvaluation(Verdict.FAILED, failed=tuple(failed))
    return ReadinessEvaluation(Verdict.READY)
