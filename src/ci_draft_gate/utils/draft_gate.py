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
One decision cycle of the draft gate.

``run_draft_gate`` can be called as a library function. It keeps no state between calls and performs
no retries, so callers that want resilience against transient failures wrap it in their own retry
policy. Converting the pull request is always the last step of the cycle.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass

from rich.markup import escape

from ci_draft_gate.config import GateConfig, GateContext
from ci_draft_gate.utils.console import get_console
from ci_draft_gate.utils.draft_mutator import MutationOutcome, convert_to_draft_if_needed
from ci_draft_gate.utils.github_client import CIDirectory
from ci_draft_gate.utils.readiness import ReadinessEvaluation, evaluate_readiness
from ci_draft_gate.utils.workflow_signals import (
    RunSignal,
    collect_workflow_runs,
    exclude_current_run,
    expand_workflow_jobs,
)


@dataclass(frozen=True)
class GateResult:
    evaluation: ReadinessEvaluation
    signals: tuple[RunSignal, ...]
    mutation: MutationOutcome | None = None


def run_draft_gate(
    directory: CIDirectory,
    context: GateContext,
    config: GateConfig,
    dry_run: bool = False,
    sleep: Callable[[float], None] = time.sleep,
) -> GateResult:
    """
    Evaluate the workflows of the commit and convert the pull request to draft if it is not ready.

    :param directory: the CI directory to read from and write to
    :param context: the pull request, commit and invoking run being evaluated
    :param config: comment and fetch settings
    :param dry_run: evaluate only, never convert or comment
    :param sleep: called with the settle delay before collecting, replaceable in tests
    """
    if config.settle_seconds:
        # Sibling workflows for the same push may not be registered yet
        get_console().print(
            f"[info]Waiting {config.settle_seconds:g}s for workflows of {context.head_sha} to register...[/]"
        )
        sleep(config.settle_seconds)

    runs = collect_workflow_runs(directory, context.head_sha)
    signals = expand_workflow_jobs(
        directory, runs, max_workers=config.max_workers, current_run_id=context.run_id
    )
    signals = exclude_current_run(signals, context.run_id)
    evaluation = evaluate_readiness(signals)

    if not evaluation.should_convert_to_draft:
        get_console().print("[success]All workflows passed.[/]")
        return GateResult(evaluation, tuple(signals))

    get_console().print(
        f"[warning]Verdict for {context.head_sha}: {evaluation.verdict.value} ({evaluation.summary}).[/]"
    )
    for entry in evaluation.pending + evaluation.failed:
        get_console().print(f"  {escape(entry)}")
    if dry_run:
        get_console().print(f"[warning]Dry run: would convert PR #{context.pr_number} to draft.[/]")
        return GateResult(evaluation, tuple(signals))

    mutation = convert_to_draft_if_needed(directory, context, config)
    return GateResult(evaluation, tuple(signals), mutation)
