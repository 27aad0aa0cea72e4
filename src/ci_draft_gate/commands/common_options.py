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

import click

from ci_draft_gate.utils.github_client import GITHUB_API_URL
from ci_draft_gate.utils.shared_options import set_dry_run, set_verbose


def _set_verbose(ctx: click.Context, param: click.Option, value: bool):
    set_verbose(value)
    return value


def _set_dry_run(ctx: click.Context, param: click.Option, value: bool):
    set_dry_run(value)
    return value


option_verbose = click.option(
    "-v",
    "--verbose",
    is_flag=True,
    help="Print verbose information about performed steps.",
    envvar="VERBOSE",
    metavar="BOOLEAN",
    expose_value=False,
    callback=_set_verbose,
)
option_dry_run = click.option(
    "-D",
    "--dry-run",
    is_flag=True,
    help="Evaluate readiness only. The pull request is not converted and no comment is posted.",
    envvar="DRY_RUN",
    metavar="BOOLEAN",
    expose_value=False,
    callback=_set_dry_run,
)
option_github_token = click.option(
    "--github-token",
    help="The token used to authenticate to GitHub. Falls back to `gh auth token`.",
    envvar="GITHUB_TOKEN",
    show_envvar=True,
)
option_github_repository = click.option(
    "-g",
    "--github-repository",
    help="GitHub repository (owner/name) the pull request belongs to.",
    envvar="GITHUB_REPOSITORY",
    show_envvar=True,
    required=True,
)
option_github_api_url = click.option(
    "--github-api-url",
    help="Base URL of the GitHub REST API.",
    default=GITHUB_API_URL,
    show_default=True,
    envvar="GITHUB_API_URL",
    show_envvar=True,
)
