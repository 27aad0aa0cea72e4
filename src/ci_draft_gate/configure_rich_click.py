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

import rich_click as click

from ci_draft_gate.commands.pr_commands_config import PR_COMMANDS, PR_PARAMETERS

click.rich_click.USE_RICH_MARKUP = True
click.rich_click.SHOW_METAVARS_COLUMN = False
click.rich_click.APPEND_METAVARS_HELP = True
click.rich_click.OPTIONS_PANEL_TITLE = "Common options"
click.rich_click.STYLE_ERRORS_SUGGESTION = "bright_blue italic"
click.rich_click.ERRORS_SUGGESTION = "\nTry running the '--help' flag for more information.\n"
click.rich_click.ERRORS_EPILOGUE = "\nTo find out more, visit https://docs.github.com/en/actions\n"
click.rich_click.OPTION_GROUPS = {**PR_PARAMETERS}
click.rich_click.COMMAND_GROUPS = {"ci-draft-gate pr": [PR_COMMANDS]}
