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

from ci_draft_gate import __version__
from ci_draft_gate.configure_rich_click import click  # isort: skip
from ci_draft_gate.commands.pr_commands import pr_group
from ci_draft_gate.utils.click_utils import GateGroup


@click.group(
    cls=GateGroup,
    name="ci-draft-gate",
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.version_option(__version__, prog_name="ci-draft-gate")
def main():
    """Keep pull requests in draft until the CI workflows of their head commit pass."""


main.add_command(pr_group)

if __name__ == "__main__":
    main()
