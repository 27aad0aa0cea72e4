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

PR_COMMANDS: dict[str, str | list[str]] = {
    "name": "PR commands",
    "commands": ["gate"],
}

PR_PARAMETERS: dict[str, list[dict[str, str | list[str]]]] = {
    "ci-draft-gate pr gate": [
        {
            "name": "GitHub parameters",
            "options": ["--github-token", "--github-repository", "--github-api-url"],
        },
        {
            "name": "Pull request",
            "options": ["--pr-number", "--head-sha", "--run-id", "--event-path"],
        },
        {
            "name": "Draft conversion",
            "options": ["--leave-comment", "--comment-body"],
        },
        {
            "name": "Processing options",
            "options": ["--settle-seconds", "--max-workers"],
        },
    ],
}
