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
Access to the GitHub REST and GraphQL APIs used by the draft gate.

The gate only talks to GitHub through the :class:`CIDirectory` protocol, so the decision logic can be
exercised against an in-memory directory in tests. :class:`GitHubDirectory` is the production
implementation. It performs a single request per call and never retries.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

import requests

from ci_draft_gate.exceptions import CommentError, FetchError, MutationError, SchemaError
from ci_draft_gate.utils.console import get_console
from ci_draft_gate.utils.shared_options import get_verbose

GITHUB_API_URL = "https://api.github.com"

# Maximum page size accepted by the GitHub REST API
PAGE_SIZE = 100

_CONVERT_TO_DRAFT_MUTATION = """
mutation($prId: ID!) {
  convertPullRequestToDraft(input: {pullRequestId: $prId}) {
    pullRequest { id isDraft }
  }
}
"""


@dataclass(frozen=True)
class ApiPage:
    """One page of a paginated listing."""

    payload: dict[str, Any]
    has_next: bool


class CIDirectory(Protocol):
    """Operations the gate needs from the remote CI directory."""

    def list_workflow_runs(self, head_sha: str, page: int) -> ApiPage: ...

    def list_workflow_jobs(self, run_id: int, page: int) -> ApiPage: ...

    def get_pull_request(self, pr_number: int) -> dict[str, Any]: ...

    def convert_pull_request_to_draft(self, node_id: str) -> None: ...

    def create_issue_comment(self, pr_number: int, body: str) -> None: ...


def _graphql_url(api_url: str) -> str:
    # GitHub Enterprise Server serves REST under /api/v3 and GraphQL under /api/graphql
    if api_url.endswith("/api/v3"):
        return api_url[: -len("v3")] + "graphql"
    return f"{api_url}/graphql"


class GitHubDirectory:
    """:class:`CIDirectory` backed by the GitHub API of a single repository."""

    def __init__(
        self,
        token: str,
        github_repository: str,
        api_url: str = GITHUB_API_URL,
        timeout: float = 30,
        session: requests.Session | None = None,
    ):
        self.github_repository = github_repository
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        # A session passed in is owned by the caller and is not closed here
        self._owns_session = session is None
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
            }
        )

    def close(self) -> None:
        if self._owns_session:
            self._session.close()

    def __enter__(self) -> GitHubDirectory:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _repo_url(self, path: str) -> str:
        return f"{self.api_url}/repos/{self.github_repository}/{path}"

    def _get(self, url: str, params: dict[str, Any], description: str) -> requests.Response:
        try:
            response = self._session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise FetchError(f"Failed to fetch {description}: {e}") from e
        if get_verbose():
            get_console().print(f"[info]GET {url} {params} -> {response.status_code}[/]")
        if response.status_code != 200:
            raise FetchError(f"Failed to fetch {description}: {response.status_code} {response.reason}")
        return response

    @staticmethod
    def _json_object(response: requests.Response, description: str) -> dict[str, Any]:
        try:
            data = response.json()
        except ValueError as e:
            raise SchemaError(f"Response for {description} is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise SchemaError(f"Response for {description} is not a JSON object")
        return data

    def _get_page(self, url: str, params: dict[str, Any], page: int, description: str) -> ApiPage:
        response = self._get(url, {**params, "per_page": PAGE_SIZE, "page": page}, description)
        return ApiPage(
            payload=self._json_object(response, description),
            has_next="next" in response.links,
        )

    def list_workflow_runs(self, head_sha: str, page: int) -> ApiPage:
        return self._get_page(
            self._repo_url("actions/runs"),
            {"head_sha": head_sha},
            page,
            f"workflow runs for commit {head_sha} (page {page})",
        )

    def list_workflow_jobs(self, run_id: int, page: int) -> ApiPage:
        return self._get_page(
            self._repo_url(f"actions/runs/{run_id}/jobs"),
            {"filter": "latest"},
            page,
            f"jobs of workflow run {run_id} (page {page})",
        )

    def get_pull_request(self, pr_number: int) -> dict[str, Any]:
        description = f"pull request #{pr_number}"
        response = self._get(self._repo_url(f"pulls/{pr_number}"), {}, description)
        return self._json_object(response, description)

    def _graphql_request(self, query: str, variables: dict[str, Any], description: str) -> dict[str, Any]:
        """Execute a GitHub GraphQL mutation. Returns the 'data' dict or raises MutationError."""
        try:
            response = self._session.post(
                _graphql_url(self.api_url),
                json={"query": query, "variables": variables},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise MutationError(f"Failed to {description}: {e}") from e
        if response.status_code != 200:
            raise MutationError(f"Failed to {description}: {response.status_code} {response.text}")
        try:
            result = response.json()
        except ValueError as e:
            raise MutationError(f"Failed to {description}: invalid JSON response: {e}") from e
        if not isinstance(result, dict):
            raise MutationError(f"Failed to {description}: response is not a JSON object")
        if result.get("errors"):
            messages = "; ".join(error.get("message", str(error)) for error in result["errors"])
            raise MutationError(f"Failed to {description}: {messages}")
        return result.get("data") or {}

    def convert_pull_request_to_draft(self, node_id: str) -> None:
        self._graphql_request(
            _CONVERT_TO_DRAFT_MUTATION, {"prId": node_id}, f"convert pull request {node_id} to draft"
        )

    def create_issue_comment(self, pr_number: int, body: str) -> None:
        try:
            response = self._session.post(
                self._repo_url(f"issues/{pr_number}/comments"),
                json={"body": body},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise CommentError(f"Failed to comment on pull request #{pr_number}: {e}") from e
        if response.status_code != 201:
            raise CommentError(
                f"Failed to comment on pull request #{pr_number}: {response.status_code} {response.reason}"
            )
