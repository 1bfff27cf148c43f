"""Async client for the GitHub REST and GraphQL APIs."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Literal

import httpx
from pydantic import BaseModel, ConfigDict

from prmerge.core.config import GithubConfig, MergeMethod
from prmerge.core.log import logger

TOKEN_SETTINGS_URL = "https://github.com/settings/tokens"
TOKEN_GENERATE_URL = "https://github.com/settings/tokens/new"

PULL_REQUEST_QUERY = """
query($owner: String!, $name: String!, $number: Int!) {
  repository(owner: $owner, name: $name) {
    pullRequest(number: $number) {
      url
      number
      title
      state
      isDraft
      baseRefName
      headRefName
      headRefOid
      maintainerCanModify
      headRepository { nameWithOwner }
      commits(last: 100) {
        totalCount
        nodes { commit { message status { state } } }
      }
      labels(first: 100) { nodes { name } }
    }
  }
}
"""


class GithubApiRequestError(Exception):
    """A GitHub API request returned an error status."""

    def __init__(self, status: int, message: str) -> None:
        self.status = status
        self.message = message
        super().__init__(f"[{status}] {message}")


class PullRequestData(BaseModel):
    """Pull request as returned by the GitHub API, before validation."""

    model_config = ConfigDict(frozen=True)

    url: str
    number: int
    title: str
    state: Literal["OPEN", "CLOSED", "MERGED"]
    is_draft: bool
    base_ref_name: str
    head_ref_name: str
    head_sha: str
    head_repository: str | None = None
    maintainer_can_modify: bool = False
    commit_count: int
    commit_messages: list[str]
    ci_status: str | None = None
    labels: list[str]

    @classmethod
    def from_graphql(cls, node: dict[str, Any]) -> PullRequestData:
        commits = node["commits"]
        commit_nodes = [n["commit"] for n in commits["nodes"]]
        last_status = commit_nodes[-1]["status"] if commit_nodes else None
        head_repository = node.get("headRepository") or {}
        return cls(
            url=node["url"],
            number=node["number"],
            title=node["title"],
            state=node["state"],
            is_draft=node["isDraft"],
            base_ref_name=node["baseRefName"],
            head_ref_name=node["headRefName"],
            head_sha=node["headRefOid"],
            head_repository=head_repository.get("nameWithOwner"),
            maintainer_can_modify=node.get("maintainerCanModify", False),
            commit_count=commits["totalCount"],
            commit_messages=[c["message"] for c in commit_nodes],
            ci_status=last_status["state"] if last_status else None,
            labels=[label["name"] for label in node["labels"]["nodes"]],
        )


class MergeResponse(BaseModel):
    """Response of the pull request merge endpoint."""

    status: int
    sha: str | None = None
    message: str = ""


class GithubClient:
    """Hosting API client for one repository.

    Use as an async context manager, or call close() when done.
    """

    def __init__(
        self,
        config: GithubConfig,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 30.0,
    ) -> None:
        """
        Args:
            config: Repository and token settings
            transport: Optional httpx transport (tests pass a
                MockTransport)
            timeout: Request timeout in seconds
        """
        self.config = config
        headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": "prmerge",
        }
        if config.token:
            headers["Authorization"] = f"Bearer {config.token}"

        self._client = httpx.AsyncClient(
            base_url=config.api_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )
        self._oauth_scopes: list[str] | None = None

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> GithubClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def _request(
        self, method: str, path: str, **kwargs: Any
    ) -> httpx.Response:
        logger.debug(f"GitHub API {method} {path}")
        response = await self._client.request(method, path, **kwargs)
        if response.status_code >= 400:
            raise GithubApiRequestError(
                response.status_code, _error_message(response)
            )
        return response

    async def graphql(
        self, query: str, variables: dict[str, Any]
    ) -> dict[str, Any]:
        """Run a GraphQL query and return its ``data`` member."""
        response = await self._request(
            "POST", "/graphql", json={"query": query, "variables": variables}
        )
        return response.json().get("data") or {}

    async def get_oauth_scopes(self) -> list[str]:
        """Scopes granted to the token, read once per client.

        Raises:
            GithubApiRequestError: If the API does not report scopes,
                e.g. for tokens that are not OAuth tokens
        """
        if self._oauth_scopes is None:
            response = await self._request("GET", "/rate_limit")
            header = response.headers.get("x-oauth-scopes")
            if header is None:
                raise GithubApiRequestError(
                    response.status_code,
                    "Unable to retrieve OAuth scopes for token provided.",
                )
            self._oauth_scopes = [
                scope.strip() for scope in header.split(",") if scope.strip()
            ]
        return self._oauth_scopes

    async def check_oauth_scopes(
        self, test: Callable[[list[str], list[str]], None]
    ) -> str | None:
        """Check the token scopes with a test function.

        Args:
            test: Called with the granted scopes and a list to which it
                appends every missing scope

        Returns:
            None when no scope is missing, otherwise a message telling
            the user how to fix the token
        """
        scopes = await self.get_oauth_scopes()
        missing: list[str] = []
        test(scopes, missing)
        if not missing:
            return None
        return (
            "The provided <TOKEN> does not have required permissions due "
            f"to missing scope(s): {', '.join(missing)}\n\n"
            f"Update the token in use at:\n  {TOKEN_SETTINGS_URL}\n\n"
            f"Alternatively, a new token can be created at: "
            f"{TOKEN_GENERATE_URL}\n"
        )

    async def get_pull_request(
        self, pr_number: int
    ) -> PullRequestData | None:
        """Fetch a pull request, or None if it does not exist."""
        data = await self.graphql(PULL_REQUEST_QUERY, {
            "owner": self.config.owner,
            "name": self.config.name,
            "number": pr_number,
        })
        node = (data.get("repository") or {}).get("pullRequest")
        if node is None:
            return None
        return PullRequestData.from_graphql(node)

    async def merge_pull_request(
        self,
        pr_number: int,
        method: MergeMethod,
        sha: str | None = None,
    ) -> MergeResponse:
        """Merge a pull request through the API.

        405 (not mergeable) and 409 (head moved) are returned as
        responses so the caller can map them to failures.

        Raises:
            GithubApiRequestError: For any other error status
        """
        body: dict[str, Any] = {"merge_method": method}
        if sha:
            body["sha"] = sha
        path = (
            f"/repos/{self.config.owner}/{self.config.name}"
            f"/pulls/{pr_number}/merge"
        )
        try:
            response = await self._request("PUT", path, json=body)
        except GithubApiRequestError as e:
            if e.status in (405, 409):
                return MergeResponse(status=e.status, message=e.message)
            raise

        data = response.json()
        return MergeResponse(
            status=response.status_code,
            sha=data.get("sha"),
            message=data.get("message", ""),
        )


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(data, dict) and data.get("message"):
        return data["message"]
    return response.reason_phrase


__all__ = [
    "GithubApiRequestError",
    "GithubClient",
    "MergeResponse",
    "PullRequestData",
]
