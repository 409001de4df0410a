"""Built-in repository host providers."""

from __future__ import annotations

from typing import Final

from gitlink.providers.base import BaseProvider, ProviderRegistry

GITHUB_PATTERN: Final[str] = (
    r"(?:https?://(?:www\.)?github\.com/|git@github\.com:)"
    r"(?P<owner>[^/\s]+)/(?P<repo>[^/\s]+?)(?:\.git)?/?"
)
BITBUCKET_PATTERN: Final[str] = (
    r"(?:https?://(?:[^@/\s]+@)?bitbucket\.org/|git@bitbucket\.org:)"
    r"(?P<owner>[^/\s]+)/(?P<repo>[^/\s]+?)(?:\.git)?/?"
)
CUSTOM_RAW_URL_PATTERN: Final[str] = r"https?://\S+"


class GitHubProvider(BaseProvider):
    name = "github"

    def raw_content_base_url(self) -> str:
        owner = self.target.match.group("owner")
        repo = self.target.match.group("repo")
        return f"https://raw.githubusercontent.com/{owner}/{repo}"


class BitbucketProvider(BaseProvider):
    name = "bitbucket"

    def raw_content_base_url(self) -> str:
        owner = self.target.match.group("owner")
        repo = self.target.match.group("repo")
        return f"https://bitbucket.org/{owner}/{repo}/raw"


class CustomRawUrlProvider(BaseProvider):
    """Any other http(s) URL, taken verbatim as the raw-content base."""

    name = "custom"

    def raw_content_base_url(self) -> str:
        return self.target.url.rstrip("/")


def default_registry() -> ProviderRegistry:
    """Registry with the built-in hosts; the catch-all custom provider goes last."""

    registry = ProviderRegistry()
    registry.register(GitHubProvider.name, GITHUB_PATTERN, GitHubProvider)
    registry.register(BitbucketProvider.name, BITBUCKET_PATTERN, BitbucketProvider)
    registry.register(CustomRawUrlProvider.name, CUSTOM_RAW_URL_PATTERN, CustomRawUrlProvider)
    return registry


__all__ = [
    "BITBUCKET_PATTERN",
    "CUSTOM_RAW_URL_PATTERN",
    "GITHUB_PATTERN",
    "BitbucketProvider",
    "CustomRawUrlProvider",
    "GitHubProvider",
    "default_registry",
]
