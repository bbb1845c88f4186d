"""Async client for the Bitbucket Server REST API."""

from bitbucket_rest.adapters.bitbucket_client import BitbucketClient, BitbucketClientError
from bitbucket_rest.adapters.bitbucket_models import PullRequestState
from bitbucket_rest.config.config import Settings
from bitbucket_rest.config.logging_setup import configure_logging
from bitbucket_rest.schemas.page import Limit, Page
from bitbucket_rest.services.paginator import collect, iterate

__all__ = [
    "BitbucketClient",
    "BitbucketClientError",
    "Limit",
    "Page",
    "PullRequestState",
    "Settings",
    "collect",
    "configure_logging",
    "iterate",
]
