import asyncio
import json
from abc import ABC, abstractmethod
from http import HTTPStatus
from ipaddress import IPv6Network
from typing import Any, Dict, Optional

import aiohttp

from ubitix.constants import GITHUB_API_URL, GITHUB_API_VERSION, WORKFLOW_DEFAULT_REF, WORKFLOW_DISPATCH_TIMEOUT
from ubitix.errors import NotifierError
from ubitix.logging import get_logger

from .subnet import Mapping

logger = get_logger(__name__)


def mapping_to_json(mapping: Mapping) -> str:
    return json.dumps({public.with_prefixlen: private.with_prefixlen for public, private in mapping.items()})


class Notifier(ABC):
    @abstractmethod
    async def notify(self, prefix: IPv6Network, mapping: Mapping) -> None:
        raise NotImplementedError()


class WorkflowNotifier(Notifier):
    """
    Triggers a GitHub Actions workflow run through the 'workflow_dispatch' event.

    The new prefix and the mapping are passed to the workflow as its inputs.
    Workflow inputs can only be strings, so the mapping is sent as a JSON encoded object.
    """

    def __init__(
        self,
        token: str,
        owner: str,
        repository: str,
        workflow: str,
        ref: str = WORKFLOW_DEFAULT_REF,
        api_url: str = GITHUB_API_URL,
        timeout: float = WORKFLOW_DISPATCH_TIMEOUT,
    ) -> None:
        self._token = token
        self._ref = ref
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._url = f"{api_url.rstrip('/')}/repos/{owner}/{repository}/actions/workflows/{workflow}/dispatches"

    @property
    def url(self) -> str:
        return self._url

    def _headers(self) -> Dict[str, str]:
        return {
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {self._token}",
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
        }

    def payload(self, prefix: IPv6Network, mapping: Mapping) -> Dict[str, Any]:
        return {
            "ref": self._ref,
            "inputs": {
                "prefix": prefix.with_prefixlen,
                "mapping": mapping_to_json(mapping),
            },
        }

    async def notify(self, prefix: IPv6Network, mapping: Mapping) -> None:
        logger.info(f"Dispatching workflow run at '{self._url}'")
        try:
            async with aiohttp.ClientSession(headers=self._headers(), timeout=self._timeout) as session:
                async with session.post(self._url, json=self.payload(prefix, mapping)) as response:
                    if response.status != HTTPStatus.NO_CONTENT:
                        body = await response.text()
                        raise NotifierError(f"workflow dispatch failed with status {response.status}: {body}")
        except asyncio.TimeoutError as e:
            raise NotifierError(f"workflow dispatch request timed out after {self._timeout.total} seconds") from e
        except aiohttp.ClientError as e:
            raise NotifierError(f"workflow dispatch request failed: {e}") from e
        logger.info("Workflow run dispatched")


class DisabledNotifier(Notifier):
    def __init__(self, reason: Optional[str] = None) -> None:
        self._reason = reason or "no workflow is configured"

    async def notify(self, prefix: IPv6Network, mapping: Mapping) -> None:
        logger.info(f"Not dispatching any workflow for prefix {prefix}, {self._reason}")
