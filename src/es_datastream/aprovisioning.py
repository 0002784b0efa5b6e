from __future__ import annotations

from pathlib import Path
from typing import Optional

from loguru import logger

from .errors import ProvisioningError, is_already_exists, is_not_found
from .metrics import PROVISION_TOTAL
from .naming import ensure_valid_name
from .provisioning import (
    data_stream_exists,
    index_template_params,
    load_policy,
    policy_params,
)


class AsyncProvisioningClient:
    """Async twin of ProvisioningClient for AsyncElasticsearch."""

    def __init__(self, client, policy_path: Optional[Path] = None):
        self._client = client
        self._policy_path = policy_path

    @property
    def client(self):
        return self._client

    async def ensure_retention_policy(self, name: str) -> None:
        params = policy_params(name, load_policy(self._policy_path))
        await self._client.ilm.put_lifecycle(**params)
        PROVISION_TOTAL.labels(data_stream=name, resource="ilm_policy", outcome="upserted").inc()
        logger.info(f"ILM policy upserted: <{params['name']}>")

    async def ensure_index_template(self, name: str) -> None:
        await self._client.indices.put_index_template(**index_template_params(name))
        PROVISION_TOTAL.labels(data_stream=name, resource="index_template", outcome="upserted").inc()
        logger.info(f"Index template upserted: <{name}>")

    async def ensure_data_stream(self, name: str) -> bool:
        try:
            response = await self._client.indices.get_data_stream(name=name)
        except Exception as e:
            if not is_not_found(e):
                raise
            logger.info(f"Specified data stream does not exist. Will be created: <{e}>")
        else:
            if data_stream_exists(response):
                PROVISION_TOTAL.labels(data_stream=name, resource="data_stream", outcome="exists").inc()
                logger.info(f"Specified data stream exists: <{name}>")
                return False
            logger.info(f"Specified data stream does not exist. Will be created: <{name}>")

        try:
            await self._client.indices.create_data_stream(name=name)
        except Exception as e:
            if not is_already_exists(e):
                raise
            PROVISION_TOTAL.labels(data_stream=name, resource="data_stream", outcome="exists").inc()
            logger.info(f"Data stream created concurrently: <{name}>")
            return False
        PROVISION_TOTAL.labels(data_stream=name, resource="data_stream", outcome="created").inc()
        logger.info(f"Data stream created: <{name}>")
        return True

    async def provision(self, name: str) -> None:
        ensure_valid_name(name)
        try:
            await self.ensure_retention_policy(name)
            await self.ensure_index_template(name)
            await self.ensure_data_stream(name)
        except Exception as e:
            PROVISION_TOTAL.labels(data_stream=name, resource="all", outcome="failed").inc()
            raise ProvisioningError(name, e) from e
