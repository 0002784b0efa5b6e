"""
One-time setup of the remote resources backing a data stream.

ILM policy -> index template -> data stream, in that order. Policy and
template are upserts; the data stream is checked first and only created
when Elasticsearch reports it absent.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

from loguru import logger

from .errors import ProvisioningError, is_already_exists, is_not_found
from .metrics import PROVISION_TOTAL
from .naming import ensure_valid_name

DEFAULT_POLICY_PATH = Path(__file__).parent / "default-ilm-policy.json"


def policy_id(name: str) -> str:
    return f"{name}_policy"


def load_policy(path: Optional[Path] = None) -> dict:
    with open(path or DEFAULT_POLICY_PATH, "r", encoding="utf-8") as fh:
        return json.load(fh)


def policy_params(name: str, document: dict) -> dict:
    # the bundled document is wrapped the way the REST API expects it
    return {"name": policy_id(name), "policy": document.get("policy", document)}


def index_template_params(name: str) -> dict:
    return {
        "name": name,
        "index_patterns": [f"{name}*"],
        "data_stream": {},
        "template": {"settings": {"index.lifecycle.name": policy_id(name)}},
    }


def data_stream_exists(response: Any) -> bool:
    """A 200 with no matching streams is treated the same as a 404."""
    body = getattr(response, "body", response)
    if isinstance(body, dict) and "data_streams" in body:
        return bool(body["data_streams"])
    return True


class ProvisioningClient:
    """
    Makes the cluster match the schema a data stream output needs.

    Usage:
        es = Elasticsearch("http://localhost:9200")
        ProvisioningClient(es).provision("my-logs")
    """

    def __init__(self, client, policy_path: Optional[Path] = None):
        self._client = client
        self._policy_path = policy_path

    @property
    def client(self):
        return self._client

    def ensure_retention_policy(self, name: str) -> None:
        params = policy_params(name, load_policy(self._policy_path))
        self._client.ilm.put_lifecycle(**params)
        PROVISION_TOTAL.labels(data_stream=name, resource="ilm_policy", outcome="upserted").inc()
        logger.info(f"ILM policy upserted: <{params['name']}>")

    def ensure_index_template(self, name: str) -> None:
        self._client.indices.put_index_template(**index_template_params(name))
        PROVISION_TOTAL.labels(data_stream=name, resource="index_template", outcome="upserted").inc()
        logger.info(f"Index template upserted: <{name}>")

    def ensure_data_stream(self, name: str) -> bool:
        """Create the data stream unless it exists. Returns True if created."""
        try:
            response = self._client.indices.get_data_stream(name=name)
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
            self._client.indices.create_data_stream(name=name)
        except Exception as e:
            if not is_already_exists(e):
                raise
            # another worker created it between our check and create
            PROVISION_TOTAL.labels(data_stream=name, resource="data_stream", outcome="exists").inc()
            logger.info(f"Data stream created concurrently: <{name}>")
            return False
        PROVISION_TOTAL.labels(data_stream=name, resource="data_stream", outcome="created").inc()
        logger.info(f"Data stream created: <{name}>")
        return True

    def provision(self, name: str) -> None:
        """Validate ``name`` then run all three steps; any failure is fatal."""
        ensure_valid_name(name)
        try:
            self.ensure_retention_policy(name)
            self.ensure_index_template(name)
            self.ensure_data_stream(name)
        except Exception as e:
            PROVISION_TOTAL.labels(data_stream=name, resource="all", outcome="failed").inc()
            raise ProvisioningError(name, e) from e
