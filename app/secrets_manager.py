import json
import logging
import os
import time
from typing import Dict, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

logger = logging.getLogger(__name__)

DEFAULT_DB_SECRET_NAME = "sk-portal/rds-credentials"

class SecretsManager:
    """
    Reads the portal's RDS credentials from AWS Secrets Manager.

    The parsed secret is kept for `ttl_seconds` so a rotated password is
    picked up without restarting the workers. When a refresh fails the
    last good copy keeps being served.
    """

    def __init__(self, region_name: Optional[str] = None, ttl_seconds: int = 300):
        self.region_name = region_name or os.environ.get("AWS_REGION", "us-east-1")
        self.ttl_seconds = ttl_seconds
        self._client = None
        self._credentials: Dict[str, Dict[str, str]] = {}
        self._fetched_at: Dict[str, float] = {}

    @property
    def client(self):
        if self._client is None:
            self._client = boto3.session.Session().client(
                service_name="secretsmanager",
                region_name=self.region_name
            )
        return self._client

    def _is_fresh(self, secret_id: str) -> bool:
        fetched_at = self._fetched_at.get(secret_id)
        return fetched_at is not None and time.time() - fetched_at < self.ttl_seconds

    def get_db_credentials(self, secret_id: Optional[str] = None) -> Dict[str, str]:
        """
        RDS-managed secrets carry username, password, host, port and dbname.
        """
        secret_id = secret_id or os.environ.get("DATABASE_SECRETS_NAME", DEFAULT_DB_SECRET_NAME)
        if self._is_fresh(secret_id):
            return self._credentials[secret_id]

        logger.info(f"Fetching database credentials from {secret_id}")
        try:
            response = self.client.get_secret_value(SecretId=secret_id)
            credentials = json.loads(response["SecretString"])
        except (BotoCoreError, ClientError, KeyError, ValueError) as e:
            if secret_id in self._credentials:
                logger.warning(f"Refreshing {secret_id} failed, reusing previous credentials: {e}")
                return self._credentials[secret_id]
            logger.error(f"Failed to load database credentials from {secret_id}: {e}")
            raise

        self._credentials[secret_id] = credentials
        self._fetched_at[secret_id] = time.time()
        return credentials

    def clear_cache(self):
        self._credentials.clear()
        self._fetched_at.clear()
