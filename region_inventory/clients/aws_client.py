# Copyright (c) 2026 Region Inventory contributors.
# Licensed under the Apache License, Version 2.0.

"""AWS client wrapper for region discovery and read-only inventory calls."""

import asyncio
import logging
import time
from typing import Any, Callable

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

logger = logging.getLogger(__name__)

# Cost Explorer is a global API served from us-east-1
COST_EXPLORER_REGION = "us-east-1"


class AWSAPIError(Exception):
    """Raised when AWS API calls fail.

    ``error_code`` holds the provider error code (e.g. ``AccessDenied``) for
    client errors, or the botocore exception class name for transport and
    credential errors.
    """

    def __init__(self, message: str, error_code: str | None = None):
        super().__init__(message)
        self.error_code = error_code


def default_boto_config(region: str) -> Config:
    """boto3 configuration shared by every client of one region."""
    return Config(
        region_name=region,
        retries={
            "max_attempts": 3,
            "mode": "adaptive",
        },
        connect_timeout=10,
        read_timeout=30,
    )


class AWSClient:
    """
    Wrapper around the boto3 clients of a single region.

    Calls run in the default thread pool so they never block the event loop.
    Results are raw provider records; mapping to inventory items happens in
    ``utils.inventory_mapping``. Credentials come from the explicit mapping
    when given, otherwise from the default boto3 chain (environment, shared
    config, instance profile).
    """

    def __init__(
        self,
        region: str = "us-east-1",
        credentials: dict[str, str] | None = None,
        boto_config: Config | None = None,
    ):
        """
        Initialize AWS clients.

        Args:
            region: AWS region to use for regional services
            credentials: Optional aws_access_key_id / aws_secret_access_key /
                aws_session_token mapping
            boto_config: Optional boto3 Config (region_name is overridden)
        """
        config = default_boto_config(region)
        if boto_config is not None:
            config = boto_config.merge(Config(region_name=region))

        session = boto3.Session(**(credentials or {}))

        self.region = region
        self.ec2 = session.client("ec2", config=config)
        self.rds = session.client("rds", config=config)
        self.lambda_client = session.client("lambda", config=config)
        self.ce = session.client("ce", region_name=COST_EXPLORER_REGION)

        # Rate limiting state
        self._last_call_time: dict[str, float] = {}
        self._min_call_interval = 0.1  # 100ms between calls to same service

    async def _rate_limit(self, service_name: str) -> None:
        """Space out consecutive calls to the same service."""
        if service_name in self._last_call_time:
            elapsed = time.time() - self._last_call_time[service_name]
            if elapsed < self._min_call_interval:
                await asyncio.sleep(self._min_call_interval - elapsed)

        self._last_call_time[service_name] = time.time()

    async def _call(self, service_name: str, func: Callable[..., Any], *args, **kwargs) -> Any:
        """
        Run a blocking boto3 call in the thread pool.

        Retrying is left to the caller (see ``utils.retry.with_retry``) so
        that each failure is classified before a retry is attempted.

        Args:
            service_name: Name of the AWS service
            func: Callable doing the boto3 work
            *args: Positional arguments for the callable
            **kwargs: Keyword arguments for the callable

        Returns:
            Whatever the callable returns

        Raises:
            AWSAPIError: If the API call fails
        """
        await self._rate_limit(service_name)

        try:
            loop = asyncio.get_running_loop()
            return await loop.run_in_executor(None, lambda: func(*args, **kwargs))

        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "")
            raise AWSAPIError(
                f"AWS API error: {error_code} - {str(e)}",
                error_code=error_code or None,
            ) from e

        except BotoCoreError as e:
            raise AWSAPIError(f"Boto3 error: {str(e)}", error_code=type(e).__name__) from e

    def _paginate(self, client: Any, operation: str, result_key: str, **kwargs) -> list[dict[str, Any]]:
        paginator = client.get_paginator(operation)
        records: list[dict[str, Any]] = []
        for page in paginator.paginate(**kwargs):
            records.extend(page.get(result_key, []))
        return records

    async def list_ec2_instances(self) -> list[dict[str, Any]]:
        """
        Fetch every EC2 instance of the region.

        Returns:
            Raw instance records, each with an added ``Arn`` field
        """

        def fetch() -> list[dict[str, Any]]:
            paginator = self.ec2.get_paginator("describe_instances")
            instances: list[dict[str, Any]] = []
            for page in paginator.paginate():
                for reservation in page.get("Reservations", []):
                    owner_id = reservation.get("OwnerId", "")
                    for instance in reservation.get("Instances", []):
                        instance = dict(instance)
                        instance["Arn"] = (
                            f"arn:aws:ec2:{self.region}:{owner_id}:instance/"
                            f"{instance.get('InstanceId')}"
                        )
                        instances.append(instance)
            return instances

        return await self._call("ec2", fetch)

    async def list_lambda_functions(self) -> list[dict[str, Any]]:
        """Fetch every Lambda function of the region as raw records."""
        return await self._call(
            "lambda", self._paginate, self.lambda_client, "list_functions", "Functions"
        )

    async def list_rds_instances(self) -> list[dict[str, Any]]:
        """Fetch every RDS DB instance of the region as raw records."""
        return await self._call(
            "rds", self._paginate, self.rds, "describe_db_instances", "DBInstances"
        )

    async def get_region_dimension_values(self, start: str, end: str) -> list[str]:
        """
        List the REGION dimension values with usage in a time window.

        Each request is billed by AWS. Follows ``NextPageToken`` until the
        listing is complete.

        Args:
            start: Inclusive start date (YYYY-MM-DD)
            end: Exclusive end date (YYYY-MM-DD)

        Returns:
            Raw dimension values, in provider order
        """

        def fetch() -> list[str]:
            values: list[str] = []
            request: dict[str, Any] = {
                "TimePeriod": {"Start": start, "End": end},
                "Dimension": "REGION",
                "Context": "COST_AND_USAGE",
            }
            while True:
                response = self.ce.get_dimension_values(**request)
                for entry in response.get("DimensionValues", []):
                    value = entry.get("Value")
                    if value:
                        values.append(value)
                token = response.get("NextPageToken")
                if not token:
                    return values
                request["NextPageToken"] = token

        logger.info(f"Calling Cost Explorer GetDimensionValues for {start}..{end}")
        return await self._call("ce", fetch)
