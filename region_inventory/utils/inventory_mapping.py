# Copyright (c) 2026 Region Inventory contributors.
# Licensed under the Apache License, Version 2.0.

"""Mapping of raw AWS records to InventoryItem models."""

from datetime import datetime
from typing import Any, Callable

from ..models.enums import InventoryKind
from ..models.inventory import InventoryItem
from .region_validation import get_region_display_name

RecordMapper = Callable[[dict[str, Any], str, datetime], InventoryItem]


def cross_region_key(kind: InventoryKind | str, region: str, raw_id: str) -> str:
    """Key that stays unique when raw ids repeat across regions or kinds."""
    kind_value = kind.value if isinstance(kind, InventoryKind) else kind
    return f"{kind_value}-{region}-{raw_id}"


def _tag_value(tags: list[dict[str, str]] | None, key: str) -> str | None:
    for tag in tags or []:
        if tag.get("Key") == key:
            return tag.get("Value") or None
    return None


def _item(
    kind: InventoryKind,
    region: str,
    raw_id: str,
    observed_at: datetime,
    **fields: Any,
) -> InventoryItem:
    return InventoryItem(
        id=raw_id,
        kind=kind,
        region=region,
        region_display_name=get_region_display_name(region),
        cross_region_key=cross_region_key(kind, region, raw_id),
        last_observed_at=observed_at,
        **fields,
    )


def map_ec2_instance(record: dict[str, Any], region: str, observed_at: datetime) -> InventoryItem:
    instance_id = record.get("InstanceId", "")
    return _item(
        InventoryKind.EC2_INSTANCE,
        region,
        instance_id,
        observed_at,
        display_name=_tag_value(record.get("Tags"), "Name") or instance_id,
        status=record.get("State", {}).get("Name", "unknown"),
        details=record.get("InstanceType"),
        availability_zone=record.get("Placement", {}).get("AvailabilityZone") or region,
        external_ref=record.get("Arn"),
    )


def map_lambda_function(record: dict[str, Any], region: str, observed_at: datetime) -> InventoryItem:
    # ListFunctions omits State for functions that have always been active
    function_name = record.get("FunctionName", "")
    return _item(
        InventoryKind.LAMBDA_FUNCTION,
        region,
        function_name,
        observed_at,
        display_name=function_name,
        status=record.get("State") or "Active",
        details=record.get("Runtime"),
        external_ref=record.get("FunctionArn"),
    )


def map_rds_instance(record: dict[str, Any], region: str, observed_at: datetime) -> InventoryItem:
    db_id = record.get("DBInstanceIdentifier", "")
    return _item(
        InventoryKind.RDS_INSTANCE,
        region,
        db_id,
        observed_at,
        display_name=db_id,
        status=record.get("DBInstanceStatus", "unknown"),
        details=record.get("Engine"),
        availability_zone=record.get("AvailabilityZone"),
        external_ref=record.get("DBInstanceArn"),
    )


RECORD_MAPPERS: dict[InventoryKind, RecordMapper] = {
    InventoryKind.EC2_INSTANCE: map_ec2_instance,
    InventoryKind.LAMBDA_FUNCTION: map_lambda_function,
    InventoryKind.RDS_INSTANCE: map_rds_instance,
}


def map_records(
    kind: InventoryKind,
    records: list[dict[str, Any]],
    region: str,
    observed_at: datetime,
) -> list[InventoryItem]:
    """Map a list of raw records of one kind from one region."""
    mapper = RECORD_MAPPERS[kind]
    return [mapper(record, region, observed_at) for record in records]
