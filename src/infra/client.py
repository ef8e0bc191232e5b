"""Cloud provider client for EC2.

`InfraClient` is the narrow interface the resource and tool handlers
consume. `EC2Client` implements it on top of boto3 and normalizes every
instance into an `InfraResource`.
"""

import time
from typing import Any, Optional, Protocol, runtime_checkable

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from shared.logging import get_logger
from shared.models import CreateInstanceParams, InfraResource, utc_now

logger = get_logger(__name__)

NOT_FOUND_CODES = {"InvalidInstanceID.NotFound"}


class InfraError(Exception):
    """A provider call failed."""


class InstanceNotFound(InfraError):
    """The requested instance does not exist."""

    def __init__(self, instance_id: str, detail: Optional[str] = None) -> None:
        super().__init__(detail or f"instance {instance_id} not found")
        self.instance_id = instance_id


@runtime_checkable
class InfraClient(Protocol):
    """Operations on infrastructure objects used by the domain handlers."""

    def list_instances(self) -> list[InfraResource]: ...

    def get_instance(self, instance_id: str) -> InfraResource: ...

    def create_instance(self, params: CreateInstanceParams) -> InfraResource: ...

    def start_instance(self, instance_id: str) -> None: ...

    def stop_instance(self, instance_id: str) -> None: ...

    def terminate_instance(self, instance_id: str) -> None: ...


def _error_code(error: Exception) -> str:
    if isinstance(error, ClientError):
        return error.response.get("Error", {}).get("Code", "")
    return ""


class EC2Client:
    """
    boto3-backed EC2 collaborator.

    Provider errors are wrapped in `InfraError`; a missing instance is
    reported as `InstanceNotFound`. Timeouts and retries are left to the
    botocore client configuration.
    """

    def __init__(
        self,
        region: str,
        profile: Optional[str] = None,
        session: Optional[boto3.Session] = None
    ) -> None:
        self.session = session or boto3.Session(profile_name=profile, region_name=region)
        self.region = self.session.region_name or region
        self._ec2 = self.session.client("ec2", region_name=self.region)

    def health_check(self) -> None:
        """Verify AWS connectivity."""
        try:
            self._ec2.describe_regions()
        except (ClientError, BotoCoreError) as e:
            raise InfraError(f"AWS health check failed: {e}") from e

    def list_instances(self) -> list[InfraResource]:
        """Retrieve all EC2 instances in the region."""
        start = time.perf_counter()

        resources = []
        try:
            paginator = self._ec2.get_paginator("describe_instances")
            for page in paginator.paginate():
                for reservation in page.get("Reservations", []):
                    for instance in reservation.get("Instances", []):
                        resources.append(self._convert_instance(instance))
        except (ClientError, BotoCoreError) as e:
            logger.error("Failed to describe EC2 instances", error=str(e))
            raise InfraError(f"failed to describe instances: {e}") from e

        logger.info(
            "Retrieved EC2 instances",
            count=len(resources),
            duration_ms=round((time.perf_counter() - start) * 1000, 2)
        )
        return resources

    def get_instance(self, instance_id: str) -> InfraResource:
        """Retrieve a specific EC2 instance."""
        try:
            result = self._ec2.describe_instances(InstanceIds=[instance_id])
        except (ClientError, BotoCoreError) as e:
            detail = f"failed to describe instance {instance_id}: {e}"
            if _error_code(e) in NOT_FOUND_CODES:
                raise InstanceNotFound(instance_id, detail) from e
            raise InfraError(detail) from e

        reservations = result.get("Reservations", [])
        if not reservations or not reservations[0].get("Instances"):
            raise InstanceNotFound(instance_id)

        return self._convert_instance(reservations[0]["Instances"][0])

    def create_instance(self, params: CreateInstanceParams) -> InfraResource:
        """Launch a single EC2 instance."""
        request: dict[str, Any] = {
            "ImageId": params.image_id,
            "InstanceType": params.instance_type,
            "MinCount": 1,
            "MaxCount": 1,
        }
        if params.key_name:
            request["KeyName"] = params.key_name
        if params.security_group_id:
            request["SecurityGroupIds"] = [params.security_group_id]
        if params.subnet_id:
            request["SubnetId"] = params.subnet_id
        if params.name:
            request["TagSpecifications"] = [
                {
                    "ResourceType": "instance",
                    "Tags": [{"Key": "Name", "Value": params.name}],
                }
            ]

        try:
            result = self._ec2.run_instances(**request)
        except (ClientError, BotoCoreError) as e:
            raise InfraError(f"failed to run instance: {e}") from e

        instances = result.get("Instances", [])
        if not instances:
            raise InfraError("no instance returned by run_instances")

        resource = self._convert_instance(instances[0])
        logger.info(
            "EC2 instance created",
            instance_id=resource.id,
            instance_type=params.instance_type
        )
        return resource

    def start_instance(self, instance_id: str) -> None:
        self._change_state("start_instances", instance_id)

    def stop_instance(self, instance_id: str) -> None:
        self._change_state("stop_instances", instance_id)

    def terminate_instance(self, instance_id: str) -> None:
        self._change_state("terminate_instances", instance_id)

    def _change_state(self, operation: str, instance_id: str) -> None:
        try:
            getattr(self._ec2, operation)(InstanceIds=[instance_id])
        except (ClientError, BotoCoreError) as e:
            detail = f"failed to {operation.split('_')[0]} instance {instance_id}: {e}"
            if _error_code(e) in NOT_FOUND_CODES:
                raise InstanceNotFound(instance_id, detail) from e
            raise InfraError(detail) from e

        logger.info("EC2 instance state change requested", operation=operation, instance_id=instance_id)

    def _convert_instance(self, instance: dict[str, Any]) -> InfraResource:
        """Convert a describe/run instance record to the standard format."""
        tags = {
            tag["Key"]: tag["Value"]
            for tag in instance.get("Tags", [])
            if "Key" in tag and "Value" in tag
        }

        launch_time = instance.get("LaunchTime")
        details: dict[str, Any] = {
            "instanceType": instance.get("InstanceType", ""),
            "placement": instance.get("Placement", {}),
            "launchTime": launch_time.isoformat() if launch_time else None,
        }
        if instance.get("PublicIpAddress"):
            details["publicIpAddress"] = instance["PublicIpAddress"]
        if instance.get("PrivateIpAddress"):
            details["privateIpAddress"] = instance["PrivateIpAddress"]

        return InfraResource(
            id=instance.get("InstanceId", ""),
            type="ec2-instance",
            region=self.region,
            state=instance.get("State", {}).get("Name", "unknown"),
            tags=tags,
            details=details,
            observed_at=utc_now(),
        )
