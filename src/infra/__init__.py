"""Infrastructure collaborator: the cloud provider client consumed by handlers."""

from infra.client import EC2Client, InfraClient, InfraError, InstanceNotFound

__all__ = [
    "EC2Client",
    "InfraClient",
    "InfraError",
    "InstanceNotFound",
]
