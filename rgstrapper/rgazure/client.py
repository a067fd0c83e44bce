from typing import Any, Dict, List, Optional

from loguru import logger as log

from rgstrapper.rgazure.run import run_az
from rgstrapper.util.cmd import CMD

NOT_FOUND_MARKERS = ["ResourceNotFound", "could not be found", "was not found", "does not exist"]


class AzureClient:
    """
    The operations the provisioning flow needs from the Azure control plane.

    Every method is a single synchronous call. Failures surface as exceptions
    (AzCliError for the CLI implementation); the flow maps them to its own
    error kinds. Subclass this to provide a different backend or a test double.
    """

    def tool_available(self) -> bool:
        raise NotImplementedError

    def set_cloud(self, name: str) -> None:
        raise NotImplementedError

    def get_active_context(self) -> Optional[Dict[str, Any]]:
        """Return the active account (as 'az account show' reports it), or None without a session."""
        raise NotImplementedError

    def set_active_subscription(self, subscription: str) -> None:
        raise NotImplementedError

    def create_resource_group(self, name: str, location: str, tags: Dict[str, str]) -> Dict[str, Any]:
        raise NotImplementedError

    def show_identity(self, resource_group: str, name: str) -> Optional[Dict[str, Any]]:
        """Return the identity, or None if it does not exist."""
        raise NotImplementedError

    def create_identity(self, resource_group: str, name: str, location: str) -> Dict[str, Any]:
        raise NotImplementedError

    def list_role_assignments(self, principal_id: str, scope: str, role: str) -> List[Dict[str, Any]]:
        raise NotImplementedError

    def create_role_assignment(
            self, principal_id: str, principal_type: str, role: str, scope: str
    ) -> Dict[str, Any]:
        raise NotImplementedError


class AzureCliClient(AzureClient):
    """AzureClient backed by the Azure CLI ('az') through run_az."""

    def __init__(self, binary: str = "az"):
        self.binary = binary

    def _az(self, *args: str, **kwargs) -> Any:
        return run_az([self.binary, *args], **kwargs)

    def tool_available(self) -> bool:
        return CMD.which(self.binary) is not None

    def set_cloud(self, name: str) -> None:
        log.debug("[AzureCliClient] Setting active cloud: {}", name)
        self._az("cloud", "set", "--name", name, json_override=False)

    def get_active_context(self) -> Optional[Dict[str, Any]]:
        account = self._az("account", "show")
        return account if isinstance(account, dict) else None

    def set_active_subscription(self, subscription: str) -> None:
        self._az("account", "set", "--subscription", subscription, json_override=False)

    def create_resource_group(self, name: str, location: str, tags: Dict[str, str]) -> Dict[str, Any]:
        tag_args = [f"{key}={value}" for key, value in tags.items()]
        return self._az(
            "group", "create",
            "--name", name,
            "--location", location,
            "--tags", *tag_args,
        ) or {}

    def show_identity(self, resource_group: str, name: str) -> Optional[Dict[str, Any]]:
        return self._az(
            "identity", "show",
            "--resource-group", resource_group,
            "--name", name,
            ignore_errors={"identity": NOT_FOUND_MARKERS},
        )

    def create_identity(self, resource_group: str, name: str, location: str) -> Dict[str, Any]:
        return self._az(
            "identity", "create",
            "--resource-group", resource_group,
            "--name", name,
            "--location", location,
        ) or {}

    def list_role_assignments(self, principal_id: str, scope: str, role: str) -> List[Dict[str, Any]]:
        assignments = self._az(
            "role", "assignment", "list",
            "--assignee-object-id", principal_id,
            "--scope", scope,
            "--role", role,
        )
        return assignments if isinstance(assignments, list) else []

    def create_role_assignment(
            self, principal_id: str, principal_type: str, role: str, scope: str
    ) -> Dict[str, Any]:
        return self._az(
            "role", "assignment", "create",
            "--assignee-object-id", principal_id,
            "--assignee-principal-type", principal_type,
            "--role", role,
            "--scope", scope,
        ) or {}
