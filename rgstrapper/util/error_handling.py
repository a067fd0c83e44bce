from typing import Optional


class ProvisionError(RuntimeError):
    """
    Base class for every fatal error raised while resolving inputs or provisioning.

    The CLI maps any ProvisionError to exit status 1. Nothing is rolled back:
    every provisioning step is idempotent, so re-running is the recovery path.
    """


class MissingInput(ProvisionError):
    """A required field is empty after flags, environment and defaults were merged."""

    FLAGS = {
        "project": ("--project", "PROJECT"),
        "stage": ("--stage", "STAGE"),
    }

    def __init__(self, field: str):
        self.field = field
        flag, env = MissingInput.FLAGS.get(field, (f"--{field}", field.upper()))
        super().__init__(f"{flag} or {env} is required")


class InvalidFormat(ProvisionError):
    """A field does not match the naming pattern after normalization."""

    def __init__(self, field: str, value: str):
        self.field = field
        self.value = value
        super().__init__(
            f"{field.upper()} must contain only lowercase letters, numbers, and hyphens (got: '{value}')"
        )


class ToolingMissing(ProvisionError):
    def __init__(self, binary: str = "az"):
        self.binary = binary
        super().__init__(f"Azure CLI '{binary}' is not installed or not on PATH")


class NotAuthenticated(ProvisionError):
    def __init__(self, detail: Optional[str] = None):
        self.detail = detail
        message = (
            "You are not logged in to Azure CLI. Please run 'az login' "
            "(and 'az account set --subscription <id>' if needed) and re-run."
        )
        super().__init__(message)


class SubscriptionOverrideFailed(ProvisionError):
    def __init__(self, subscription: str, detail: str = ""):
        self.subscription = subscription
        self.detail = detail
        message = f"Could not set subscription '{subscription}'"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class ProvisioningFailed(ProvisionError):
    """A create, update or lookup call against the control plane failed."""

    def __init__(self, resource: str, detail: str = ""):
        self.resource = resource
        self.detail = detail
        message = f"Failed to provision {resource}"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class IdentityResolutionFailed(ProvisionError):
    def __init__(self, identity: str, detail: str = ""):
        self.identity = identity
        self.detail = detail
        message = f"Failed to determine principalId of the managed identity '{identity}'"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class TenantMismatch(UserWarning):
    """
    Informational only: the active tenant differs from the requested one.

    Instances are built for their message and printed as a warning. They are
    never raised.
    """

    def __init__(self, active_tenant: str, requested_tenant: str):
        self.active_tenant = active_tenant
        self.requested_tenant = requested_tenant
        super().__init__(
            f"Current tenant ({active_tenant}) does not match requested tenant ({requested_tenant}).\n"
            f"If you need to switch tenants, run: az login --tenant {requested_tenant} "
            f"(and optionally --use-device-code), then re-run."
        )

