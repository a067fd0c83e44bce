from dataclasses import dataclass
from typing import Optional

import click
from loguru import logger as log

from rgstrapper.context.config import Configuration
from rgstrapper.context.logger import log_func
from rgstrapper.rgazure.client import AzureClient
from rgstrapper.rgazure.ids import DerivedNames, derive_names, role_scope
from rgstrapper.rgazure.run import AzCliError
from rgstrapper.rgazure.tenant import AzureContext, CloudContext
from rgstrapper.util.error_handling import IdentityResolutionFailed, ProvisioningFailed

OWNER_ROLE = "Owner"
# User-assigned identities are backed by service principals.
SERVICE_PRINCIPAL = "ServicePrincipal"


@dataclass(frozen=True)
class ManagedIdentity:
    name: str
    principal_id: str
    client_id: str
    resource_id: str
    created: bool = False


@dataclass(frozen=True)
class RoleAssignment:
    principal_id: str
    scope: str
    role: str = OWNER_ROLE
    created: bool = False


@dataclass(frozen=True)
class ProvisionResult:
    names: DerivedNames
    context: CloudContext
    identity: ManagedIdentity
    assignment: RoleAssignment


class Provision:
    """
    Ensure the resource group, the user-assigned managed identity and its
    Owner role assignment at resource group scope.

    Every step is idempotent and runs once, in order; the first failure
    aborts the run and leaves already-created resources in place.
    """

    @staticmethod
    def ensure_resource_group(client: AzureClient, names: DerivedNames, config: Configuration) -> None:
        """
        Create or update the resource group. Always issued, not existence-gated.
        """
        click.echo(f"Creating/ensuring resource group: {names.resource_group}")
        try:
            client.create_resource_group(names.resource_group, str(config.location), config.tags)
        except AzCliError as ex:
            raise ProvisioningFailed(f"resource group '{names.resource_group}'", ex.stderr) from ex
        log.info("[Provision] Resource group ensured: {}", names.resource_group)

    @staticmethod
    def ensure_identity(client: AzureClient, names: DerivedNames, config: Configuration) -> ManagedIdentity:
        """
        Create the managed identity if it does not exist, then re-query it.

        Returns:
            ManagedIdentity: principalId, clientId and resource id of the identity.

        Raises:
            ProvisioningFailed: The lookup or the create call failed.
            IdentityResolutionFailed: principalId is empty after the re-query.
        """
        rg, name = names.resource_group, names.identity
        click.echo(f"Creating/ensuring user-assigned managed identity: {name}")

        try:
            existing = client.show_identity(rg, name)
        except AzCliError as ex:
            raise ProvisioningFailed(f"managed identity '{name}'", ex.stderr) from ex

        created = False
        if existing:
            click.echo("Managed identity already exists.")
        else:
            try:
                client.create_identity(rg, name, str(config.location))
            except AzCliError as ex:
                raise ProvisioningFailed(f"managed identity '{name}'", ex.stderr) from ex
            created = True
            click.echo("Managed identity created.")

        try:
            details = client.show_identity(rg, name) or {}
        except AzCliError as ex:
            raise IdentityResolutionFailed(name, ex.stderr) from ex

        principal_id = details.get("principalId") or ""
        if not principal_id:
            raise IdentityResolutionFailed(name)

        identity = ManagedIdentity(
            name=name,
            principal_id=principal_id,
            client_id=details.get("clientId") or "",
            resource_id=details.get("id") or "",
            created=created,
        )
        log.info("[Provision] Identity ensured: {} (principalId={})", name, principal_id)
        return identity

    @staticmethod
    def ensure_role_assignment(
            client: AzureClient,
            identity: ManagedIdentity,
            scope: str,
            role: str = OWNER_ROLE,
    ) -> RoleAssignment:
        """
        Assign `role` to the identity at `scope` unless a matching assignment exists.

        The create call is issued only when the list for
        (principalId, scope, role) is empty.
        """
        click.echo(f"Ensuring '{role}' role assignment for the identity at scope: {scope}")
        try:
            count = len(client.list_role_assignments(identity.principal_id, scope, role))
        except AzCliError as ex:
            raise ProvisioningFailed(f"role assignment '{role}' at {scope}", ex.stderr) from ex
        log.debug("[Provision] Existing '{}' assignments at {}: {}", role, scope, count)

        if count:
            click.echo("Role assignment already exists.")
            return RoleAssignment(identity.principal_id, scope, role, created=False)

        try:
            client.create_role_assignment(identity.principal_id, SERVICE_PRINCIPAL, role, scope)
        except AzCliError as ex:
            raise ProvisioningFailed(f"role assignment '{role}' at {scope}", ex.stderr) from ex
        click.echo("Role assignment created.")
        return RoleAssignment(identity.principal_id, scope, role, created=True)

    @staticmethod
    def run(client: AzureClient, config: Configuration, names: Optional[DerivedNames] = None) -> ProvisionResult:
        """
        Run the whole flow against an already validated configuration.

        Logic:
            1. Derive names (unless given).
            2. Verify the Azure context (tooling, cloud, login, subscription, tenant).
            3. Ensure the resource group.
            4. Ensure the managed identity.
            5. Ensure the Owner role assignment at resource group scope.
        """
        names = names or derive_names(config)

        with log_func("context"):
            ctx = AzureContext.verify(client, subscription=config.subscription, tenant=config.tenant)
        click.echo("Using Azure context:")
        click.echo(f"  Tenant:       {ctx.tenant_id}")
        if ctx.user:
            click.echo(f"  User:         {ctx.user}")
        click.echo(f"  Subscription: {ctx.subscription_name} ({ctx.subscription_id})")
        click.echo(f"  Location:     {config.location}")

        with log_func("resource_group"):
            Provision.ensure_resource_group(client, names, config)
        with log_func("identity"):
            identity = Provision.ensure_identity(client, names, config)
        with log_func("role_assignment"):
            assignment = Provision.ensure_role_assignment(
                client, identity, role_scope(ctx.subscription_id, names.resource_group)
            )

        return ProvisionResult(names=names, context=ctx, identity=identity, assignment=assignment)
