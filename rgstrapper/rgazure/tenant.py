# tenant.py
from dataclasses import dataclass
from typing import Optional

import click
from loguru import logger as log

from rgstrapper.rgazure.client import AzureClient
from rgstrapper.rgazure.run import AzCliError
from rgstrapper.util.error_handling import (
    NotAuthenticated,
    ProvisionError,
    SubscriptionOverrideFailed,
    TenantMismatch,
    ToolingMissing,
)

PUBLIC_CLOUD = "AzureCloud"


@dataclass(frozen=True)
class CloudContext:
    subscription_id: str
    subscription_name: str
    tenant_id: str
    user: str = ""


class AzureContext:
    """
    Confirms the Azure CLI session is ready to provision, or fails fast.

    Uses the active login; the only change it makes is the cloud (always
    AzureCloud) and, when asked, the active subscription.
    """

    @staticmethod
    def verify(
            client: AzureClient,
            subscription: Optional[str] = None,
            tenant: Optional[str] = None,
    ) -> CloudContext:
        """
        Verify tooling and login, apply the subscription override, and read back the context.

        Args:
            client (AzureClient): Control-plane client.
            subscription (str, optional): Subscription id or name to switch to.
            tenant (str, optional): Tenant id or name to compare against (warning only).

        Returns:
            CloudContext: The now-active subscription and tenant.

        Raises:
            ToolingMissing: 'az' is not available.
            NotAuthenticated: No active session.
            SubscriptionOverrideFailed: The override was rejected.
        """
        if not client.tool_available():
            raise ToolingMissing()

        try:
            client.set_cloud(PUBLIC_CLOUD)
        except AzCliError as ex:
            raise ProvisionError(f"Could not set active cloud to {PUBLIC_CLOUD}: {ex.stderr}") from ex

        AzureContext._require_session(client)

        if subscription:
            click.echo(f"Setting subscription: {subscription}")
            try:
                client.set_active_subscription(subscription)
            except AzCliError as ex:
                raise SubscriptionOverrideFailed(subscription, ex.stderr) from ex

        ctx = AzureContext._read(AzureContext._require_session(client))
        log.info(
            "[AzureContext] Using tenant_id={}, subscription_id={}, user={}",
            ctx.tenant_id, ctx.subscription_id, ctx.user or "<unknown>",
        )

        if tenant:
            mismatch = AzureContext.tenant_mismatch(ctx, tenant)
            if mismatch is not None:
                log.debug("[AzureContext] {}", mismatch)
                click.echo(f"Warning: {mismatch}", err=True)
        return ctx

    @staticmethod
    def tenant_mismatch(ctx: CloudContext, tenant: str) -> Optional[TenantMismatch]:
        """
        Compare the requested tenant with the active one, case-insensitively.

        The requested value is accepted if it equals either the active tenant
        id or the active subscription's display name.
        """
        wanted = tenant.casefold()
        if wanted in (ctx.tenant_id.casefold(), ctx.subscription_name.casefold()):
            return None
        return TenantMismatch(ctx.tenant_id, tenant)

    @staticmethod
    def _require_session(client: AzureClient) -> dict:
        try:
            account = client.get_active_context()
        except AzCliError as ex:
            raise NotAuthenticated(ex.stderr) from ex
        if not account:
            raise NotAuthenticated()
        return account

    @staticmethod
    def _read(account: dict) -> CloudContext:
        user = account.get("user") or {}
        return CloudContext(
            subscription_id=account.get("id") or "",
            subscription_name=account.get("name") or "",
            tenant_id=account.get("tenantId") or "",
            user=user.get("name") or "",
        )
