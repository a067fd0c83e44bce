from rgstrapper.rgazure.provision import ProvisionResult


def summary(result: ProvisionResult) -> str:
    """Render the final confirmation block printed after a successful run."""
    identity = result.identity
    return "\n".join([
        "",
        "Success!",
        f"Resource Group: {result.names.resource_group}",
        f"Managed Identity: {result.names.identity}",
        f"  principalId: {identity.principal_id}",
        f"  clientId:    {identity.client_id}",
        f"  resourceId:  {identity.resource_id}",
        f"Scope: {result.assignment.scope}",
        f"Role: {result.assignment.role} (ensured)",
    ])
