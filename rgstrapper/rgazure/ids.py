from dataclasses import dataclass

from rgstrapper.context.config import Configuration

RESOURCE_GROUP_PREFIX = "rg"
IDENTITY_PREFIX = "id"


@dataclass(frozen=True)
class DerivedNames:
    resource_group: str
    identity: str


def _name(prefix: str, config: Configuration) -> str:
    parts = [prefix, config.project, config.stage]
    if config.suffix:
        parts.append(config.suffix)
    return "-".join(parts)


def derive_names(config: Configuration) -> DerivedNames:
    """
    Build the resource group and identity names for a validated configuration.

        rg-{project}-{stage}[-{suffix}]
        id-{project}-{stage}[-{suffix}]

    No lookup against existing resources happens here; the ensure-operations
    in Provision are idempotent.
    """
    return DerivedNames(
        resource_group=_name(RESOURCE_GROUP_PREFIX, config),
        identity=_name(IDENTITY_PREFIX, config),
    )


def role_scope(subscription_id: str, resource_group: str) -> str:
    return f"/subscriptions/{subscription_id}/resourceGroups/{resource_group}"
