from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Sequence

from loguru import logger as log

from rgstrapper.util.error_handling import MissingInput
from rgstrapper.util.sanitization import NameSegment, Sanitization

DEFAULT_LOCATION = "northeurope"

DEFAULTS: Dict[str, str] = {
    "location": DEFAULT_LOCATION,
}

# Environment variables consulted for each field, first non-empty wins.
ENV_FALLBACKS: Dict[str, Sequence[str]] = {
    "project": ("PROJECT",),
    "stage": ("STAGE",),
    "suffix": ("SUFFIX",),
    "location": ("LOCATION",),
    "subscription": ("SUBSCRIPTION", "AZURE_SUBSCRIPTION_ID"),
    "tenant": ("TENANT", "AZURE_TENANT_ID"),
}

LOG_FILE_ENV = "RGSTRAPPER_LOG_FILE"


@dataclass(frozen=True)
class Configuration:
    """
    Validated inputs for one provisioning run. Built only by resolve().
    """
    project: NameSegment
    stage: NameSegment
    location: NameSegment
    suffix: Optional[NameSegment] = None
    subscription: Optional[str] = None
    tenant: Optional[str] = None

    @property
    def tags(self) -> Dict[str, str]:
        return {"project": str(self.project), "stage": str(self.stage)}


class Config:
    """
    Static helpers for merging flag, environment and default sources.
    """

    @staticmethod
    def pick(
            field: str,
            flags: Mapping[str, Optional[str]],
            env: Mapping[str, str],
            defaults: Mapping[str, str],
    ) -> str:
        """
        Resolve one field: explicit flag > environment > default > "".

        An explicit flag wins even when it is an empty string. Environment
        variables are only used when non-empty.

        Args:
            field (str): Field name, a key of ENV_FALLBACKS.
            flags (Mapping): Parsed command-line values (None = not given).
            env (Mapping): Environment, usually os.environ.
            defaults (Mapping): Built-in defaults.

        Returns:
            str: The raw, un-normalized value.
        """
        flag_value = flags.get(field)
        if flag_value is not None:
            return flag_value
        for name in ENV_FALLBACKS.get(field, ()):
            env_value = env.get(name)
            if env_value:
                return env_value
        return defaults.get(field, "")

    @staticmethod
    def passthrough(value: str) -> Optional[str]:
        value = (value or "").strip()
        return value or None


def resolve(
        flags: Mapping[str, Optional[str]],
        env: Mapping[str, str],
        defaults: Mapping[str, str] = DEFAULTS,
) -> Configuration:
    """
    Merge the two sources and the defaults into one validated Configuration.

    Logic:
        1. Pick raw values per field (flag > env > default).
        2. Normalize project, stage, suffix, location (lowercase, trim hyphens).
        3. MissingInput if project or stage is empty.
        4. InvalidFormat for project, stage, location, then a non-empty suffix.

    Raises:
        MissingInput: project or stage empty after normalization.
        InvalidFormat: a field fails ^[a-z0-9-]+$.
    """
    raw = {field: Config.pick(field, flags, env, defaults) for field in ENV_FALLBACKS}

    for field in ("project", "stage"):
        if not Sanitization.normalize(raw[field]):
            raise MissingInput(field)

    project = NameSegment.parse("project", raw["project"])
    stage = NameSegment.parse("stage", raw["stage"])
    location = NameSegment.parse("location", raw["location"])
    suffix = Sanitization.optional("suffix", raw["suffix"])

    config = Configuration(
        project=project,
        stage=stage,
        location=location,
        suffix=suffix,
        subscription=Config.passthrough(raw["subscription"]),
        tenant=Config.passthrough(raw["tenant"]),
    )
    log.debug("[Config] Resolved configuration: {}", config)
    return config
