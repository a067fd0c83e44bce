import pytest

from rgstrapper.context.config import ENV_FALLBACKS, LOG_FILE_ENV, resolve
from rgstrapper.context.logger import Logger
from rgstrapper.rgazure.client import AzureClient
from rgstrapper.rgazure.run import AzCliError

SUBSCRIPTION_ID = "f0877200-2189-4721-99cb-5ae66a5023cb"
TENANT_ID = "f1847c27-90be-4b38-a1b7-bd3a2029122f"


class FakeAzureClient(AzureClient):
    """
    In-memory AzureClient that records every call and keeps just enough
    state (resource groups, identities, assignments) to behave like Azure
    across repeated runs.

    Example:
        def test_creates(fake_client, config):
            Provision.run(fake_client, config)
            assert fake_client.count("create_identity") == 1
    """

    def __init__(self):
        self.calls = []
        self.installed = True
        self.logged_in = True
        self.cloud = None
        self.account = {
            "id": SUBSCRIPTION_ID,
            "name": "Contoso Dev",
            "tenantId": TENANT_ID,
            "user": {"name": "dev@contoso.com", "type": "user"},
        }
        self.subscriptions = {SUBSCRIPTION_ID: "Contoso Dev"}
        self.resource_groups = {}
        self.identities = {}
        self.assignments = []
        self.blank_principal = False
        self.fail = {}
        self.fail_on_call = {}

    def fail_nth(self, name, n, message):
        """
        Make only the n-th call (1-based) to `name` fail.

        Example:
            fake_client.fail_nth("show_identity", 2, "Service unavailable")
        """
        self.fail_on_call[name] = (n, message)

    def _record(self, name, *args):
        self.calls.append((name, args))
        if name in self.fail:
            raise AzCliError(["az", name], 1, self.fail[name])
        if name in self.fail_on_call:
            n, message = self.fail_on_call[name]
            if self.count(name) == n:
                raise AzCliError(["az", name], 1, message)

    def count(self, name):
        return sum(1 for call, _ in self.calls if call == name)

    @property
    def call_names(self):
        return [call for call, _ in self.calls]

    def tool_available(self):
        self.calls.append(("tool_available", ()))
        return self.installed

    def set_cloud(self, name):
        self._record("set_cloud", name)
        self.cloud = name

    def get_active_context(self):
        self._record("get_active_context")
        if not self.logged_in:
            raise AzCliError(["az", "account", "show"], 1, "Please run 'az login' to setup account.")
        return dict(self.account)

    def set_active_subscription(self, subscription):
        self._record("set_active_subscription", subscription)
        for sub_id, sub_name in self.subscriptions.items():
            if subscription in (sub_id, sub_name):
                self.account = {**self.account, "id": sub_id, "name": sub_name}
                return
        raise AzCliError(["az", "account", "set"], 1, f"The subscription of '{subscription}' doesn't exist.")

    def create_resource_group(self, name, location, tags):
        self._record("create_resource_group", name, location, tags)
        self.resource_groups[name] = {"name": name, "location": location, "tags": dict(tags)}
        return self.resource_groups[name]

    def show_identity(self, resource_group, name):
        self._record("show_identity", resource_group, name)
        identity = self.identities.get((resource_group, name))
        if identity is None:
            return None
        if self.blank_principal:
            return {**identity, "principalId": ""}
        return dict(identity)

    def create_identity(self, resource_group, name, location):
        self._record("create_identity", resource_group, name, location)
        n = len(self.identities) + 1
        identity = {
            "name": name,
            "location": location,
            "principalId": f"00000000-0000-0000-0000-00000000000{n}",
            "clientId": f"11111111-1111-1111-1111-11111111111{n}",
            "id": (
                f"/subscriptions/{self.account['id']}/resourceGroups/{resource_group}"
                f"/providers/Microsoft.ManagedIdentity/userAssignedIdentities/{name}"
            ),
        }
        self.identities[(resource_group, name)] = identity
        return identity

    def list_role_assignments(self, principal_id, scope, role):
        self._record("list_role_assignments", principal_id, scope, role)
        return [
            a for a in self.assignments
            if (a["principalId"], a["scope"], a["roleDefinitionName"]) == (principal_id, scope, role)
        ]

    def create_role_assignment(self, principal_id, principal_type, role, scope):
        self._record("create_role_assignment", principal_id, principal_type, role, scope)
        assignment = {
            "principalId": principal_id,
            "principalType": principal_type,
            "roleDefinitionName": role,
            "scope": scope,
        }
        self.assignments.append(assignment)
        return assignment


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """
    Removes every variable the resolver reads so the host environment cannot leak in.
    """
    for names in ENV_FALLBACKS.values():
        for name in names:
            monkeypatch.delenv(name, raising=False)
    monkeypatch.delenv(LOG_FILE_ENV, raising=False)


@pytest.fixture(autouse=True)
def reset_logger():
    Logger.reset()
    yield
    Logger.reset()


@pytest.fixture
def fake_client():
    return FakeAzureClient()


@pytest.fixture
def config():
    return resolve({"project": "myapp", "stage": "dev"}, {})


@pytest.fixture
def suffixed_config():
    return resolve({"project": "MyApp", "stage": "Dev", "suffix": "--EU-"}, {})


@pytest.fixture
def falsy_values():
    """
    Returns values the resolver must treat as "not provided".
    """
    return [None, "", "-", "---"]
