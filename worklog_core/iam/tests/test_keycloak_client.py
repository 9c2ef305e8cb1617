import pytest

from worklog_core.common.scope import caller_from_profile
from worklog_core.iam.keycloak import IdentityProviderError, KeycloakAdminClient
from worklog_core.iam.services.users import UserService


class FakeResponse:
    def __init__(self, status_code=200, json_data=None, headers=None, invalid_json=False):
        self.status_code = status_code
        self._json = json_data
        self.invalid_json = invalid_json
        self.headers = headers or {}
        self.text = ""

    def json(self):
        if self.invalid_json:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self._json


class FakeSession:
    """Answers admin API calls from a {(method, path suffix): response} table."""

    def __init__(self, routes, token_response=None):
        self.routes = routes
        self.requests = []
        self.token_response = token_response or FakeResponse(200, {"access_token": "t0k"})

    def post(self, url, data=None, timeout=None):
        return self.token_response

    def request(self, method, url, headers=None, timeout=None, **kwargs):
        self.requests.append((method, url, kwargs))
        for (m, suffix), resp in self.routes.items():
            if m == method and url.endswith(suffix):
                return resp
        return FakeResponse(404)


def client(routes, token_response=None):
    return KeycloakAdminClient(
        base_url="http://kc.test/",
        realm="worklog",
        client_id="admin",
        client_secret="s",
        session=FakeSession(routes, token_response=token_response),
    )


def test_create_user_reads_id_from_location():
    kc = client({("POST", "/users"): FakeResponse(201, headers={"Location": "http://kc.test/admin/realms/worklog/users/abc-123"})})

    assert kc.create_user(email="a@acme.test", first_name="A", last_name="B") == "abc-123"


def test_create_user_conflict_reuses_existing_account():
    kc = client(
        {
            ("POST", "/users"): FakeResponse(409),
            ("GET", "/users"): FakeResponse(200, [{"id": "existing-1"}]),
        }
    )

    assert kc.create_user(email="a@acme.test", first_name="A", last_name="B") == "existing-1"


def test_assign_role_drops_other_app_roles():
    kc = client(
        {
            ("GET", "/roles/manager"): FakeResponse(200, {"id": "r-m", "name": "manager"}),
            ("GET", "/role-mappings/realm"): FakeResponse(200, [{"id": "r-e", "name": "employee"}, {"id": "x", "name": "offline_access"}]),
            ("DELETE", "/role-mappings/realm"): FakeResponse(204),
            ("POST", "/role-mappings/realm"): FakeResponse(204),
        }
    )

    kc.assign_realm_role(user_id="u1", role_name="manager")

    deletes = [r for r in kc.session.requests if r[0] == "DELETE"]
    assert deletes[0][2]["json"] == [{"id": "r-e", "name": "employee"}]


def test_missing_group_raises():
    kc = client({("GET", "/groups"): FakeResponse(200, [])})

    with pytest.raises(IdentityProviderError):
        kc.add_to_group(user_id="u1", group_name="acme.test")


@pytest.mark.parametrize(
    "token_response",
    [
        FakeResponse(200, invalid_json=True),
        FakeResponse(200, {"token_type": "Bearer"}),
        FakeResponse(200, ["not", "a", "dict"]),
    ],
)
def test_unusable_token_response_raises_provider_error(token_response):
    kc = client({("GET", "/groups"): FakeResponse(200, [])}, token_response=token_response)

    with pytest.raises(IdentityProviderError):
        kc.add_to_group(user_id="u1", group_name="acme.test")


@pytest.mark.parametrize(
    "routes, call",
    [
        (
            {("GET", "/roles/manager"): FakeResponse(200, invalid_json=True)},
            lambda kc: kc.assign_realm_role(user_id="u1", role_name="manager"),
        ),
        (
            {
                ("GET", "/roles/manager"): FakeResponse(200, {"id": "r-m", "name": "manager"}),
                ("GET", "/role-mappings/realm"): FakeResponse(200, {"unexpected": "shape"}),
            },
            lambda kc: kc.assign_realm_role(user_id="u1", role_name="manager"),
        ),
        (
            {("GET", "/groups"): FakeResponse(200, invalid_json=True)},
            lambda kc: kc.add_to_group(user_id="u1", group_name="acme.test"),
        ),
        (
            {("GET", "/groups"): FakeResponse(200, ["acme.test"])},
            lambda kc: kc.add_to_group(user_id="u1", group_name="acme.test"),
        ),
        (
            {
                ("POST", "/users"): FakeResponse(409),
                ("GET", "/users"): FakeResponse(200, [{"username": "a@acme.test"}]),
            },
            lambda kc: kc.create_user(email="a@acme.test", first_name="A", last_name="B"),
        ),
    ],
)
def test_malformed_admin_responses_raise_provider_error(routes, call):
    kc = client(routes)

    with pytest.raises(IdentityProviderError):
        call(kc)


@pytest.mark.django_db
def test_garbled_group_lookup_leaves_user_partially_provisioned(admin_profile):
    kc = client(
        {
            ("POST", "/users"): FakeResponse(201, headers={"Location": "http://kc.test/admin/realms/worklog/users/new-1"}),
            ("GET", "/roles/employee"): FakeResponse(200, {"id": "r-e", "name": "employee"}),
            ("GET", "/role-mappings/realm"): FakeResponse(200, []),
            ("POST", "/role-mappings/realm"): FakeResponse(204),
            ("GET", "/groups"): FakeResponse(200, invalid_json=True),
        }
    )

    profile = UserService.create(
        caller=caller_from_profile(admin_profile),
        email="new@acme.test",
        first_name="New",
        last_name="User",
        role="employee",
        idp=kc,
    )

    assert profile.keycloak_id == "new-1"
    assert profile.idp_steps == {"create_account": "done", "assign_role": "done", "assign_group": "failed"}
    assert profile.idp_sync_status == "partial"
