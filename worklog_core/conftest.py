# worklog_core/conftest.py
from decimal import Decimal

import pytest

from worklog_core.customers.models import Customer
from worklog_core.organizations.models import Organization
from worklog_core.projects.models import BillingModel, Project, ProjectMembership
from worklog_core.tests.helpers import client_for, make_profile


@pytest.fixture
def org(db):
    return Organization.objects.create(name="Acme Consulting", domain="acme.test")


@pytest.fixture
def other_org(db):
    return Organization.objects.create(name="Globex", domain="globex.test")


@pytest.fixture
def admin_profile(org):
    return make_profile(org, email="admin@acme.test", role="admin")


@pytest.fixture
def manager_profile(org):
    return make_profile(org, email="manager@acme.test", role="manager")


@pytest.fixture
def employee_profile(org):
    return make_profile(org, email="employee@acme.test", role="employee")


@pytest.fixture
def client_profile(org):
    return make_profile(org, email="client@acme.test", role="client")


@pytest.fixture
def other_admin_profile(other_org):
    return make_profile(other_org, email="admin@globex.test", role="admin")


@pytest.fixture
def admin_client(admin_profile):
    return client_for(admin_profile)


@pytest.fixture
def manager_client(manager_profile):
    return client_for(manager_profile)


@pytest.fixture
def employee_client(employee_profile):
    return client_for(employee_profile)


@pytest.fixture
def client_role_client(client_profile):
    return client_for(client_profile)


@pytest.fixture
def other_admin_client(other_admin_profile):
    return client_for(other_admin_profile)


@pytest.fixture
def customer(org):
    return Customer.objects.create(organization=org, name="Initech", email="ap@initech.test")


@pytest.fixture
def other_customer(other_org):
    return Customer.objects.create(organization=other_org, name="Umbrella")


@pytest.fixture
def task_project(org, customer):
    return Project.objects.create(
        organization=org,
        customer=customer,
        name="API rebuild",
        billing_model=BillingModel.TASK_BASED,
        hourly_rate=Decimal("100.00"),
    )


@pytest.fixture
def timesheet_project(org, customer):
    return Project.objects.create(
        organization=org,
        customer=customer,
        name="Support retainer",
        billing_model=BillingModel.TIMESHEET,
        hourly_rate=Decimal("80.00"),
    )


@pytest.fixture
def task_membership(task_project, employee_profile):
    return ProjectMembership.objects.create(
        organization_id=task_project.organization_id,
        project=task_project,
        user=employee_profile,
    )


@pytest.fixture
def timesheet_membership(timesheet_project, employee_profile):
    return ProjectMembership.objects.create(
        organization_id=timesheet_project.organization_id,
        project=timesheet_project,
        user=employee_profile,
    )
