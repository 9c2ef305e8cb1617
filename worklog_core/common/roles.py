# worklog_core/common/roles.py
# Leaf module: imported by models, auth and policy alike, so it must not import anything from the project.

ROLE_ADMIN = "admin"
ROLE_MANAGER = "manager"
ROLE_EMPLOYEE = "employee"
ROLE_CLIENT = "client"

ALL_ROLES = frozenset({ROLE_ADMIN, ROLE_MANAGER, ROLE_EMPLOYEE, ROLE_CLIENT})
MANAGING_ROLES = frozenset({ROLE_ADMIN, ROLE_MANAGER})
TRACKING_ROLES = frozenset({ROLE_ADMIN, ROLE_MANAGER, ROLE_EMPLOYEE})
ADMIN_ONLY = frozenset({ROLE_ADMIN})
