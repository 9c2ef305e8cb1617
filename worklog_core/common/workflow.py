# worklog_core/common/workflow.py
from __future__ import annotations

from django.db import models


class ApprovalStatus(models.TextChoices):
    """Shared lifecycle of time entries and timesheets."""
    DRAFT = "draft", "Draft"
    SUBMITTED = "submitted", "Submitted"
    APPROVED = "approved", "Approved"
    REJECTED = "rejected", "Rejected"


# owner may edit / submit again
EDITABLE_STATUSES = (ApprovalStatus.DRAFT, ApprovalStatus.REJECTED)
SUBMITTABLE_STATUSES = EDITABLE_STATUSES
# approver may decide
REVIEWABLE_STATUSES = (ApprovalStatus.SUBMITTED,)
