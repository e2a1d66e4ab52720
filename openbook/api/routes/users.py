"""Signed-in account route registration."""

from __future__ import annotations

from fastapi import APIRouter

from openbook.api.models import AssignmentRecord, Dashboard
from openbook.api.queries.users import (
    get_dashboard,
    list_my_assignments,
    update_progress,
)
from openbook.shared.constants import API_PREFIX

router = APIRouter(prefix=f"{API_PREFIX}/users")

router.add_api_route(
    "/dashboard",
    get_dashboard,
    methods=["GET"],
    response_model=Dashboard,
)
router.add_api_route(
    "/assignments",
    list_my_assignments,
    methods=["GET"],
    response_model=list[AssignmentRecord],
)
router.add_api_route(
    "/assignments/{assignment_id}",
    update_progress,
    methods=["PUT"],
    response_model=AssignmentRecord,
)
