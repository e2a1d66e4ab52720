"""Teacher route registration."""

from __future__ import annotations

from fastapi import APIRouter

from openbook.api.models import AssignmentRecord, MessageResponse, StudentRecord
from openbook.api.queries.teacher import (
    create_assignment,
    delete_assignment,
    list_created_assignments,
    list_students,
)
from openbook.shared.constants import API_PREFIX

router = APIRouter(prefix=f"{API_PREFIX}/teacher")

router.add_api_route(
    "/students",
    list_students,
    methods=["GET"],
    response_model=list[StudentRecord],
)
router.add_api_route(
    "/assignments",
    list_created_assignments,
    methods=["GET"],
    response_model=list[AssignmentRecord],
)
router.add_api_route(
    "/assignments",
    create_assignment,
    methods=["POST"],
    response_model=AssignmentRecord,
    status_code=201,
)
router.add_api_route(
    "/assignments/{assignment_id}",
    delete_assignment,
    methods=["DELETE"],
    response_model=MessageResponse,
)
