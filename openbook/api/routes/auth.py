"""Account route registration."""

from __future__ import annotations

from fastapi import APIRouter

from openbook.api.models import (
    AuthResponse,
    EmailAvailability,
    InstitutionRecord,
    MessageResponse,
    TokenStatus,
    UserProfile,
)
from openbook.api.queries.auth import (
    check_email,
    get_profile,
    list_institutions,
    login,
    logout,
    register,
    verify_token,
)
from openbook.shared.constants import API_PREFIX

router = APIRouter(prefix=f"{API_PREFIX}/auth")

router.add_api_route(
    "/register",
    register,
    methods=["POST"],
    response_model=AuthResponse,
    status_code=201,
)
router.add_api_route(
    "/login",
    login,
    methods=["POST"],
    response_model=AuthResponse,
)
router.add_api_route(
    "/logout",
    logout,
    methods=["POST"],
    response_model=MessageResponse,
)
router.add_api_route(
    "/verify-token",
    verify_token,
    methods=["GET"],
    response_model=TokenStatus,
)
router.add_api_route(
    "/profile",
    get_profile,
    methods=["GET"],
    response_model=UserProfile,
)
router.add_api_route(
    "/check-email",
    check_email,
    methods=["POST"],
    response_model=EmailAvailability,
)
router.add_api_route(
    "/institutions",
    list_institutions,
    methods=["GET"],
    response_model=list[InstitutionRecord],
)
