# backend/mt_core/iam/api/auth.py

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any

from django.conf import settings
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer, TokenRefreshSerializer
from rest_framework_simplejwt.tokens import AccessToken, RefreshToken

from mt_core.common.backend import get_backend
from mt_core.iam.auth import CookieOrHeaderJWTAuthentication
from mt_core.iam.api.schema_serializers import (
    LoginRequestSerializer,
    LoginResponseSerializer,
    LogoutResponseSerializer,
    RefreshResponseSerializer,
    SignupResponseSerializer,
)
from mt_core.iam.api.serializers import ProfileSerializer, SignupRequestSerializer
from mt_core.iam.api.session import session_payload
from mt_core.iam.services.provisioning import ProvisioningService
from mt_core.iam.session import SessionEvent, SessionResolver

logger = logging.getLogger(__name__)


def _seconds(value: Any) -> int:
    """
    Convert a JWT lifetime setting into seconds.
    Supports timedelta OR int/float (already seconds).
    """
    if isinstance(value, timedelta):
        return int(value.total_seconds())
    try:
        return int(value)
    except (TypeError, ValueError):
        # 0 means "session cookie"
        return 0


def _jwt_cfg() -> dict[str, Any]:
    return getattr(settings, "SIMPLE_JWT", {}) or {}


def _set_auth_cookies(response: Response, *, access: str, refresh: str) -> None:
    jwt_cfg = _jwt_cfg()

    access_name = jwt_cfg.get("AUTH_COOKIE", "mt_access")
    refresh_name = jwt_cfg.get("AUTH_COOKIE_REFRESH", "mt_refresh")

    access_lifetime = _seconds(jwt_cfg.get("ACCESS_TOKEN_LIFETIME", timedelta(minutes=10)))
    refresh_lifetime = _seconds(jwt_cfg.get("REFRESH_TOKEN_LIFETIME", timedelta(days=14)))

    secure = bool(jwt_cfg.get("AUTH_COOKIE_SECURE", False))
    samesite = jwt_cfg.get("AUTH_COOKIE_SAMESITE", "Lax")

    for name, value, max_age in ((access_name, access, access_lifetime), (refresh_name, refresh, refresh_lifetime)):
        response.set_cookie(
            name,
            value,
            max_age=max_age,
            httponly=True,
            secure=secure,
            samesite=samesite,
            path="/",
        )


def _clear_auth_cookies(response: Response) -> None:
    jwt_cfg = _jwt_cfg()
    response.delete_cookie(jwt_cfg.get("AUTH_COOKIE", "mt_access"), path="/")
    response.delete_cookie(jwt_cfg.get("AUTH_COOKIE_REFRESH", "mt_refresh"), path="/")


class SignupView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(request=SignupRequestSerializer, responses={201: SignupResponseSerializer}, tags=["IAM"])
    def post(self, request):
        serializer = SignupRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        profile = ProvisioningService(get_backend()).sign_up(**serializer.validated_data)
        return Response(
            {"detail": "signed up", "profile": ProfileSerializer(profile).data},
            status=status.HTTP_201_CREATED,
        )


class LoginView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(request=LoginRequestSerializer, responses={200: LoginResponseSerializer}, tags=["IAM"])
    def post(self, request):
        data = {
            "username": (request.data.get("email") or request.data.get("username") or "").strip().lower(),
            "password": request.data.get("password"),
        }
        serializer = TokenObtainPairSerializer(data=data)
        serializer.is_valid(raise_exception=True)

        resolver = SessionResolver(get_backend())
        resolver.handle_event(SessionEvent.SIGNED_IN, serializer.user)

        res = Response({"detail": "login ok", "session": session_payload(resolver)}, status=status.HTTP_200_OK)
        _set_auth_cookies(
            res,
            access=serializer.validated_data["access"],
            refresh=serializer.validated_data["refresh"],
        )
        resolver.close()
        return res


class RefreshView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(request=None, responses={200: RefreshResponseSerializer}, tags=["IAM"])
    def post(self, request):
        refresh_cookie_name = _jwt_cfg().get("AUTH_COOKIE_REFRESH", "mt_refresh")
        refresh = request.COOKIES.get(refresh_cookie_name) or request.data.get("refresh")

        serializer = TokenRefreshSerializer(data={"refresh": refresh})
        serializer.is_valid(raise_exception=True)

        access = serializer.validated_data["access"]
        new_refresh = serializer.validated_data.get("refresh", refresh)

        user = CookieOrHeaderJWTAuthentication().get_user(AccessToken(access))
        resolver = SessionResolver(get_backend())
        resolver.handle_event(SessionEvent.TOKEN_REFRESHED, user)

        res = Response({"detail": "refreshed", "session": session_payload(resolver)}, status=status.HTTP_200_OK)
        resolver.close()
        _set_auth_cookies(res, access=access, refresh=new_refresh)
        return res


class LogoutView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(request=None, responses={200: LogoutResponseSerializer}, tags=["IAM"])
    def post(self, request):
        refresh_cookie_name = _jwt_cfg().get("AUTH_COOKIE_REFRESH", "mt_refresh")
        raw_refresh = request.COOKIES.get(refresh_cookie_name) or request.data.get("refresh")

        def blacklist_refresh_token() -> None:
            if not raw_refresh:
                return
            try:
                token = RefreshToken(raw_refresh)
            except TokenError as exc:
                # expired or already rotated: it cannot be used again anyway
                logger.info("Refresh token not blacklisted on logout: %s", exc)
                return
            token.blacklist()

        resolver = SessionResolver(get_backend())
        resolver.user = request.user
        redirect = resolver.sign_out(blacklist_refresh_token)
        resolver.close()

        res = Response({"detail": "logged out", "redirect": redirect}, status=status.HTTP_200_OK)
        _clear_auth_cookies(res)
        return res
