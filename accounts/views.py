"""
Authentication API Views.

Implements:
- POST /auth/signup/ - Create user and profile
- POST /auth/login/ - Session login, returns profile and landing page
- POST /auth/logout/ - End the session
- GET /auth/me/ - Current user or null
"""
import logging

from django.contrib.auth import authenticate, get_user_model, login, logout
from django.db import IntegrityError, transaction
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from core.errors import error_response
from core.rate_limiting import rate_limit
from .models import Profile
from .permissions import get_request_profile
from .serializers import LoginSerializer, ProfileSerializer, SignUpSerializer

logger = logging.getLogger(__name__)

User = get_user_model()


class SignUpView(APIView):
    """
    POST: Register a user with a role.

    Request Body:
    {
        "email": "cashier@example.com",
        "password": "secret1",
        "password_confirm": "secret1",
        "name": "Front Counter",
        "role": "pos"
    }
    """
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = SignUpSerializer(data=request.data)
        if not serializer.is_valid():
            return error_response('Validation Error', serializer.errors, status.HTTP_400_BAD_REQUEST)

        data = serializer.validated_data
        try:
            with transaction.atomic():
                user = User.objects.create_user(
                    username=data['email'],
                    email=data['email'],
                    password=data['password']
                )
                profile = Profile.objects.create(user=user, name=data['name'], role=data['role'])
        except IntegrityError:
            logger.warning(f"Sign-up refused, {data['email']} already registered")
            return error_response(
                'Validation Error', 'User already registered', status.HTTP_400_BAD_REQUEST
            )

        logger.info(f"Registered {profile.role} user {user.email}")
        return Response(ProfileSerializer(profile).data, status=status.HTTP_201_CREATED)


class LoginView(APIView):
    """
    POST: Sign in with e-mail and password.

    Returns the profile and the landing page for its role.
    """
    permission_classes = [AllowAny]

    @rate_limit('login', max_requests=10, window_seconds=60)
    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        if not serializer.is_valid():
            return error_response('Validation Error', serializer.errors, status.HTTP_400_BAD_REQUEST)

        email = serializer.validated_data['email'].lower()
        user = authenticate(request, username=email, password=serializer.validated_data['password'])
        if user is None:
            logger.warning(f"Failed login for {email}")
            return error_response(
                'Authentication Failed', 'Invalid login credentials', status.HTTP_400_BAD_REQUEST
            )

        profile = Profile.objects.filter(user=user).first()
        if profile is None:
            logger.warning(f"Login refused for {email}: no profile")
            return error_response(
                'Authentication Failed', 'No profile found for this account', status.HTTP_403_FORBIDDEN
            )

        login(request, user)
        return Response({
            'profile': ProfileSerializer(profile).data,
            'redirect_to': profile.home_path,
        })


class LogoutView(APIView):
    permission_classes = [AllowAny]

    def post(self, request):
        logout(request)
        return Response(status=status.HTTP_204_NO_CONTENT)


class CurrentUserView(APIView):
    """GET: The signed-in user's profile, or {"user": null}."""
    permission_classes = [AllowAny]

    def get(self, request):
        profile = get_request_profile(request)
        if profile is None:
            return Response({'user': None})
        return Response({'user': ProfileSerializer(profile).data})
