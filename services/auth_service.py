"""
Authentication service.

Verifies Supabase access tokens and resolves user roles from profile_roles.
"""

from typing import Optional
import structlog

from config import get_supabase_client, get_admin_client
from models.auth import AuthenticatedUser
from exceptions import (
    AuthenticationError,
    AuthorizationError,
    DatabaseError,
)

logger = structlog.get_logger(__name__)

STUDENT_ROLE = "student"


class AuthService:
    """
    Token verification and role checks.
    """

    def __init__(self):
        self.db = get_supabase_client()
        self.roles_table = "profile_roles"
        self.enrollments_table = "enrollments"

    def verify_token(self, token: Optional[str]) -> AuthenticatedUser:
        """
        Resolve the user behind a Supabase access token.

        Args:
            token: Raw JWT (without the "Bearer " prefix)

        Returns:
            AuthenticatedUser without roles

        Raises:
            AuthenticationError: If the token is missing, invalid or expired
        """
        if not token:
            raise AuthenticationError("No token provided")

        try:
            response = self.db.auth.get_user(token)
        except Exception as e:
            logger.warning("token_verification_failed", error=str(e), error_type=type(e).__name__)
            raise AuthenticationError("Invalid or expired token")

        user = getattr(response, "user", None)
        if user is None or not getattr(user, "id", None):
            raise AuthenticationError("Invalid or expired token")

        return AuthenticatedUser(id=str(user.id), email=getattr(user, "email", None))

    def get_roles(self, user_id: str) -> list[str]:
        """
        Get a user's roles, lowercased.

        Raises:
            DatabaseError: If the lookup fails
        """
        try:
            result = (
                self.db.table(self.roles_table)
                .select("role, profile_id")
                .eq("profile_id", user_id)
                .execute()
            )
        except Exception as e:
            logger.error("role_lookup_failed", user_id=user_id, error=str(e))
            raise DatabaseError("select", str(e))

        return sorted({str(row["role"]).lower().strip() for row in (result.data or [])})

    def require_role(self, user: AuthenticatedUser, allowed: list[str]) -> AuthenticatedUser:
        """
        Attach roles to the user and check one of them is allowed.

        Students who are enrolled in a class but were never given the
        student role get it backfilled.

        Raises:
            AuthorizationError: If none of the user's roles is allowed
        """
        roles = self.get_roles(user.id)
        allowed_lower = [r.lower().strip() for r in allowed]

        if STUDENT_ROLE in allowed_lower and STUDENT_ROLE not in roles:
            if self._backfill_student_role(user.id):
                roles = sorted(set(roles) | {STUDENT_ROLE})

        user = user.model_copy(update={"roles": roles})

        if not user.has_any_role(allowed_lower):
            logger.info(
                "role_check_denied",
                user_id=user.id,
                roles=roles,
                allowed=allowed_lower
            )
            raise AuthorizationError(
                "Insufficient permissions",
                details={"required": allowed_lower, "roles": roles}
            )

        return user

    def _backfill_student_role(self, user_id: str) -> bool:
        """
        Give an enrolled user the student role.

        Returns:
            True if the user is enrolled (role granted or already granted)
        """
        try:
            enrollments = (
                self.db.table(self.enrollments_table)
                .select("class_id")
                .eq("student_id", user_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.warning("enrollment_lookup_failed", user_id=user_id, error=str(e))
            return False

        if not enrollments.data:
            return False

        # profile_roles is write-protected by RLS for the user's own token
        writer = get_admin_client() or self.db

        try:
            writer.table(self.roles_table).insert(
                {"profile_id": user_id, "role": STUDENT_ROLE}
            ).execute()
            logger.info("student_role_backfilled", user_id=user_id)
        except Exception as e:
            # Enrollment is enough to let this request through
            logger.warning("student_role_backfill_failed", user_id=user_id, error=str(e))

        return True


# Singleton instance
_auth_service: Optional[AuthService] = None


def get_auth_service() -> AuthService:
    """Get or create AuthService instance."""
    global _auth_service
    if _auth_service is None:
        _auth_service = AuthService()
    return _auth_service
