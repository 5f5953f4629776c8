"""Константы клиента."""

from typing import Final

# ===== HTTP STATUS CODES =====
HTTP_OK: Final[int] = 200
HTTP_CREATED: Final[int] = 201
HTTP_NO_CONTENT: Final[int] = 204
HTTP_UNAUTHORIZED: Final[int] = 401
HTTP_UNPROCESSABLE_ENTITY: Final[int] = 422
HTTP_INTERNAL_SERVER_ERROR: Final[int] = 500

# ===== CREDENTIAL STORE KEYS =====
STORAGE_TOKEN_KEY: Final[str] = "token"
STORAGE_USER_KEY: Final[str] = "user"
STORAGE_REFRESH_TOKEN_KEY: Final[str] = "refresh_token"

# ===== API ENDPOINTS =====
ENDPOINT_PING: Final[str] = "/ping"
ENDPOINT_LOGIN: Final[str] = "/login"
ENDPOINT_REGISTER: Final[str] = "/register"
ENDPOINT_LOGOUT: Final[str] = "/logout"
ENDPOINT_CHECK_AUTH: Final[str] = "/check-auth"
ENDPOINT_EMAIL_VERIFY: Final[str] = "/email/verify"
ENDPOINT_EMAIL_RESEND: Final[str] = "/email/resend"
ENDPOINT_FORGOT_PASSWORD: Final[str] = "/forgot-password"
ENDPOINT_RESET_PASSWORD: Final[str] = "/reset-password"
ENDPOINT_REFRESH: Final[str] = "/auth/refresh"
ENDPOINT_PROFILE: Final[str] = "/profile"
ENDPOINT_CHANGE_PASSWORD: Final[str] = "/change-password"

# ===== TOKEN =====
DEFAULT_TOKEN_TYPE: Final[str] = "Bearer"

# ===== ROUTES =====
AUTH_SECTION: Final[str] = "(auth)"
ROUTE_LOGIN: Final[str] = "/(auth)/login"
ROUTE_HOME: Final[str] = "/(tabs)"

# ===== NETWORK ERROR KINDS =====
NETWORK_TIMEOUT: Final[str] = "timeout"
NETWORK_CONNECTION_REFUSED: Final[str] = "connection_refused"
NETWORK_GENERIC: Final[str] = "generic"

# ===== UI MESSAGES =====
MSG_TIMEOUT: Final[str] = "Request timed out. The server is taking too long to respond."
MSG_CONNECTION_REFUSED: Final[str] = "Connection refused. Please ensure the API server is running."
MSG_NETWORK_ERROR: Final[str] = (
    "Network error. Please check your internet connection and that the API server is running."
)
MSG_VALIDATION_FAILED: Final[str] = "Validation failed"
MSG_INVALID_CREDENTIALS: Final[str] = "Invalid credentials"
MSG_SERVER_ERROR: Final[str] = "Server error. Please try again later."
MSG_UNKNOWN_ERROR: Final[str] = "Unexpected response from the server."
MSG_LOGIN_FAILED: Final[str] = "Login failed. Please try again."
MSG_REGISTER_FAILED: Final[str] = "Registration failed. Please try again."
MSG_RESET_FAILED: Final[str] = "Failed to send reset email. Please try again."
MSG_VERIFICATION_INVALID: Final[str] = "The verification token is invalid. Please request a new one."
MSG_RESEND_FAILED: Final[str] = "Failed to resend verification email. Please try again later."
MSG_PROFILE_UPDATE_FAILED: Final[str] = "Failed to update profile."
MSG_PASSWORD_CHANGE_FAILED: Final[str] = "Failed to change password."
MSG_NOT_AUTHENTICATED: Final[str] = "You are not signed in."

# ===== FORM MESSAGES =====
MSG_NAME_REQUIRED: Final[str] = "Name is required"
MSG_EMAIL_REQUIRED: Final[str] = "Email is required"
MSG_EMAIL_INVALID: Final[str] = "Email address is not valid"
MSG_PASSWORD_REQUIRED: Final[str] = "Password is required"
MSG_PASSWORD_TOO_SHORT: Final[str] = "Password must be at least {min_length} characters"
MSG_CONFIRM_REQUIRED: Final[str] = "Please confirm your password"
MSG_PASSWORDS_MISMATCH: Final[str] = "Passwords do not match"
MSG_CURRENT_PASSWORD_REQUIRED: Final[str] = "Current password is required"
MSG_TOKEN_REQUIRED: Final[str] = "No verification token provided."

EMAIL_PATTERN: Final[str] = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"
