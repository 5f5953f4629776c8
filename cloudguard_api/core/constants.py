"""
Константы backend
"""

# Authentication
MAX_PASSWORD_LENGTH_BYTES = 72  # Ограничение bcrypt
MIN_PASSWORD_LENGTH = 8
MAX_PASSWORD_LENGTH_CHARS = 100
MAX_NAME_LENGTH = 255
MAX_EMAIL_LENGTH = 255

# JWT
TOKEN_TYPE_BEARER = "Bearer"
TOKEN_KIND_ACCESS = "access"
TOKEN_KIND_REFRESH = "refresh"

# Avatar
AVATAR_CONTENT_TYPES = {"image/jpeg", "image/png"}
MAX_AVATAR_BYTES = 2 * 1024 * 1024

# Messages
MSG_INVALID_CREDENTIALS = "Invalid credentials"
MSG_UNAUTHENTICATED = "Unauthenticated."
MSG_EMAIL_TAKEN = "The email has already been taken."
MSG_VALIDATION_FAILED = "The given data was invalid."
MSG_LOGGED_OUT = "Successfully logged out"
MSG_VERIFICATION_SENT = "A new verification email has been sent."
MSG_EMAIL_VERIFIED = "Email verified successfully"
MSG_VERIFICATION_INVALID = "The verification token is invalid."
MSG_RESET_LINK_SENT = "If the email exists, a reset link has been sent."
MSG_RESET_TOKEN_INVALID = "This password reset token is invalid."
MSG_PASSWORD_RESET = "Your password has been reset."
MSG_PASSWORD_CHANGED = "Password changed successfully"
MSG_CURRENT_PASSWORD_INVALID = "The current password is incorrect."
MSG_PROFILE_UPDATED = "Profile updated successfully"
