# Public entry points for hosts that mount the auth routes on their own app
from .auth import AuthConfig, OtpAuth

__all__ = ["AuthConfig", "OtpAuth"]
