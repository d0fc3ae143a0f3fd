"""Authentication use cases."""

from .change_password import ChangePasswordUseCase
from .get_current_identity import GetCurrentIdentityUseCase
from .link_phone import LinkVerifiedPhoneUseCase
from .password_login import PasswordLoginUseCase
from .register import RegisterOrLinkUseCase
from .send_code import SendVerificationCodeUseCase
from .social_login import SocialLoginUseCase
from .verify_code import VerifyCodeUseCase

__all__ = [
    "ChangePasswordUseCase",
    "GetCurrentIdentityUseCase",
    "LinkVerifiedPhoneUseCase",
    "PasswordLoginUseCase",
    "RegisterOrLinkUseCase",
    "SendVerificationCodeUseCase",
    "SocialLoginUseCase",
    "VerifyCodeUseCase",
]
