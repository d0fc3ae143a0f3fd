"""Infrastructure providers."""

# Import bases
from .delivery import DeliveryChainProvider
from .fast2sms import Fast2SMSProvider
from .google import GoogleProvider
from .oauth import OAuthAggregatorProvider
from .persistence import PersistenceProvider
from .twilio import TwilioProvider

# Import implementations (needed for __subclasses__())
from .fast2sms import ProdFast2SMSProvider  # noqa: F401
from .google import ProdGoogleProvider  # noqa: F401
from .persistence import ProdPersistenceProvider  # noqa: F401
from .twilio import ProdTwilioProvider  # noqa: F401

__all__ = [
    "DeliveryChainProvider",
    "Fast2SMSProvider",
    "GoogleProvider",
    "OAuthAggregatorProvider",
    "PersistenceProvider",
    "ProdFast2SMSProvider",
    "ProdGoogleProvider",
    "ProdPersistenceProvider",
    "ProdTwilioProvider",
    "TwilioProvider",
]
