from .link_status import LinkStatus, resolve_link_status
from .oauth import LinkedCredentials, OAuthCorrelator
from .text_transform import TextTransformer
from .x_api import XClient

__all__ = [
    "LinkStatus",
    "resolve_link_status",
    "LinkedCredentials",
    "OAuthCorrelator",
    "TextTransformer",
    "XClient",
]
