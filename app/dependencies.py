from dataclasses import dataclass

from fastapi import Depends, Request

from app.core.config import get_settings
from app.services.stripe_gateway import DisputeGateway, StripeDisputeGateway


@dataclass(frozen=True)
class CurrentUser:
    id: str
    email: str = ""
    name: str = ""


class IdentityResolver:
    """Turns a request into the caller's identity.

    Every store and the packet generator take the resolved ``user_id``
    explicitly, so a real resolver (session, JWT) only has to replace this.
    """

    def resolve(self, request: Request) -> CurrentUser:
        raise NotImplementedError


class DemoIdentityResolver(IdentityResolver):
    def __init__(self, user_id: str, email: str = "", name: str = ""):
        self.user = CurrentUser(id=user_id, email=email, name=name)

    def resolve(self, request: Request) -> CurrentUser:
        _ = request
        return self.user


def get_identity_resolver() -> IdentityResolver:
    settings = get_settings()
    return DemoIdentityResolver(settings.demo_user_id, settings.demo_user_email, settings.demo_user_name)


def get_current_user(request: Request, resolver: IdentityResolver = Depends(get_identity_resolver)) -> CurrentUser:
    return resolver.resolve(request)


def get_dispute_gateway() -> DisputeGateway:
    return StripeDisputeGateway()
