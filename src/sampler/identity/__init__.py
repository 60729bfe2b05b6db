"""Identity provider client."""

from sampler.identity.base import Identity, IdentityError, IdentityNotFoundError, IdentityProvider

__all__ = ["Identity", "IdentityError", "IdentityNotFoundError", "IdentityProvider"]
