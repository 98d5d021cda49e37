"""Identity collaborator: who is the current owner."""

from abc import ABC, abstractmethod

from backbar.core.exceptions import NotAuthenticatedError


class BaseIdentity(ABC):
    @abstractmethod
    def current_owner_id(self) -> str | None:
        """Return the authenticated owner id, or ``None`` when signed out."""

    def require_owner_id(self) -> str:
        owner_id = self.current_owner_id()
        if not owner_id:
            raise NotAuthenticatedError()
        return owner_id


class StaticIdentity(BaseIdentity):
    """Identity fixed for the lifetime of a session; cleared on sign-out."""

    def __init__(self, owner_id: str | None):
        self.owner_id = owner_id

    def current_owner_id(self) -> str | None:
        return self.owner_id

    def sign_out(self) -> None:
        self.owner_id = None
