from dataclasses import dataclass, field
from typing import FrozenSet, Optional

ADMIN = "ADMIN"
PROVIDER = "PROVIDER"
CLIENT = "CLIENT"

ALL_ROLES = (CLIENT, PROVIDER, ADMIN)


@dataclass(frozen=True)
class RequesterContext:
    """Who is calling a core operation. Passed explicitly; never read from globals."""

    user_id: Optional[int] = None
    roles: FrozenSet[str] = field(default_factory=frozenset)

    @classmethod
    def from_user(cls, user) -> "RequesterContext":
        if user is None:
            return cls.anonymous()
        return cls(user_id=user.id, roles=frozenset(r.name for r in user.roles))

    @classmethod
    def anonymous(cls) -> "RequesterContext":
        return cls()

    @property
    def authenticated(self) -> bool:
        return self.user_id is not None

    @property
    def is_admin(self) -> bool:
        return self.has_role(ADMIN)

    def has_role(self, role: str) -> bool:
        return role in self.roles

    def is_owner(self, user_id) -> bool:
        return self.user_id is not None and user_id is not None and self.user_id == user_id
