"""Account roles (licenses) and prefix-based role normalization."""

from enum import StrEnum


class Role(StrEnum):
    """License types a provisioned user can hold, in matching order."""

    EDITOR = "editor"
    CONTRIBUTOR = "contributor"
    VIEWER = "viewer"


class UnknownRoleError(ValueError):
    """Raised when a role token matches none of the known roles."""

    def __init__(self, token: str):
        super().__init__(f"unknown role '{token}'")
        self.token = token


def normalize_role(token: str) -> Role:
    """Map a free-text role token to a :class:`Role`.

    The token is trimmed and lower-cased; the first role (in declaration
    order) whose name starts with it wins, so ``"e"`` gives ``editor`` and
    ``"con"`` gives ``contributor``.

    Raises:
        UnknownRoleError: the token is empty or matches no role
    """
    candidate = token.strip().lower()
    if not candidate:
        raise UnknownRoleError(token.strip())

    for role in Role:
        if role.value.startswith(candidate):
            return role

    raise UnknownRoleError(token.strip())
