"""Record lookups shared by the services"""
from mindshift.db.store import UnitOfWork
from mindshift.exceptions import AuthorizationError, RecordNotFoundError
from mindshift.models.affirmation import Affirmation
from mindshift.models.user import UserProgression


async def require_user(uow: UnitOfWork, user_id: str, operation: str) -> UserProgression:
    """Load a user or raise RecordNotFoundError"""
    user = await uow.get_user(user_id)
    if user is None:
        raise RecordNotFoundError(
            message=f"User {user_id} not found",
            record_type="User",
            record_id=user_id,
            user_id=user_id,
            operation=operation,
        )
    return user


async def require_owned_affirmation(
    uow: UnitOfWork,
    user_id: str,
    affirmation_id: str,
    operation: str
) -> Affirmation:
    """
    Load an affirmation owned by user_id

    Raises:
        RecordNotFoundError: No such affirmation
        AuthorizationError: The affirmation belongs to another user
    """
    affirmation = await uow.get_affirmation(affirmation_id)
    if affirmation is None:
        raise RecordNotFoundError(
            message=f"Affirmation {affirmation_id} not found",
            record_type="Affirmation",
            record_id=affirmation_id,
            user_id=user_id,
            operation=operation,
        )
    if affirmation.user_id != user_id:
        raise AuthorizationError(
            message=f"Affirmation {affirmation_id} does not belong to user {user_id}",
            resource="this affirmation",
            user_id=user_id,
            operation=operation,
        )
    return affirmation
