import enum

from models import RequestStatus
from ledger.errors import ValidationError
from utils import to_text


class Action(enum.Enum):
    APPROVE = "approve"
    REJECT = "reject"


def parse_action(action):
    if isinstance(action, Action):
        return action
    try:
        return Action(to_text(action, "action").lower())
    except ValueError:
        raise ValidationError("action must be 'approve' or 'reject'")


def transition(model, row_id, target: RequestStatus) -> bool:
    """
    Move a pending request to a terminal status.
    Terminal statuses never move again: the update only matches while the row
    is still pending.
    """
    if not target.is_terminal:
        raise ValueError(f"{target} is not a terminal status")

    updated = (
        model.query
        .filter(model.id == row_id, model.status == RequestStatus.PENDING)
        .update({model.status: target}, synchronize_session=False)
    )
    return bool(updated)
