from src.wg_common.enums import TargetType
from src.wg_common.errors import SelfWagerError, TargetNotBettableError, TargetNotFoundError
from src.wg_wager.domain.models import BettingTarget


def check_target_eligible(
    target: BettingTarget | None, target_type: str, target_id: str, bettor_id: str
) -> BettingTarget:
    """Target must exist, have opted in, and not be the bettor (or the bettor's company).

    Companies additionally need a connected billing account, otherwise no
    MRR snapshots will ever be captured for them.
    """
    if target is None:
        raise TargetNotFoundError(target_type, target_id)
    if not target.betting_enabled:
        raise TargetNotBettableError("betting is not enabled for this target")
    if target.target_type == TargetType.COMPANY and not target.billing_connected:
        raise TargetNotBettableError("company has not connected billing for MRR tracking")
    if target.owned_by(bettor_id):
        raise SelfWagerError()
    return target
