from typing import Any

from fastapi import APIRouter, HTTPException

from app import crud
from app.api.deps import CurrentProgress, SessionDep
from app.models import ShopItem, UserProgressPublic
from app.progress import SHOP_ITEMS, ProgressError, purchase_error

router = APIRouter(prefix="/shop", tags=["shop"])


@router.get("/", response_model=list[ShopItem])
def read_shop(current_progress: CurrentProgress) -> Any:
    return [
        ShopItem(
            id=item.id,
            title=item.title,
            description=item.description,
            cost=item.cost,
            can_buy=purchase_error(current_progress, item.id) is None,
        )
        for item in SHOP_ITEMS.values()
    ]


@router.post("/{item_id}/buy", response_model=UserProgressPublic)
def buy_item(item_id: str, session: SessionDep, current_progress: CurrentProgress) -> Any:
    """
    Spend XP on hearts or a power-up. Fails with `not_enough_xp` or
    `hearts_full` and leaves the progress untouched.
    """
    if item_id not in SHOP_ITEMS:
        raise HTTPException(status_code=404, detail="Item not found")
    try:
        return crud.buy_item(session=session, db_progress=current_progress, item_id=item_id)
    except ProgressError as exc:
        raise HTTPException(status_code=400, detail=exc.code)
