from typing import Optional

from fastapi import HTTPException, Query

from app.errors import dump_store_error
from app.finance import current_month, month_bounds


def store_failed(tag: str, err) -> HTTPException:
    # raw details go to the log only
    dump_store_error(tag, err)
    return HTTPException(status_code=502, detail="Falha ao acessar os dados, tente novamente.")


def month_param(month: Optional[str] = Query(default=None, pattern=r"^\d{4}-\d{2}$")):
    month = month or current_month()
    try:
        start, end = month_bounds(month)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return month, start, end
