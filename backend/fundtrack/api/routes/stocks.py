from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from sqlalchemy import select
from fundtrack.api.deps import db
from fundtrack.core.errors import NotFoundError
from fundtrack.schemas.stock import StockCreate, StockUpdate, StockOut
from fundtrack.models.stock import Stock

router = APIRouter(prefix="/api/stocks", tags=["stocks"])

@router.get("", response_model=list[StockOut])
def list_stocks(s: Session = Depends(db)):
    return s.execute(select(Stock).order_by(Stock.created_at.desc(), Stock.id.desc())).scalars().all()

@router.post("", response_model=StockOut, status_code=201)
def create_stock(body: StockCreate, s: Session = Depends(db)):
    st = Stock(symbol=body.symbol, name=body.name, units=body.units, notes=body.notes)
    s.add(st)
    s.commit()
    s.refresh(st)
    return st

@router.put("/{stock_id}", response_model=StockOut)
def update_stock(stock_id: int, body: StockUpdate, s: Session = Depends(db)):
    st = s.execute(select(Stock).where(Stock.id == stock_id)).scalar_one_or_none()
    if st is None:
        raise NotFoundError("stock_not_found")
    for field, value in body.model_dump(exclude_unset=True).items():
        setattr(st, field, value)
    s.add(st)
    s.commit()
    s.refresh(st)
    return st
