"""
台桌计时与结算API
"""
import asyncio
import json
from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session
from typing import Optional
from cueclub.config import get_settings
from cueclub.core.enums import PaymentMethod
from cueclub.db.database import SessionLocal, get_db
from cueclub.repositories import catalog
from cueclub.schemas.session import (
    AddItemRequest, AttachMemberRequest, BillResponse, CustomerNameRequest,
    SessionResponse, SettleSessionRequest, TransactionResponse, VersionedRequest,
)
from cueclub.services import sessions, settlement

router = APIRouter(prefix="/api/tables/{table_id}/session", tags=["台桌计时"])


def _version(request: Optional[VersionedRequest]) -> Optional[int]:
    return request.expected_version if request else None


def _respond(db: Session, table_id: int, snapshot) -> SessionResponse:
    table = catalog.require_table(db, table_id)
    return SessionResponse.build(table, snapshot)


@router.get("", response_model=Optional[SessionResponse])
def get_session(table_id: int, db: Session = Depends(get_db)):
    """获取台桌当前会话（没有会话时返回null）"""
    table, snapshot = sessions.get_session(db, table_id)
    if snapshot is None:
        return None
    return SessionResponse.build(table, snapshot)


@router.post("/start", response_model=SessionResponse)
def start_session(table_id: int, request: VersionedRequest = None, db: Session = Depends(get_db)):
    """开台计时"""
    snapshot = sessions.start_session(db, table_id, expected_version=_version(request))
    return _respond(db, table_id, snapshot)


@router.post("/pause", response_model=SessionResponse)
def pause_session(table_id: int, request: VersionedRequest = None, db: Session = Depends(get_db)):
    """暂停计时"""
    snapshot = sessions.pause_session(db, table_id, expected_version=_version(request))
    return _respond(db, table_id, snapshot)


@router.post("/resume", response_model=SessionResponse)
def resume_session(table_id: int, request: VersionedRequest = None, db: Session = Depends(get_db)):
    """继续计时（暂停或停止后）"""
    snapshot = sessions.resume_session(db, table_id, expected_version=_version(request))
    return _respond(db, table_id, snapshot)


@router.post("/stop", response_model=SessionResponse)
def stop_session(table_id: int, request: VersionedRequest = None, db: Session = Depends(get_db)):
    """停止计时"""
    snapshot = sessions.stop_session(db, table_id, expected_version=_version(request))
    return _respond(db, table_id, snapshot)


@router.post("/items", response_model=SessionResponse)
def add_item(table_id: int, request: AddItemRequest, db: Session = Depends(get_db)):
    """点单（加一份）"""
    snapshot = sessions.add_item(db, table_id, request.item_id, expected_version=request.expected_version)
    return _respond(db, table_id, snapshot)


@router.delete("/items/{item_id}", response_model=SessionResponse)
def remove_item(
    table_id: int,
    item_id: int,
    expected_version: Optional[int] = None,
    db: Session = Depends(get_db)
):
    """退单（减一份）"""
    snapshot = sessions.remove_item(db, table_id, item_id, expected_version=expected_version)
    return _respond(db, table_id, snapshot)


@router.put("/customer", response_model=SessionResponse)
def set_customer_name(table_id: int, request: CustomerNameRequest, db: Session = Depends(get_db)):
    """修改顾客名称"""
    snapshot = sessions.set_customer_name(
        db, table_id, request.customer_name, expected_version=request.expected_version
    )
    return _respond(db, table_id, snapshot)


@router.put("/member", response_model=SessionResponse)
def attach_member(table_id: int, request: AttachMemberRequest, db: Session = Depends(get_db)):
    """关联会员"""
    snapshot = sessions.attach_member(db, table_id, request.member_id, expected_version=request.expected_version)
    return _respond(db, table_id, snapshot)


@router.delete("/member", response_model=SessionResponse)
def detach_member(table_id: int, expected_version: Optional[int] = None, db: Session = Depends(get_db)):
    """取消关联会员"""
    snapshot = sessions.detach_member(db, table_id, expected_version=expected_version)
    return _respond(db, table_id, snapshot)


@router.get("/bill", response_model=BillResponse)
def preview_bill(table_id: int, payment_method: Optional[PaymentMethod] = None, db: Session = Depends(get_db)):
    """账单预览"""
    snapshot, bill = sessions.preview_bill(db, table_id, payment_method)
    return BillResponse.build(snapshot, bill)


@router.post("/settle", response_model=TransactionResponse)
def settle_session(table_id: int, request: SettleSessionRequest, db: Session = Depends(get_db)):
    """结算台桌"""
    return settlement.settle_session(
        db,
        table_id,
        request.payment_method,
        cash_amount=request.cash_amount,
        upi_amount=request.upi_amount,
        expected_version=request.expected_version,
    )


@router.post("/reset")
def reset_session(table_id: int, request: VersionedRequest = None, db: Session = Depends(get_db)):
    """放弃未结算的会话，台桌恢复空闲"""
    sessions.reset_session(db, table_id, expected_version=_version(request))
    return {"message": f"Session for table {table_id} discarded"}


@router.get(
    "/stream",
    response_class=StreamingResponse,
    responses={200: {"content": {"text/event-stream": {}}}},
)
async def stream_session(
    table_id: int,
    request: Request,
    max_events: Optional[int] = Query(None, ge=1, description="最多推送次数，不传则持续推送"),
):
    """
    计时推送（SSE）
    按配置的间隔推送实时计时和费用，只读不写；客户端断开、会话结束或达到 max_events 时停止
    """
    interval = get_settings().ticker_interval_seconds

    def snapshot_payload() -> Optional[str]:
        with SessionLocal() as db:
            table, snapshot = sessions.get_session(db, table_id)
            if snapshot is None:
                return None
            return SessionResponse.build(table, snapshot).model_dump_json()

    async def event_gen():
        seq = 1
        while True:
            if await request.is_disconnected():
                break
            payload = await asyncio.to_thread(snapshot_payload)
            if payload is None:
                yield f"event: session_closed\nid: {seq}\ndata: {json.dumps({'table_id': table_id})}\n\n"
                break
            yield f"event: tick\nid: {seq}\ndata: {payload}\n\n"
            if max_events is not None and seq >= max_events:
                break
            seq += 1
            await asyncio.sleep(interval)

    # 台桌不存在时直接返回404
    with SessionLocal() as db:
        catalog.require_table(db, table_id)
    return StreamingResponse(event_gen(), media_type="text/event-stream")
