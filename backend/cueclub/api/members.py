"""
会员查询API
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import List
from cueclub.db.database import get_db
from cueclub.repositories import members
from cueclub.schemas.member import MemberResponse

router = APIRouter(prefix="/api/members", tags=["会员"])


@router.get("/search", response_model=List[MemberResponse])
def search_members(
    term: str = Query(..., min_length=1, description="姓名前缀或手机号"),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db)
):
    """按姓名前缀或手机号搜索会员"""
    return members.search_members(db, term, limit)


@router.get("/{member_id}", response_model=MemberResponse)
def get_member(member_id: int, db: Session = Depends(get_db)):
    """获取会员详情（剩余时长）"""
    member = members.get_member(db, member_id)
    if not member:
        raise HTTPException(status_code=404, detail="Member not found")
    return member
