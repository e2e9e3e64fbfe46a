"""
事务提交辅助
在一个数据库事务中执行多步写入，任一步失败全部回滚
"""
import logging
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from cueclub.core.errors import ClubError, ConcurrencyConflict, PersistenceFailure

logger = logging.getLogger(__name__)


@contextmanager
def atomic(db: Session):
    """
    用法：
        with atomic(db):
            ...多步写入...
    正常结束时提交；业务异常原样抛出，数据库异常转换为业务异常，均先回滚
    """
    try:
        yield db
        db.commit()
    except ClubError:
        db.rollback()
        raise
    except StaleDataError as exc:
        db.rollback()
        logger.warning("并发写入冲突: %s", exc)
        raise ConcurrencyConflict("The record was changed by another terminal, reload and try again") from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("数据库写入失败")
        raise PersistenceFailure("Could not save changes, please try again") from exc
