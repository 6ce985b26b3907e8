from typing import Generator

from fastapi import Depends
from sqlalchemy.orm import Session

from backoffice.db.session import SessionLocal
from backoffice.core.approval import ApprovalService


def get_db() -> Generator:
    """Database session dependency."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_approval_service(db: Session = Depends(get_db)) -> ApprovalService:
    """Approval service bound to the request's session."""
    return ApprovalService(db)
