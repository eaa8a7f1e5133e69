"""
Schema bootstrap endpoint
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import inspect
from sqlalchemy.orm import Session

from app.database import TABLES, get_db, init_db

router = APIRouter()


@router.api_route("/init", methods=["GET", "POST"])
def initialize_database(db: Session = Depends(get_db)):
    """Create missing tables / columns and report what exists"""
    bind = db.get_bind()
    if not init_db(bind):
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Database initialization failed"
        )

    existing = set(inspect(bind).get_table_names())
    return {
        "success": True,
        "message": "Database initialized successfully",
        "tables": [table for table in TABLES if table in existing],
    }
