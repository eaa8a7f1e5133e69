"""
Public Enquiry Endpoint
Contact form and property enquiry intake
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.deps import ensure_schema
from app.schemas.enquiry import PublicEnquiryRequest
from app.services.enquiry_service import EnquiryService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", status_code=status.HTTP_201_CREATED)
def submit_enquiry(payload: PublicEnquiryRequest, db: Session = Depends(ensure_schema)):
    """Store a website enquiry as a HOT lead-to-be"""
    try:
        enquiry = EnquiryService(db).submit_public(payload.model_dump())
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except SQLAlchemyError as e:
        logger.error(f"Enquiry submission error: {e}")
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to submit enquiry: {str(e)}"
        )

    return {"success": True, "enquiry_id": enquiry.id}
