"""Scorecard — Meta API Routes."""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session

from scorecard.connectors.meta.client import MetaClient, MetaAPIError
from scorecard.core.logging import get_logger
from scorecard.database import get_session
from scorecard.models.scorecard_models import Brand

logger = get_logger("api.meta")

router = APIRouter(prefix="/meta", tags=["Meta"])


@router.get("/validate-token")
async def validate_token(
    brand_id: str = Query(...),
    session: Session = Depends(get_session),
):
    """Check if a brand's Meta access token is valid.

    Returns validity status, expiration, and granted scopes.
    """
    brand = session.get(Brand, brand_id)
    if brand is None:
        raise HTTPException(status_code=404, detail="Brand not found")

    client = MetaClient(brand.meta_access_token, brand.meta_ad_account_id)
    try:
        result = await client.validate_token()
        return {
            "status": "success",
            "valid": result["valid"],
            "expires_at": result["expires_at"],
            "scopes": result["scopes"],
            "app_id": result["app_id"],
        }
    except MetaAPIError as e:
        raise HTTPException(
            status_code=400, detail=f"Token validation failed: {str(e)}"
        )
    finally:
        await client.close()
