from fastapi import APIRouter, Body, Depends, HTTPException
from pydantic import ValidationError
from typing import Any, Dict
import logging

from storefront.api.dependencies import get_catalog, get_checkout
from storefront.schemas.order import CheckoutForm, OrderConfirmation
from storefront.services.catalog import CatalogProvider
from storefront.services.checkout import CheckoutFlow, form_errors

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/checkout", tags=["checkout"])


@router.post("", response_model=OrderConfirmation, status_code=201)
async def place_order(
    payload: Dict[str, Any] = Body(...),
    checkout: CheckoutFlow = Depends(get_checkout),
    catalog: CatalogProvider = Depends(get_catalog)
):
    """
    Place a simulated order from cart contents.
    1. Validate the form (422 with {field: message} on failure)
    2. Reject an empty cart
    3. Return the confirmation; the cart clears after the display delay
    """
    try:
        form = CheckoutForm(**payload)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=form_errors(e))

    try:
        return checkout.place_order(form, await catalog.get_products())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
