from fastapi import APIRouter, Depends

from app.rfidpos.core.deps import get_terminal
from app.rfidpos.schemas.cart import (
    CartItemResponse,
    CartResponse,
    ScanInputRequest,
    ScanInputResponse,
    ScanRequest,
    ScanResponse,
)
from app.rfidpos.schemas.products import ProductResponse
from app.rfidpos.services.scan_dispatcher import NotFound, ScanDispatcher

router = APIRouter()


def _cart_response(terminal) -> CartResponse:
    items = terminal.cart_items()
    return CartResponse(
        items=[CartItemResponse.from_domain(item) for item in items],
        count=len(items),
        total=terminal.cart_total(),
    )


def _scan_response(terminal, outcome) -> ScanResponse:
    if outcome is None:
        return ScanResponse(outcome="IGNORED", tag_id=None, message="Empty scan ignored", cart=_cart_response(terminal))
    product = None if isinstance(outcome, NotFound) else ProductResponse.from_domain(outcome.product)
    return ScanResponse(
        outcome=outcome.outcome,
        tag_id=outcome.tag_id,
        message=ScanDispatcher.describe(outcome),
        product=product,
        cart=_cart_response(terminal),
    )


@router.post("/rfidpos/scan", response_model=ScanResponse)
def scan(payload: ScanRequest, terminal=Depends(get_terminal)):
    outcome = terminal.scan(payload.tag_id, payload.source)
    return _scan_response(terminal, outcome)


@router.post("/rfidpos/scan/input", response_model=ScanInputResponse)
def scan_input(payload: ScanInputRequest, terminal=Depends(get_terminal)):
    terminal.feed_input(payload.value)
    result = None
    if payload.confirm:
        result = _scan_response(terminal, terminal.confirm_input())
    state = terminal.classifier.state()
    return ScanInputResponse(
        mode=state.mode.value,
        buffer=state.buffer,
        auto_submit_pending=state.auto_submit_pending,
        scan=result,
    )


@router.get("/rfidpos/cart", response_model=CartResponse)
def get_cart(terminal=Depends(get_terminal)):
    return _cart_response(terminal)


@router.delete("/rfidpos/cart", response_model=CartResponse)
def clear_cart(terminal=Depends(get_terminal)):
    terminal.clear_cart()
    return _cart_response(terminal)


@router.delete("/rfidpos/cart/{tag_id}", response_model=CartResponse)
def remove_cart_item(tag_id: str, terminal=Depends(get_terminal)):
    terminal.remove_from_cart(tag_id)
    return _cart_response(terminal)
