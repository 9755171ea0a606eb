from fastapi import APIRouter, Depends

from app.rfidpos.core.deps import get_terminal
from app.rfidpos.schemas.invoices import Invoice
from app.rfidpos.schemas.transactions import (
    CheckoutRequest,
    CheckoutResponse,
    KillRequestResponse,
    TransactionListResponse,
    TransactionResponse,
)
from app.rfidpos.services.invoices import build_invoice

router = APIRouter()


@router.post("/rfidpos/checkout", response_model=CheckoutResponse)
def checkout(payload: CheckoutRequest, terminal=Depends(get_terminal)):
    result = terminal.checkout(
        tax_rate=payload.tax_rate,
        payment_method=payload.payment_method,
        kill_after_sale=payload.kill_after_sale,
        kill_password=payload.kill_password,
    )
    return CheckoutResponse(
        transaction=TransactionResponse.from_domain(result.transaction),
        invoice=build_invoice(result.transaction, terminal.billing, payload.customer),
        kill_requests=[KillRequestResponse.from_domain(request) for request in result.kill_requests],
    )


@router.get("/rfidpos/transactions", response_model=TransactionListResponse)
def list_transactions(terminal=Depends(get_terminal)):
    rows = [TransactionResponse.from_domain(txn) for txn in terminal.processor.list_transactions()]
    return TransactionListResponse(rows=rows, total=len(rows))


@router.get("/rfidpos/transactions/{transaction_id}", response_model=TransactionResponse)
def get_transaction(transaction_id: str, terminal=Depends(get_terminal)):
    return TransactionResponse.from_domain(terminal.processor.get(transaction_id))


@router.get("/rfidpos/transactions/{transaction_id}/invoice", response_model=Invoice)
def get_invoice(transaction_id: str, terminal=Depends(get_terminal)):
    return terminal.invoice_for(transaction_id)
