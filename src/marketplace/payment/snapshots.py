"""Flattened, JSON-ready views of payments."""

import json


def _iso(value):
    return value.isoformat() if value else None


def payment_snapshot(payment) -> dict:
    return {
        "id": str(payment.id),
        "order_id": str(payment.order_id),
        "user_id": str(payment.user_id),
        "transaction_id": payment.transaction_id,
        "payment_method": payment.payment_method,
        "provider": payment.provider,
        "amount": payment.amount,
        "currency": payment.currency,
        "status": payment.status,
        "paid_at": _iso(payment.paid_at),
        "refunded_at": _iso(payment.refunded_at),
        "refund_amount": payment.refund_amount,
        "refund_reason": payment.refund_reason,
        "failure_reason": payment.failure_reason,
        "gateway_response": json.loads(payment.gateway_response) if payment.gateway_response else None,
        "card_last_four": payment.card_last_four,
        "card_brand": payment.card_brand,
        "billing_email": payment.billing_email,
        "created_at": _iso(payment.created_at),
        "updated_at": _iso(payment.updated_at),
    }
