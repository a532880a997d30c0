"""Simulated gateway callbacks.

No real gateway is integrated, so success and failure are synthesized: a
transaction id built from the clock and the payment id, and a gateway
response flagged as simulated.
"""

import json
import time

from marketplace.payment.confirmation import ConfirmPayment

SIMULATED_FAILURE_REASON = "Simulated payment failure"


def simulated_transaction_id(payment_id, success: bool) -> str:
    prefix = "SIM" if success else "SIM-FAIL"
    return f"{prefix}-{int(time.time() * 1000)}-{str(payment_id)[:8].upper()}"


def simulated_success(payment_id) -> ConfirmPayment:
    return ConfirmPayment(
        payment_id=payment_id,
        transaction_id=simulated_transaction_id(payment_id, success=True),
        success=True,
        gateway_response=json.dumps({"status": "success", "simulated": True}),
    )


def simulated_failure(payment_id, reason=None) -> ConfirmPayment:
    return ConfirmPayment(
        payment_id=payment_id,
        transaction_id=simulated_transaction_id(payment_id, success=False),
        success=False,
        failure_reason=reason or SIMULATED_FAILURE_REASON,
        gateway_response=json.dumps({"status": "failed", "simulated": True}),
    )
