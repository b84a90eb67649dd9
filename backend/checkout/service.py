"""
Cas d'usage 'checkout': reconstruit le tunnel depuis la session Starlette autour du panier serveur.
"""
from contextlib import contextmanager
from typing import Any, Iterator, MutableMapping

from backend.cart.service import cart_session, get_or_create_cart_id
from backend.payments.service import PaymentService

from .flow import CheckoutFlow

SESSION_CHECKOUT_KEY = "checkout"

@contextmanager
def checkout_session(session: MutableMapping[str, Any], payments: PaymentService, **flow_options) -> Iterator[CheckoutFlow]:
    """
    Ouvre le panier de la session et l'état du tunnel, puis persiste les deux en sortie.
    Une confirmation dont le délai d'affichage est écoulé est refermée à l'ouverture.
    """
    with cart_session(get_or_create_cart_id(session)) as store:
        flow = CheckoutFlow(store, payments, **flow_options).restore(session.get(SESSION_CHECKOUT_KEY))
        flow.close_if_elapsed()
        try:
            yield flow
        finally:
            session[SESSION_CHECKOUT_KEY] = flow.to_state()
