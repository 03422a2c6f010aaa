"""
Session storage for the POS cart and checkout state.

The cart lives in the operator's Django session so each terminal session
owns its own sale.
"""
import logging
from contextlib import contextmanager

import redis
from django.conf import settings
from django.utils.dateparse import parse_datetime

from core.rate_limiting import get_redis_client
from .cart import Cart
from .services import CHECKOUT_STALE_AFTER, Checkout, CheckoutState

logger = logging.getLogger(__name__)


def _cart_key():
    return getattr(settings, 'POS_CART_SESSION_KEY', 'pos_cart')


def _state_key():
    return getattr(settings, 'POS_CHECKOUT_STATE_SESSION_KEY', 'pos_checkout_state')


def load_cart(request) -> Cart:
    return Cart.from_session(request.session.get(_cart_key()))


def save_cart(request, cart: Cart) -> None:
    request.session[_cart_key()] = cart.to_session()


def load_checkout(request) -> Checkout:
    data = request.session.get(_state_key()) or {}
    started_at = data.get('started_at')
    return Checkout(
        load_cart(request),
        state=data.get('state', CheckoutState.BUILDING),
        started_at=parse_datetime(started_at) if started_at else None,
    )


def save_checkout(request, checkout: Checkout, flush: bool = False) -> None:
    """
    Persist the checkout state and its cart.

    flush writes the session immediately so a parallel request from the same
    session sees a commit in flight.
    """
    request.session[_state_key()] = {
        'state': str(checkout.state),
        'started_at': checkout.started_at.isoformat() if checkout.started_at else None,
    }
    save_cart(request, checkout.cart)
    if flush:
        request.session.save()


@contextmanager
def checkout_lock(request):
    """
    Hold a Redis lock on this session's checkout while it commits.

    Yields False when another request from the same session holds the lock.
    Without Redis the session state is the only guard, and two requests that
    both load it before either flushes can still both commit.
    """
    if not request.session.session_key:
        request.session.save()
    key = f"checkout_lock:{request.session.session_key}"

    client = get_redis_client()
    acquired = True
    if client is not None:
        try:
            acquired = bool(client.set(
                key, '1', nx=True, ex=int(CHECKOUT_STALE_AFTER.total_seconds())
            ))
        except redis.RedisError as e:
            logger.error(f"Redis error acquiring checkout lock: {e}")
            client = None

    if not acquired:
        yield False
        return

    try:
        yield True
    finally:
        if client is not None:
            try:
                client.delete(key)
            except redis.RedisError as e:
                logger.error(f"Redis error releasing checkout lock: {e}")
