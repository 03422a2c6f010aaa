"""
Tests for the cart and checkout commit logic.

Test Cases:
1. Cart never holds more units than stock
2. Cart total and item count follow every mutation
3. Commit writes order, items and decrements together
4. Empty cart commit is a no-op
5. Insufficient stock rolls back the whole commit
6. Checkout API keeps the cart on failure and clears it on success
"""
from datetime import timedelta
from decimal import Decimal
from unittest.mock import MagicMock, patch

from django.contrib.auth import get_user_model
from django.db import DatabaseError
from django.test import SimpleTestCase, TestCase
from django.utils import timezone
from rest_framework.test import APIClient

from accounts.models import Profile, Role
from inventory.models import Category, InventoryItem
from orders.cart import Cart
from orders.models import Order, OrderItem
from orders.services import (
    Checkout,
    CheckoutError,
    CheckoutInProgressError,
    CheckoutState,
    InsufficientStockError,
    commit_order,
)
from orders.tasks import generate_daily_sales_report, notify_low_stock


def make_item(item_id, price, quantity, name=None):
    """Unsaved inventory item, enough for cart arithmetic."""
    return InventoryItem(
        id=item_id,
        name=name or f'Item {item_id}',
        brand='Brand',
        size='M',
        price=Decimal(price),
        quantity=quantity,
    )


class CartTestCase(SimpleTestCase):
    """Cart arithmetic and stock ceilings."""

    def test_add_new_item_starts_at_one(self):
        cart = Cart()
        line = cart.add(make_item(1, '100.00', 3))

        self.assertEqual(line.cart_quantity, 1)
        self.assertEqual(line.subtotal, Decimal('100.00'))

    def test_repeated_adds_stop_at_stock(self):
        """
        Given: An item with 3 units in stock
        When: Adding it 10 times
        Then: The line holds exactly 3
        """
        cart = Cart()
        item = make_item(1, '40.00', 3)
        for _ in range(10):
            cart.add(item)
            self.assertLessEqual(cart.get(1).cart_quantity, 3)

        self.assertEqual(cart.get(1).cart_quantity, 3)
        self.assertEqual(cart.get(1).subtotal, Decimal('120.00'))

    def test_readd_after_stock_drop_caps_line(self):
        """
        Given: A line holding 5 units of an item stocked at 5
        When: The item is added again after its stock fell to 3
        Then: The line is capped at 3 and does not grow
        """
        cart = Cart()
        cart.add(make_item(1, '20.00', 5, name='Cap'))
        cart.update_quantity(1, 5)

        line = cart.add(make_item(1, '20.00', 3, name='Cap'))

        self.assertEqual(line.stock, 3)
        self.assertEqual(line.cart_quantity, 3)
        self.assertEqual(cart.total, Decimal('60.00'))

    def test_total_and_item_count(self):
        """X at 100 x2 and Y at 50 x1 total 250 over 3 units."""
        cart = Cart()
        x = make_item(1, '100.00', 10)
        y = make_item(2, '50.00', 10)
        cart.add(x)
        cart.add(x)
        cart.add(y)

        self.assertEqual(cart.total, Decimal('250.00'))
        self.assertEqual(cart.item_count, 3)

    def test_update_quantity_clamps_to_stock(self):
        cart = Cart()
        cart.add(make_item(1, '10.00', 7))

        line = cart.update_quantity(1, 999)

        self.assertEqual(line.cart_quantity, 7)
        self.assertEqual(line.subtotal, Decimal('70.00'))

    def test_update_quantity_keeps_non_positive_lines(self):
        """
        Only the upper bound is enforced: zero or negative quantities stay
        in the cart. Checkout refuses them (see CommitOrderTestCase).
        """
        cart = Cart()
        cart.add(make_item(1, '10.00', 7))

        cart.update_quantity(1, 0)
        self.assertIn(1, cart)
        self.assertEqual(cart.get(1).cart_quantity, 0)

        cart.update_quantity(1, -2)
        self.assertEqual(cart.get(1).cart_quantity, -2)
        self.assertEqual(cart.total, Decimal('-20.00'))

    def test_update_unknown_item_returns_none(self):
        self.assertIsNone(Cart().update_quantity(42, 1))

    def test_remove_is_unconditional(self):
        cart = Cart()
        cart.add(make_item(1, '10.00', 7))
        cart.remove(1)
        cart.remove(1)

        self.assertTrue(cart.is_empty)
        self.assertEqual(cart.total, Decimal('0.00'))

    def test_total_matches_lines_after_mixed_operations(self):
        cart = Cart()
        a = make_item(1, '12.50', 5)
        b = make_item(2, '3.00', 2)
        c = make_item(3, '99.99', 1)
        for item in (a, a, b, c, c, b, b):
            cart.add(item)
        cart.update_quantity(1, 4)
        cart.remove(3)

        expected = sum(line.cart_quantity * line.price for line in cart)
        self.assertEqual(cart.total, expected)
        self.assertEqual(cart.total, Decimal('56.00'))
        self.assertEqual(cart.item_count, 6)

    def test_session_round_trip(self):
        cart = Cart()
        cart.add(make_item(1, '19.99', 4))
        cart.update_quantity(1, 3)

        restored = Cart.from_session(cart.to_session())

        self.assertEqual(restored.get(1).cart_quantity, 3)
        self.assertEqual(restored.get(1).price, Decimal('19.99'))
        self.assertEqual(restored.total, Decimal('59.97'))


class CheckoutFixtureMixin:

    def setUp(self):
        self.category = Category.objects.create(name='Apparel')
        self.shirt = InventoryItem.objects.create(
            name='Event T-Shirt', brand='Stagewear', category=self.category,
            size='M', price=Decimal('100.00'), cost=Decimal('60.00'), quantity=10
        )
        self.cap = InventoryItem.objects.create(
            name='Cap', brand='HeadRoom', category=self.category,
            size='Free', price=Decimal('50.00'), cost=Decimal('20.00'), quantity=2
        )
        self.user = get_user_model().objects.create_user(
            username='pos@example.com', email='pos@example.com', password='secret1'
        )
        Profile.objects.create(user=self.user, name='Counter One', role=Role.POS)


class CommitOrderTestCase(CheckoutFixtureMixin, TestCase):
    """Test cases for commit_order."""

    def test_commit_creates_order_items_and_decrements(self):
        """
        Given: Shirt x2 at 100 and cap x1 at 50
        When: Committing the cart
        Then: One order of 250, two items, stock reduced by the sold units
        """
        cart = Cart()
        cart.add(self.shirt)
        cart.add(self.shirt)
        cart.add(self.cap)

        order = commit_order(cart, 'Asha', 'upi', self.user)

        self.assertEqual(order.total_amount, Decimal('250.00'))
        self.assertEqual(order.payment_method, 'upi')
        self.assertEqual(order.customer_name, 'Asha')
        self.assertEqual(order.created_by, self.user)

        items = {item.inventory_id: item for item in order.items.all()}
        self.assertEqual(len(items), 2)
        self.assertEqual(items[self.shirt.id].quantity, 2)
        self.assertEqual(items[self.shirt.id].price, Decimal('100.00'))
        self.assertEqual(items[self.shirt.id].subtotal, Decimal('200.00'))
        self.assertEqual(items[self.cap.id].subtotal, Decimal('50.00'))

        self.shirt.refresh_from_db()
        self.cap.refresh_from_db()
        self.assertEqual(self.shirt.quantity, 8)
        self.assertEqual(self.cap.quantity, 1)
        self.assertTrue(cart.is_empty)

    def test_commit_uses_prices_captured_in_cart(self):
        cart = Cart()
        cart.add(self.shirt)
        InventoryItem.objects.filter(pk=self.shirt.pk).update(price=Decimal('150.00'))

        order = commit_order(cart, '', 'cash', self.user)

        self.assertEqual(order.total_amount, Decimal('100.00'))
        self.assertEqual(order.items.get().price, Decimal('100.00'))

    def test_empty_cart_is_noop(self):
        self.assertIsNone(commit_order(Cart(), 'Nobody', 'cash', self.user))
        self.assertEqual(Order.objects.count(), 0)

    def test_insufficient_stock_rolls_back_everything(self):
        """
        Given: Two carts each holding both remaining caps
        When: Both commit
        Then: The first succeeds; the second fails and leaves no trace
        """
        first, second = Cart(), Cart()
        for cart in (first, second):
            cart.add(self.shirt)
            cart.add(self.cap)
            cart.add(self.cap)

        commit_order(first, '', 'cash', self.user)

        with self.assertRaises(InsufficientStockError) as context:
            commit_order(second, '', 'cash', self.user)

        self.assertEqual(context.exception.available, 0)
        self.assertEqual(Order.objects.count(), 1)
        self.assertEqual(OrderItem.objects.count(), 2)
        self.shirt.refresh_from_db()
        self.cap.refresh_from_db()
        self.assertEqual(self.shirt.quantity, 9)
        self.assertEqual(self.cap.quantity, 0)
        self.assertFalse(second.is_empty)

    def test_non_positive_line_is_refused_before_writing(self):
        cart = Cart()
        cart.add(self.shirt)
        cart.add(self.cap)
        cart.update_quantity(self.cap.id, 0)

        with self.assertRaises(CheckoutError):
            commit_order(cart, '', 'cash', self.user)

        self.assertEqual(Order.objects.count(), 0)
        self.shirt.refresh_from_db()
        self.assertEqual(self.shirt.quantity, 10)

    def test_deleted_item_fails_commit(self):
        cart = Cart()
        cart.add(self.cap)
        self.cap.delete()

        with self.assertRaises(CheckoutError) as context:
            commit_order(cart, '', 'cash', self.user)

        self.assertIn('no longer in inventory', str(context.exception))
        self.assertEqual(Order.objects.count(), 0)


class CheckoutStateTestCase(CheckoutFixtureMixin, TestCase):
    """Test cases for the Checkout state machine."""

    def test_committed_sale_returns_empty_cart(self):
        cart = Cart()
        cart.add(self.shirt)
        checkout = Checkout(cart)

        result = checkout.commit('', 'cash', self.user)

        self.assertTrue(result.committed)
        self.assertEqual(checkout.state, CheckoutState.COMMITTED)
        self.assertTrue(checkout.cart.is_empty)

    def test_empty_cart_never_enters_committing(self):
        checkout = Checkout(Cart())

        self.assertFalse(checkout.begin())
        self.assertEqual(checkout.state, CheckoutState.BUILDING)
        self.assertEqual(checkout.commit().state, CheckoutState.BUILDING)

    def test_failed_commit_keeps_cart(self):
        cart = Cart()
        cart.add(self.cap)
        cart.add(self.cap)
        InventoryItem.objects.filter(pk=self.cap.pk).update(quantity=1)
        checkout = Checkout(cart)

        result = checkout.commit('', 'cash', self.user)

        self.assertEqual(result.state, CheckoutState.FAILED)
        self.assertIn('Insufficient stock for Cap', result.error)
        self.assertEqual(checkout.cart.item_count, 2)

    def test_store_error_becomes_failed_result(self):
        cart = Cart()
        cart.add(self.shirt)
        checkout = Checkout(cart)

        with patch('orders.services.Order.objects.create', side_effect=DatabaseError('connection lost')):
            result = checkout.commit('', 'cash', self.user)

        self.assertEqual(result.state, CheckoutState.FAILED)
        self.assertEqual(result.error, 'connection lost')
        self.assertFalse(checkout.cart.is_empty)

    def test_second_commit_while_in_flight_is_refused(self):
        cart = Cart()
        cart.add(self.shirt)
        checkout = Checkout(cart, state=CheckoutState.COMMITTING, started_at=timezone.now())

        with self.assertRaises(CheckoutInProgressError):
            checkout.begin()

    def test_stale_in_flight_flag_is_ignored(self):
        cart = Cart()
        cart.add(self.shirt)
        checkout = Checkout(
            cart,
            state=CheckoutState.COMMITTING,
            started_at=timezone.now() - timedelta(minutes=10)
        )

        self.assertTrue(checkout.begin())


class CheckoutApiTestCase(CheckoutFixtureMixin, TestCase):
    """Test cases for the POS cart and checkout endpoints."""

    def setUp(self):
        super().setUp()
        self.client = APIClient()
        self.client.force_login(self.user)
        redis_patcher = patch('orders.session.get_redis_client', return_value=None)
        self.redis_client = redis_patcher.start()
        self.addCleanup(redis_patcher.stop)

    def test_readd_after_stock_drop_caps_line(self):
        self.client.post('/api/pos/cart/items/', {'inventory_id': self.shirt.id}, format='json')
        self.client.patch(f'/api/pos/cart/items/{self.shirt.id}/', {'quantity': 10}, format='json')
        InventoryItem.objects.filter(pk=self.shirt.pk).update(quantity=4)

        response = self.client.post('/api/pos/cart/items/', {'inventory_id': self.shirt.id}, format='json')

        self.assertEqual(response.data['lines'][0]['cart_quantity'], 4)
        self.assertEqual(response.data['lines'][0]['stock'], 4)
        self.assertEqual(response.data['total'], '400.00')

    def test_checkout_refused_while_session_lock_is_held(self):
        """
        Given: Another request from this session holds the checkout lock
        When: Checking out
        Then: 409 and nothing is written
        """
        lock = MagicMock()
        lock.set.return_value = None
        self.redis_client.return_value = lock
        self.client.post('/api/pos/cart/items/', {'inventory_id': self.shirt.id}, format='json')

        response = self.client.post('/api/pos/checkout/', {}, format='json')

        self.assertEqual(response.status_code, 409)
        self.assertEqual(Order.objects.count(), 0)
        self.assertEqual(lock.set.call_args.kwargs['nx'], True)
        lock.delete.assert_not_called()

    def test_checkout_releases_session_lock(self):
        lock = MagicMock()
        lock.set.return_value = True
        self.redis_client.return_value = lock
        self.client.post('/api/pos/cart/items/', {'inventory_id': self.shirt.id}, format='json')

        response = self.client.post('/api/pos/checkout/', {}, format='json')

        self.assertEqual(response.status_code, 201)
        lock.delete.assert_called_once_with(lock.set.call_args.args[0])

    def test_committed_checkout_returns_session_to_building(self):
        self.client.post('/api/pos/cart/items/', {'inventory_id': self.shirt.id}, format='json')

        self.client.post('/api/pos/checkout/', {}, format='json')

        state = self.client.session['pos_checkout_state']
        self.assertEqual(state['state'], CheckoutState.BUILDING)
        self.assertIsNone(state['started_at'])

    def test_add_update_remove_via_api(self):
        response = self.client.post('/api/pos/cart/items/', {'inventory_id': self.shirt.id}, format='json')
        self.assertEqual(response.status_code, 200)
        self.client.post('/api/pos/cart/items/', {'inventory_id': self.cap.id}, format='json')

        response = self.client.patch(f'/api/pos/cart/items/{self.shirt.id}/', {'quantity': 999}, format='json')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['item_count'], 11)
        self.assertEqual(response.data['total'], '1050.00')

        response = self.client.delete(f'/api/pos/cart/items/{self.cap.id}/')
        self.assertEqual(response.data['item_count'], 10)
        self.assertEqual(len(response.data['lines']), 1)

    def test_add_out_of_stock_item_is_not_found(self):
        InventoryItem.objects.filter(pk=self.cap.pk).update(quantity=0)

        response = self.client.post('/api/pos/cart/items/', {'inventory_id': self.cap.id}, format='json')

        self.assertEqual(response.status_code, 404)

    def test_patch_line_not_in_cart(self):
        response = self.client.patch(f'/api/pos/cart/items/{self.shirt.id}/', {'quantity': 2}, format='json')
        self.assertEqual(response.status_code, 404)

    def test_checkout_success_clears_cart_and_refreshes_inventory(self):
        self.client.post('/api/pos/cart/items/', {'inventory_id': self.cap.id}, format='json')
        self.client.post('/api/pos/cart/items/', {'inventory_id': self.cap.id}, format='json')

        response = self.client.post(
            '/api/pos/checkout/', {'customer_name': 'Asha', 'payment_method': 'card'}, format='json'
        )

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data['order']['total_amount'], '100.00')
        self.assertEqual(response.data['cart']['item_count'], 0)
        listed = [row['id'] for row in response.data['inventory']]
        self.assertNotIn(self.cap.id, listed)
        self.assertIn(self.shirt.id, listed)

        cart = self.client.get('/api/pos/cart/')
        self.assertEqual(cart.data['lines'], [])

    def test_checkout_defaults_to_cash(self):
        self.client.post('/api/pos/cart/items/', {'inventory_id': self.shirt.id}, format='json')

        response = self.client.post('/api/pos/checkout/', {}, format='json')

        self.assertEqual(response.status_code, 201)
        self.assertEqual(Order.objects.get().payment_method, 'cash')

    def test_checkout_empty_cart(self):
        response = self.client.post('/api/pos/checkout/', {}, format='json')

        self.assertEqual(response.status_code, 200)
        self.assertIsNone(response.data['order'])
        self.assertEqual(Order.objects.count(), 0)

    def test_checkout_failure_keeps_cart(self):
        self.client.post('/api/pos/cart/items/', {'inventory_id': self.cap.id}, format='json')
        InventoryItem.objects.filter(pk=self.cap.pk).update(quantity=0)

        response = self.client.post('/api/pos/checkout/', {}, format='json')

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data['error'], 'Checkout Failed')
        cart = self.client.get('/api/pos/cart/')
        self.assertEqual(cart.data['item_count'], 1)

    def test_orders_require_view_orders_capability(self):
        response = self.client.get('/api/orders/')
        self.assertEqual(response.status_code, 403)

    def test_admin_lists_orders(self):
        cart = Cart()
        cart.add(self.shirt)
        order = commit_order(cart, 'Asha', 'cash', self.user)
        admin = get_user_model().objects.create_user(username='admin@example.com', password='secret1')
        Profile.objects.create(user=admin, name='Admin', role=Role.ADMIN)
        self.client.force_login(admin)

        listing = self.client.get('/api/orders/')
        detail = self.client.get(f'/api/orders/{order.id}/')

        self.assertEqual(listing.status_code, 200)
        self.assertEqual(listing.data[0]['item_count'], 1)
        self.assertEqual(detail.data['items'][0]['inventory_id'], self.shirt.id)


class OrderTaskTestCase(CheckoutFixtureMixin, TestCase):
    """Test cases for Celery tasks, run synchronously."""

    def test_notify_low_stock_reports_items_below_min_stock(self):
        cart = Cart()
        cart.add(self.cap)
        order = commit_order(cart, '', 'cash', self.user)

        result = notify_low_stock(order.id)

        self.assertEqual(result['status'], 'success')
        self.assertEqual([r['id'] for r in result['restock']], [self.cap.id])

    def test_notify_low_stock_unknown_order(self):
        result = notify_low_stock(99999)
        self.assertEqual(result['status'], 'error')

    def test_daily_report_groups_yesterdays_orders(self):
        yesterday = timezone.now() - timedelta(days=1)
        for method, amount in (('cash', '10.00'), (' CASH', '5.00'), ('upi', '7.50')):
            order = Order.objects.create(total_amount=Decimal(amount), payment_method=method)
            Order.objects.filter(pk=order.pk).update(created_at=yesterday)
        Order.objects.create(total_amount=Decimal('99.00'), payment_method='cash')

        report = generate_daily_sales_report()

        self.assertEqual(report['order_count'], 3)
        self.assertEqual(report['total'], '22.50')
        self.assertEqual(report['by_payment_method'], {'Cash': '15.00', 'Upi': '7.50'})
