"""
Tests for the sales dashboard aggregation.

Test Cases:
1. Payment labels collapse into one bucket per normalized method
2. Top sellers rank by summed units, with a label for deleted items
3. Low stock lists items strictly below the threshold, lowest first
4. Any failed read fails the whole summary
"""
from decimal import Decimal
from unittest.mock import patch

from django.contrib.auth import get_user_model
from django.db import DatabaseError
from django.test import SimpleTestCase, TestCase
from rest_framework.test import APIClient

from accounts.models import Profile, Role
from dashboard.services import (
    DashboardError,
    compute_dashboard,
    normalize_payment_method,
    sales_by_payment_method,
)
from inventory.models import Category, InventoryItem
from orders.models import Order, OrderItem


class NormalizePaymentMethodTestCase(SimpleTestCase):

    def test_variants_share_one_label(self):
        for raw in ('cash', 'CASH', ' cash ', 'Cash'):
            self.assertEqual(normalize_payment_method(raw), 'Cash')

    def test_blank_and_missing_become_unknown(self):
        self.assertEqual(normalize_payment_method(''), 'Unknown')
        self.assertEqual(normalize_payment_method('   '), 'Unknown')
        self.assertEqual(normalize_payment_method(None), 'Unknown')

    def test_idempotent(self):
        for raw in ('upi', ' Credit CARD', '', 'cash'):
            once = normalize_payment_method(raw)
            self.assertEqual(normalize_payment_method(once), once)

    def test_only_first_letter_is_capitalized(self):
        self.assertEqual(normalize_payment_method('CREDIT CARD'), 'Credit card')

    def test_sales_by_payment_method_sums_per_bucket(self):
        rows = [
            {'payment_method': 'CASH', 'total_amount': Decimal('10.00')},
            {'payment_method': 'upi', 'total_amount': Decimal('4.00')},
            {'payment_method': ' cash ', 'total_amount': Decimal('5.00')},
            {'payment_method': 'Cash', 'total_amount': Decimal('2.50')},
        ]

        totals = sales_by_payment_method(rows)

        self.assertEqual([(t.method, t.amount) for t in totals], [
            ('Cash', Decimal('17.50')),
            ('Upi', Decimal('4.00')),
        ])


class DashboardFixtureMixin:

    def setUp(self):
        self.category = Category.objects.create(name='Apparel')

    def make_item(self, name, quantity):
        return InventoryItem.objects.create(
            name=name, brand='Brand', category=self.category,
            price=Decimal('10.00'), cost=Decimal('5.00'), quantity=quantity
        )

    def sell(self, item, quantity, payment_method='cash'):
        subtotal = item.price * quantity
        order = Order.objects.create(total_amount=subtotal, payment_method=payment_method)
        OrderItem.objects.create(
            order=order, inventory_id=item.id, quantity=quantity,
            price=item.price, subtotal=subtotal
        )
        return order


class ComputeDashboardTestCase(DashboardFixtureMixin, TestCase):
    """Test cases for compute_dashboard."""

    def test_empty_store(self):
        summary = compute_dashboard()

        self.assertEqual(summary.total, Decimal('0.00'))
        self.assertEqual(summary.order_count, 0)
        self.assertEqual(summary.top_selling_items, [])
        self.assertEqual(summary.sales_by_payment_method, [])
        self.assertEqual(summary.low_stock_items, [])

    def test_totals_and_payment_buckets(self):
        item = self.make_item('Lanyard', 50)
        self.sell(item, 1, 'CASH')
        self.sell(item, 2, ' cash ')
        self.sell(item, 1, 'Cash')
        self.sell(item, 3, '')

        summary = compute_dashboard()

        self.assertEqual(summary.order_count, 4)
        self.assertEqual(summary.total, Decimal('70.00'))
        buckets = {t.method: t.amount for t in summary.sales_by_payment_method}
        self.assertEqual(buckets, {'Cash': Decimal('40.00'), 'Unknown': Decimal('30.00')})

    def test_top_selling_sums_units_across_orders(self):
        """
        Given: A sold 3 then 2 units, B sold 10
        When: Computing the dashboard
        Then: B ranks first with 10, A second with 5
        """
        a = self.make_item('Item A', 50)
        b = self.make_item('Item B', 50)
        self.sell(a, 3)
        self.sell(a, 2)
        self.sell(b, 10)

        top = compute_dashboard().top_selling_items

        self.assertEqual([(t.name, t.quantity) for t in top], [('Item B', 10), ('Item A', 5)])

    def test_top_selling_keeps_five_with_ties_by_id(self):
        items = [self.make_item(f'Item {n}', 50) for n in range(7)]
        for item in items:
            self.sell(item, 2)
        self.sell(items[6], 1)

        top = compute_dashboard().top_selling_items

        self.assertEqual(len(top), 5)
        self.assertEqual(top[0].inventory_id, items[6].id)
        self.assertEqual([t.inventory_id for t in top[1:]], [i.id for i in items[:4]])

    def test_deleted_item_gets_fallback_label(self):
        item = self.make_item('Retired Poster', 50)
        item_id = item.id
        self.sell(item, 4)
        item.delete()

        top = compute_dashboard().top_selling_items

        self.assertEqual(top[0].name, f'Item #{item_id}')
        self.assertEqual(top[0].quantity, 4)

    def test_low_stock_below_threshold_lowest_first(self):
        self.make_item('At Threshold', 5)
        four = self.make_item('Four Left', 4)
        zero = self.make_item('Sold Out', 0)
        two = self.make_item('Two Left', 2)

        low = compute_dashboard().low_stock_items

        self.assertEqual([i.id for i in low], [zero.id, two.id, four.id])

    def test_any_failed_read_fails_everything(self):
        item = self.make_item('Lanyard', 1)
        self.sell(item, 1)

        with patch.object(InventoryItem.objects, 'low_stock', side_effect=DatabaseError('relation missing')):
            with self.assertRaises(DashboardError) as context:
                compute_dashboard()

        self.assertIn('low stock', str(context.exception))


class DashboardApiTestCase(DashboardFixtureMixin, TestCase):

    def setUp(self):
        super().setUp()
        User = get_user_model()
        self.admin = User.objects.create_user(username='admin@example.com', password='secret1')
        Profile.objects.create(user=self.admin, name='Admin', role=Role.ADMIN)
        self.operator = User.objects.create_user(username='pos@example.com', password='secret1')
        Profile.objects.create(user=self.operator, name='Counter', role=Role.POS)
        self.client = APIClient()

    def test_admin_sees_summary(self):
        self.sell(self.make_item('Lanyard', 3), 2, 'upi')
        self.client.force_login(self.admin)

        response = self.client.get('/api/dashboard/')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['total'], '20.00')
        self.assertEqual(response.data['order_count'], 1)
        self.assertEqual(response.data['sales_by_payment_method'][0]['method'], 'Upi')
        self.assertEqual(response.data['low_stock_items'][0]['name'], 'Lanyard')

    def test_operator_is_refused(self):
        self.client.force_login(self.operator)
        self.assertEqual(self.client.get('/api/dashboard/').status_code, 403)

    def test_anonymous_is_refused(self):
        self.assertEqual(self.client.get('/api/dashboard/').status_code, 403)

    def test_failed_read_returns_503(self):
        self.client.force_login(self.admin)

        with patch('dashboard.views.compute_dashboard', side_effect=DashboardError('Failed to fetch orders')):
            response = self.client.get('/api/dashboard/')

        self.assertEqual(response.status_code, 503)
        self.assertEqual(response.data['error'], 'Dashboard Unavailable')
