"""
Tests for inventory models and API.
"""
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.test import TestCase
from rest_framework.test import APIClient

from accounts.models import Profile, Role
from inventory.models import Category, InventoryItem
from orders.models import Order, OrderItem


class InventoryQuerySetTestCase(TestCase):

    def setUp(self):
        category = Category.objects.create(name='Accessories')
        self.cap = InventoryItem.objects.create(
            name='Snapback Cap', brand='HeadRoom', category=category,
            price=Decimal('15.00'), quantity=3
        )
        self.band = InventoryItem.objects.create(
            name='Wristband', brand='Capital Merch', category=category,
            price=Decimal('2.00'), quantity=0
        )
        self.bottle = InventoryItem.objects.create(
            name='Bottle', brand='Hydra', category=category,
            price=Decimal('8.00'), quantity=40
        )

    def test_available_excludes_sold_out(self):
        self.assertNotIn(self.band, InventoryItem.objects.available())
        self.assertEqual(InventoryItem.objects.available().count(), 2)

    def test_search_matches_name_or_brand(self):
        found = set(InventoryItem.objects.search('cap'))
        self.assertEqual(found, {self.cap, self.band})

    def test_blank_search_returns_everything(self):
        self.assertEqual(InventoryItem.objects.search('  ').count(), 3)

    def test_low_stock_orders_by_quantity(self):
        self.assertEqual(list(InventoryItem.objects.low_stock(5)), [self.band, self.cap])

    def test_flags(self):
        self.assertTrue(self.band.is_out_of_stock)
        self.assertTrue(self.cap.needs_restock)
        self.assertFalse(self.bottle.needs_restock)

    def test_database_rejects_negative_price_and_cost(self):
        for field in ('price', 'cost'):
            with self.assertRaises(IntegrityError):
                with transaction.atomic():
                    InventoryItem.objects.filter(pk=self.cap.pk).update(**{field: Decimal('-1.00')})

        self.cap.refresh_from_db()
        self.assertEqual(self.cap.price, Decimal('15.00'))


class InventoryApiTestCase(TestCase):
    """Test cases for inventory endpoints."""

    def setUp(self):
        User = get_user_model()
        self.admin = User.objects.create_user(username='admin@example.com', password='secret1')
        Profile.objects.create(user=self.admin, name='Admin', role=Role.ADMIN)
        self.operator = User.objects.create_user(username='pos@example.com', password='secret1')
        Profile.objects.create(user=self.operator, name='Counter', role=Role.POS)

        self.category = Category.objects.create(name='Apparel')
        self.shirt = InventoryItem.objects.create(
            name='Tour T-Shirt', brand='Stagewear', category=self.category, size='L',
            price=Decimal('25.00'), cost=Decimal('9.00'), quantity=12
        )
        self.client = APIClient()

    def payload(self, **overrides):
        data = {
            'name': ' Hoodie ',
            'brand': 'Stagewear',
            'category_id': self.category.id,
            'size': 'M',
            'price': '45.00',
            'cost': '20.00',
            'quantity': 6,
        }
        data.update(overrides)
        return data

    def test_admin_creates_item(self):
        self.client.force_login(self.admin)

        response = self.client.post('/api/inventory/', self.payload(), format='json')

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data['name'], 'Hoodie')
        self.assertEqual(response.data['category']['name'], 'Apparel')

    def test_price_below_cost_needs_confirmation(self):
        """
        Given: A price lower than the cost
        When: Creating without and then with confirm_below_cost
        Then: The first attempt is rejected, the second saved
        """
        self.client.force_login(self.admin)

        refused = self.client.post('/api/inventory/', self.payload(price='10.00'), format='json')
        self.assertEqual(refused.status_code, 400)
        self.assertIn('less than cost price', str(refused.data))

        accepted = self.client.post(
            '/api/inventory/', self.payload(price='10.00', confirm_below_cost=True), format='json'
        )
        self.assertEqual(accepted.status_code, 201)
        self.assertNotIn('confirm_below_cost', accepted.data)

    def test_missing_or_unknown_category(self):
        self.client.force_login(self.admin)
        data = self.payload()
        del data['category_id']

        missing = self.client.post('/api/inventory/', data, format='json')
        unknown = self.client.post('/api/inventory/', self.payload(category_id=9999), format='json')

        self.assertEqual(missing.data['category_id'], ['Please select a category'])
        self.assertEqual(unknown.data['category_id'], ['Please select a category'])

    def test_negative_quantity_rejected(self):
        self.client.force_login(self.admin)
        response = self.client.post('/api/inventory/', self.payload(quantity=-1), format='json')
        self.assertEqual(response.status_code, 400)

    def test_partial_update_checks_stored_cost(self):
        self.client.force_login(self.admin)

        response = self.client.patch(f'/api/inventory/{self.shirt.id}/', {'price': '5.00'}, format='json')

        self.assertEqual(response.status_code, 400)
        self.shirt.refresh_from_db()
        self.assertEqual(self.shirt.price, Decimal('25.00'))

    def test_admin_deletes_sold_item_and_history_survives(self):
        order = Order.objects.create(total_amount=Decimal('25.00'), payment_method='cash')
        OrderItem.objects.create(
            order=order, inventory_id=self.shirt.id, quantity=1,
            price=Decimal('25.00'), subtotal=Decimal('25.00')
        )
        self.client.force_login(self.admin)

        response = self.client.delete(f'/api/inventory/{self.shirt.id}/')

        self.assertEqual(response.status_code, 204)
        self.assertFalse(InventoryItem.objects.filter(pk=self.shirt.pk).exists())
        self.assertEqual(order.items.get().inventory_id, self.shirt.id)

    def test_operator_can_read_but_not_write(self):
        self.client.force_login(self.operator)

        self.assertEqual(self.client.get('/api/inventory/').status_code, 200)
        self.assertEqual(self.client.get(f'/api/inventory/{self.shirt.id}/').status_code, 200)
        self.assertEqual(self.client.post('/api/inventory/', self.payload(), format='json').status_code, 403)
        self.assertEqual(
            self.client.patch(f'/api/inventory/{self.shirt.id}/', {'quantity': 1}, format='json').status_code,
            403
        )
        self.assertEqual(self.client.delete(f'/api/inventory/{self.shirt.id}/').status_code, 403)

    def test_list_filters(self):
        InventoryItem.objects.create(
            name='Sticker Pack', brand='Inkwell', category=Category.objects.create(name='Paper'),
            price=Decimal('3.00'), quantity=100
        )
        self.client.force_login(self.operator)

        by_term = self.client.get('/api/inventory/', {'q': 'stage'})
        by_category = self.client.get('/api/inventory/', {'category_id': self.category.id})
        everything = self.client.get('/api/inventory/', {'category_id': 'all'})

        self.assertEqual([row['id'] for row in by_term.data], [self.shirt.id])
        self.assertEqual([row['id'] for row in by_category.data], [self.shirt.id])
        self.assertEqual(len(everything.data), 2)

    def test_available_list_for_pos(self):
        InventoryItem.objects.create(
            name='Sold Out Scarf', brand='Stagewear', category=self.category,
            price=Decimal('12.00'), quantity=0
        )
        self.client.force_login(self.operator)

        response = self.client.get('/api/inventory/available/')

        self.assertEqual(response.status_code, 200)
        self.assertEqual([row['name'] for row in response.data], ['Tour T-Shirt'])

    def test_categories_report_item_count(self):
        self.client.force_login(self.operator)

        response = self.client.get('/api/categories/')

        self.assertEqual(response.data[0]['name'], 'Apparel')
        self.assertEqual(response.data[0]['item_count'], 1)
