from decimal import Decimal
from django.db import migrations, models
import django.db.models.deletion
import uuid


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('events', '0001_initial'),
        ('users', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='MerchandiseOrder',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('participant_type', models.CharField(max_length=10, verbose_name='participant type at order time')),
                ('quantity', models.PositiveIntegerField(default=1, verbose_name='quantity')),
                ('revenue_amount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), help_text='Computed when the order is placed, never changed afterwards', max_digits=10, verbose_name='order total')),
                ('payment_proof_url', models.URLField(blank=True, max_length=500, null=True, verbose_name='payment proof')),
                ('approval_status', models.CharField(choices=[('pending', 'Pending'), ('approved', 'Approved'), ('rejected', 'Rejected')], default='pending', max_length=10, verbose_name='approval status')),
                ('resolved_at', models.DateTimeField(blank=True, null=True, verbose_name='resolved at')),
                ('ticket_id', models.CharField(blank=True, max_length=64, null=True, unique=True, verbose_name='ticket ID')),
                ('qr_code_url', models.TextField(blank=True, null=True, verbose_name='QR code (data URL)')),
                ('attendance_marked', models.BooleanField(default=False, verbose_name='attendance marked')),
                ('attendance_timestamp', models.DateTimeField(blank=True, null=True, verbose_name='attendance timestamp')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('approved_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='resolved_orders', to='users.organizer', verbose_name='resolved by')),
                ('event', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='merchandise_orders', to='events.event')),
                ('participant', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='merchandise_orders', to='users.participant')),
            ],
            options={
                'verbose_name': 'merchandise order',
                'verbose_name_plural': 'merchandise orders',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='MerchandiseOrderItem',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('size', models.CharField(blank=True, max_length=20, verbose_name='size')),
                ('color', models.CharField(blank=True, max_length=50, verbose_name='color')),
                ('quantity', models.PositiveIntegerField(default=1, verbose_name='quantity')),
                ('unit_price', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10, verbose_name='unit price')),
                ('order', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='items', to='shop.merchandiseorder')),
                ('variant', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='order_items', to='events.merchandisevariant')),
            ],
            options={
                'verbose_name': 'merchandise order item',
                'verbose_name_plural': 'merchandise order items',
            },
        ),
    ]
