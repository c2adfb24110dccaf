from decimal import Decimal
import django.core.validators
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone
import uuid


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('users', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Event',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=200, verbose_name='event name')),
                ('description', models.TextField(blank=True, verbose_name='event description')),
                ('event_type', models.CharField(choices=[('normal', 'Normal'), ('merchandise', 'Merchandise')], default='normal', max_length=20, verbose_name='event type')),
                ('eligibility', models.CharField(choices=[('ALL', 'Everyone'), ('IIIT', 'IIIT only'), ('EXTERNAL', 'External only')], default='ALL', max_length=10, verbose_name='eligibility')),
                ('status', models.CharField(choices=[('draft', 'Draft'), ('published', 'Published'), ('ongoing', 'Ongoing'), ('completed', 'Completed'), ('closed', 'Closed')], default='draft', max_length=20, verbose_name='event status')),
                ('registration_deadline', models.DateTimeField(blank=True, null=True, verbose_name='registration deadline')),
                ('start_date', models.DateTimeField(blank=True, null=True, verbose_name='event start date')),
                ('end_date', models.DateTimeField(blank=True, null=True, verbose_name='event end date')),
                ('registration_limit', models.PositiveIntegerField(default=0, help_text='0 means unlimited', verbose_name='registration limit')),
                ('registration_fee', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10, validators=[django.core.validators.MinValueValidator(0)], verbose_name='registration fee')),
                ('purchase_limit', models.PositiveIntegerField(default=1, help_text='Maximum number of merchandise orders per participant', verbose_name='purchase limit')),
                ('tags', models.JSONField(blank=True, default=list, verbose_name='tags')),
                ('form_schema', models.JSONField(blank=True, default=list, help_text='List of {field_type, label, required, options}', verbose_name='registration form')),
                ('form_locked', models.BooleanField(default=False, help_text='Set on the first registration, the form can no longer be edited', verbose_name='form locked')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('organizer', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='events', to='users.organizer', verbose_name='organizer')),
            ],
            options={
                'verbose_name': 'event',
                'verbose_name_plural': 'events',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='EventAnalytics',
            fields=[
                ('event', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, primary_key=True, related_name='analytics', serialize=False, to='events.event')),
                ('total_registrations', models.IntegerField(default=0)),
                ('iiit_registrations', models.IntegerField(default=0)),
                ('external_registrations', models.IntegerField(default=0)),
                ('merchandise_sales', models.IntegerField(default=0)),
                ('revenue', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('attendance_count', models.IntegerField(default=0)),
                ('cancellation_count', models.IntegerField(default=0)),
                ('rejection_count', models.IntegerField(default=0)),
                ('page_views', models.IntegerField(default=0)),
            ],
            options={
                'verbose_name': 'event analytics',
                'verbose_name_plural': 'event analytics',
            },
        ),
        migrations.CreateModel(
            name='MerchandiseVariant',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('product', models.CharField(max_length=200, verbose_name='product')),
                ('size', models.CharField(blank=True, max_length=20, verbose_name='size')),
                ('color', models.CharField(blank=True, max_length=50, verbose_name='color')),
                ('price', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10, validators=[django.core.validators.MinValueValidator(0)], verbose_name='price')),
                ('stock', models.PositiveIntegerField(default=0, verbose_name='stock')),
                ('sold', models.PositiveIntegerField(default=0, verbose_name='sold')),
                ('event', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='variants', to='events.event')),
            ],
            options={
                'verbose_name': 'merchandise variant',
                'verbose_name_plural': 'merchandise variants',
                'ordering': ['product', 'size', 'color'],
            },
        ),
        migrations.CreateModel(
            name='EventAnalyticsHistory',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('date', models.DateField(verbose_name='snapshot date')),
                ('registrations', models.IntegerField(default=0)),
                ('revenue', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('attendance', models.IntegerField(default=0)),
                ('cancellations', models.IntegerField(default=0)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('event', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='analytics_history', to='events.event')),
            ],
            options={
                'verbose_name': 'event analytics snapshot',
                'verbose_name_plural': 'event analytics snapshots',
                'ordering': ['-date'],
                'constraints': [models.UniqueConstraint(fields=('event', 'date'), name='unique_event_analytics_per_day')],
            },
        ),
        migrations.CreateModel(
            name='Registration',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('participant_type', models.CharField(max_length=10, verbose_name='participant type at registration')),
                ('ticket_id', models.CharField(max_length=64, unique=True, verbose_name='ticket ID')),
                ('qr_code_url', models.TextField(blank=True, verbose_name='QR code (data URL)')),
                ('form_responses', models.JSONField(blank=True, default=dict, verbose_name='form responses')),
                ('status', models.CharField(choices=[('registered', 'Registered'), ('cancelled', 'Cancelled'), ('rejected', 'Rejected'), ('completed', 'Completed')], default='registered', max_length=20, verbose_name='status')),
                ('attendance_marked', models.BooleanField(default=False, verbose_name='attendance marked')),
                ('attendance_timestamp', models.DateTimeField(blank=True, null=True, verbose_name='attendance timestamp')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('event', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='registrations', to='events.event')),
                ('participant', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='registrations', to='users.participant')),
            ],
            options={
                'verbose_name': 'registration',
                'verbose_name_plural': 'registrations',
                'ordering': ['-created_at'],
                'constraints': [models.UniqueConstraint(fields=('event', 'participant'), name='unique_event_participant_registration')],
            },
        ),
        migrations.CreateModel(
            name='AttendanceLog',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('ticket_id', models.CharField(db_index=True, max_length=64, verbose_name='ticket ID')),
                ('scanned_at', models.DateTimeField(default=django.utils.timezone.now, verbose_name='scanned at')),
                ('manual_override', models.BooleanField(default=False, verbose_name='manual override')),
                ('override_reason', models.TextField(blank=True, verbose_name='override reason')),
                ('event', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='attendance_logs', to='events.event')),
                ('participant', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='attendance_logs', to='users.participant')),
                ('scanned_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='attendance_scans', to='users.organizer')),
            ],
            options={
                'verbose_name': 'attendance log',
                'verbose_name_plural': 'attendance logs',
                'ordering': ['-scanned_at'],
            },
        ),
        migrations.CreateModel(
            name='EmailLog',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('to', models.EmailField(max_length=254, verbose_name='recipient')),
                ('subject', models.CharField(blank=True, max_length=255, verbose_name='subject')),
                ('email_type', models.CharField(choices=[('ticket', 'Ticket'), ('registration', 'Registration'), ('merchandise_confirmation', 'Merchandise confirmation')], max_length=40, verbose_name='type')),
                ('status', models.CharField(choices=[('sent', 'Sent'), ('failed', 'Failed')], default='sent', max_length=10, verbose_name='status')),
                ('provider', models.CharField(blank=True, max_length=50, verbose_name='provider')),
                ('metadata', models.JSONField(blank=True, default=dict, verbose_name='metadata')),
                ('error', models.TextField(blank=True, verbose_name='error')),
                ('sent_at', models.DateTimeField(default=django.utils.timezone.now, verbose_name='sent at')),
            ],
            options={
                'verbose_name': 'email log',
                'verbose_name_plural': 'email logs',
                'ordering': ['-sent_at'],
            },
        ),
    ]
