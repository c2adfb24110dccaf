from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ('users', '0001_initial'),
        ('events', '0001_initial'),
    ]

    operations = [
        migrations.AddField(
            model_name='participant',
            name='registered_events',
            field=models.ManyToManyField(blank=True, related_name='registered_participants', to='events.event', verbose_name='registered events'),
        ),
    ]
