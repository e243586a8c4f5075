from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('locations', '0001_initial'),
        ('groups', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Client',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('name', models.CharField(max_length=100)),
                ('surname', models.CharField(db_index=True, max_length=100)),
                ('dni', models.CharField(help_text='Digits only', max_length=8)),
                ('phone', models.CharField(max_length=30)),
                ('birth_date', models.DateField()),
                ('payment_date', models.DateField(blank=True, help_text='Scheduled recurring payment date', null=True)),
                ('last_payment', models.DateTimeField(blank=True, null=True)),
                ('method_of_payment', models.CharField(choices=[('cash', 'Efectivo'), ('transfer', 'Transferencia')], default='cash', max_length=10)),
                ('address', models.CharField(max_length=255)),
                ('is_active', models.BooleanField(db_index=True, default=True)),
                ('payment_status', models.CharField(choices=[('green', 'Al día'), ('yellow', 'Vence pronto'), ('red', 'Vencido')], db_index=True, default='red', max_length=6)),
            ],
            options={
                'ordering': ['surname', 'name'],
            },
        ),
        migrations.CreateModel(
            name='ClientLocation',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('client', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='location_links', to='clients.client')),
                ('location', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='client_links', to='locations.location')),
            ],
        ),
        migrations.CreateModel(
            name='ClientGroup',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('client', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='group_links', to='clients.client')),
                ('group', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='client_links', to='groups.group')),
            ],
        ),
        migrations.AddField(
            model_name='client',
            name='locations',
            field=models.ManyToManyField(blank=True, related_name='clients', through='clients.ClientLocation', to='locations.location'),
        ),
        migrations.AddField(
            model_name='client',
            name='groups',
            field=models.ManyToManyField(blank=True, related_name='clients', through='clients.ClientGroup', to='groups.group'),
        ),
        migrations.AddConstraint(
            model_name='client',
            constraint=models.UniqueConstraint(fields=('dni',), name='unique_client_dni'),
        ),
        migrations.AddConstraint(
            model_name='clientlocation',
            constraint=models.UniqueConstraint(fields=('client', 'location'), name='unique_client_location'),
        ),
        migrations.AddConstraint(
            model_name='clientgroup',
            constraint=models.UniqueConstraint(fields=('client', 'group'), name='unique_client_group'),
        ),
    ]
