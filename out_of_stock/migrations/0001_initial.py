import uuid

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='OutOfStockRequest',
            fields=[
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True, verbose_name='created at')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='updated at')),
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_by', models.CharField(blank=True, default='', max_length=64, verbose_name='created by')),
                ('updated_by', models.CharField(blank=True, default='', max_length=64, verbose_name='updated by')),
                ('customer_ref', models.CharField(db_index=True, max_length=64, verbose_name='customer reference')),
                ('product_ref', models.CharField(db_index=True, max_length=64, verbose_name='product reference')),
                ('variant_ref', models.CharField(blank=True, default='', max_length=64, verbose_name='variant reference')),
                ('customer_name', models.CharField(blank=True, default='', max_length=200, verbose_name='customer name')),
                ('product_name', models.CharField(blank=True, default='', max_length=200, verbose_name='product name')),
                ('product_category', models.CharField(blank=True, default='', max_length=120, verbose_name='product category')),
                ('variant_label', models.CharField(blank=True, default='', help_text='Size / color as displayed, e.g. "XL-red"', max_length=120, verbose_name='variant label')),
                ('original_quantity', models.PositiveIntegerField(verbose_name='original quantity')),
                ('requested_quantity', models.PositiveIntegerField(help_text='Part of the original request not yet returned', verbose_name='open quantity')),
                ('returned_quantity', models.PositiveIntegerField(default=0, verbose_name='returned quantity')),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('completed', 'Completed'), ('returned', 'Returned')], db_index=True, default='pending', max_length=12, verbose_name='status')),
                ('notes', models.TextField(blank=True, default='', verbose_name='notes')),
                ('return_notes', models.TextField(blank=True, default='', verbose_name='return notes')),
                ('completed_at', models.DateTimeField(blank=True, null=True, verbose_name='completed at')),
                ('returned_at', models.DateTimeField(blank=True, null=True, verbose_name='returned at')),
            ],
            options={
                'verbose_name': 'out-of-stock request',
                'verbose_name_plural': 'out-of-stock requests',
                'ordering': ['-created_at', 'id'],
                'indexes': [
                    models.Index(fields=['status', 'created_at'], name='oos_status_created_idx'),
                    models.Index(fields=['customer_ref', 'status'], name='oos_customer_status_idx'),
                    models.Index(fields=['product_ref', 'status'], name='oos_product_status_idx'),
                ],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('original_quantity__gte', 1)), name='oos_original_quantity_positive'),
                    models.CheckConstraint(condition=models.Q(('returned_quantity__lte', models.F('original_quantity'))), name='oos_returned_lte_original'),
                    models.CheckConstraint(condition=models.Q(('original_quantity', models.F('requested_quantity') + models.F('returned_quantity'))), name='oos_quantity_conservation'),
                ],
            },
        ),
    ]
