from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="OrderModel",
            fields=[
                ("order_id", models.CharField(editable=False, max_length=64, primary_key=True, serialize=False)),
                (
                    "status",
                    models.CharField(
                        choices=[("PENDING", "Pending"), ("SUCCESS", "Success"), ("FAILED", "Failed")],
                        db_index=True,
                        default="PENDING",
                        max_length=16,
                    ),
                ),
                ("amount_minor", models.PositiveBigIntegerField()),
                ("currency", models.CharField(default="INR", max_length=3)),
                ("gateway", models.CharField(blank=True, default="", max_length=16)),
                ("customer_name", models.CharField(max_length=200)),
                ("customer_phone", models.CharField(max_length=20)),
                ("customer_email", models.EmailField(blank=True, max_length=254, null=True)),
                ("customer_address", models.TextField(blank=True, null=True)),
                ("service", models.CharField(blank=True, max_length=200, null=True)),
                ("transaction_id", models.CharField(blank=True, max_length=128, null=True)),
                ("payment_method", models.CharField(blank=True, max_length=64, null=True)),
                ("failure_reason", models.CharField(blank=True, max_length=64, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "orders",
                "ordering": ["-created_at"],
            },
        ),
    ]
