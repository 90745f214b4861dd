from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("ledger_core", "0001_initial"),
    ]

    operations = [
        migrations.AddConstraint(
            model_name="journalentry",
            constraint=models.UniqueConstraint(
                condition=models.Q(entry_type="auto", is_active=True),
                fields=("quarry", "source_type", "source_id"),
                name="uq_je_auto_source",
                violation_error_message="This transaction already has a journal entry.",
            ),
        ),
    ]
