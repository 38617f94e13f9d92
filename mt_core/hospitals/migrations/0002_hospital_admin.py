from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    dependencies = [
        ("hospitals", "0001_initial"),
        ("iam", "0001_initial"),
    ]

    operations = [
        migrations.AddField(
            model_name="hospital",
            name="admin",
            field=models.ForeignKey(
                blank=True,
                null=True,
                on_delete=django.db.models.deletion.SET_NULL,
                related_name="administered_hospitals",
                to="iam.profile",
            ),
        ),
        migrations.AddIndex(
            model_name="hospital",
            index=models.Index(fields=["admin"], name="hospital_admin_idx"),
        ),
    ]
