from django.contrib.postgres.operations import BtreeGistExtension
from django.db import migrations


class Migration(migrations.Migration):
    """
    btree_gist lets scalar columns (bed_id, patient_id) take part in the
    gist EXCLUDE constraints next to tstzrange overlap.
    """

    initial = True

    dependencies = []

    operations = [
        BtreeGistExtension(),
    ]
