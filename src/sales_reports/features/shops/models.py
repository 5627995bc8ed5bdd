"""Data model for installed shops and their Admin API credential."""

from tortoise import fields
from ...common.models import TimestampMixin, generate_ksuid


class Shop(TimestampMixin):
    id = fields.IntField(primary_key=True)
    public_id = fields.CharField(
        max_length=27, unique=True, default=generate_ksuid, db_index=True
    )
    shop_domain = fields.CharField(
        max_length=255, unique=True, db_index=True, description="e.g. example.myshopify.com"
    )
    # Offline Admin API token stored at install time; null once uninstalled
    access_token = fields.CharField(max_length=255, null=True)

    report_jobs: fields.ReverseRelation["ReportJob"]

    def __str__(self):
        return self.shop_domain

    class Meta:
        table = "shops"
