import enum

from tortoise import fields
from ...common.models import TimestampMixin, generate_ksuid


class JobStatus(str, enum.Enum):
    QUEUED = "QUEUED"
    RUNNING = "RUNNING"
    COMPLETE = "COMPLETE"
    FAILED = "FAILED"


class ReportJob(TimestampMixin):
    id = fields.IntField(primary_key=True)
    public_id = fields.CharField(
        max_length=27, unique=True, default=generate_ksuid, db_index=True
    )

    shop: fields.ForeignKeyRelation["Shop"] = fields.ForeignKeyField(
        "models.Shop", related_name="report_jobs", on_delete=fields.CASCADE
    )

    # Only moves QUEUED -> RUNNING -> COMPLETE | FAILED, see service.mark_*
    status = fields.CharEnumField(JobStatus, max_length=16, default=JobStatus.QUEUED)
    params_json = fields.TextField(description="Serialized ReportJobParams")

    csv_data = fields.BinaryField(null=True)
    xlsx_data = fields.BinaryField(null=True)
    pdf_data = fields.BinaryField(null=True)
    error_message = fields.TextField(null=True)

    def __str__(self):
        return f"ReportJob {self.public_id} - Status: {self.status.value}"

    class Meta:
        table = "report_jobs"
        ordering = ["-created_at"]
