"""
Lead model: one CSV row after normalization, plus the upload that produced it.
"""
import uuid
from dataclasses import dataclass, field, fields
from datetime import datetime
from typing import Dict


@dataclass(frozen=True)
class LeadRecord:
    """A single lead. Every retained record carries a parsed_date."""
    parsed_date: datetime
    status: str = ''
    lost_reason: str = ''
    assignee_name: str = ''
    assignee_email: str = ''
    name: str = ''
    phone: str = ''
    email: str = ''
    city: str = ''
    facebook_ad: str = ''
    facebook_campaign: str = ''
    facebook_lead_id: str = ''
    student_preference: str = ''
    created_on: str = ''
    modified_on: str = ''
    batch_names: str = ''

    @classmethod
    def from_row(cls, row: Dict[str, str], parsed_date: datetime) -> 'LeadRecord':
        """Build a record from a field-name → raw value dict; unknown keys are ignored."""
        known = {f.name for f in fields(cls)} - {'parsed_date'}
        values = {k: (v or '').strip() for k, v in row.items() if k in known}
        return cls(parsed_date=parsed_date, **values)

    def to_dict(self) -> Dict:
        return {
            'status': self.status,
            'lost_reason': self.lost_reason,
            'assignee_name': self.assignee_name,
            'assignee_email': self.assignee_email,
            'name': self.name,
            'phone': self.phone,
            'email': self.email,
            'city': self.city,
            'facebook_ad': self.facebook_ad,
            'facebook_campaign': self.facebook_campaign,
            'facebook_lead_id': self.facebook_lead_id,
            'student_preference': self.student_preference,
            'created_on': self.created_on,
            'parsed_date': self.parsed_date.isoformat(),
            'modified_on': self.modified_on,
            'batch_names': self.batch_names,
        }


@dataclass(frozen=True)
class UploadInfo:
    """Metadata about the ingestion that produced a dataset snapshot."""
    filename: str
    rows_read: int
    rows_kept: int
    uploaded_by: str = ''
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    uploaded_at: str = field(default_factory=lambda: datetime.now().isoformat())

    @property
    def rows_dropped(self) -> int:
        return self.rows_read - self.rows_kept

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'filename': self.filename,
            'uploaded_by': self.uploaded_by,
            'uploaded_at': self.uploaded_at,
            'rows_read': self.rows_read,
            'rows_kept': self.rows_kept,
            'rows_dropped': self.rows_dropped,
        }
