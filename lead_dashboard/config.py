"""
Centralized configuration: env vars, stage keywords, placeholder values, view limits.
"""
import os


# ── Logging ──────────────────────────────────────────────────────────────────
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
LOG_FORMAT = os.getenv('LOG_FORMAT', 'text')

# ── Flask ────────────────────────────────────────────────────────────────────
SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-change-me')
MAX_UPLOAD_MB = int(os.getenv('MAX_UPLOAD_MB', '16'))

# Sessions holding a dataset; the least recently uploaded one is evicted past this
MAX_DATASETS = int(os.getenv('MAX_DATASETS', '50'))

# ── Auth ─────────────────────────────────────────────────────────────────────
DASHBOARD_PASSWORD = os.getenv('DASHBOARD_PASSWORD')

# ── View defaults ────────────────────────────────────────────────────────────
DEFAULT_WINDOW = os.getenv('DEFAULT_WINDOW', 'all')
DEFAULT_GRANULARITY = os.getenv('DEFAULT_GRANULARITY', 'monthly')
LEAD_LIST_LIMIT = int(os.getenv('LEAD_LIST_LIMIT', '100'))

# ── CSV columns: lower-cased header → LeadRecord field ─ ──────────────────────
CSV_COLUMNS = {
    'status': 'status',
    'lost reason': 'lost_reason',
    'assignee name': 'assignee_name',
    'assignee email': 'assignee_email',
    'name': 'name',
    'phone': 'phone',
    'email': 'email',
    'city': 'city',
    'fb campaign': 'facebook_campaign',
    'fb lead id': 'facebook_lead_id',
    'facebook ad': 'facebook_ad',
    'student preference': 'student_preference',
    'created on': 'created_on',
    'modified on': 'modified_on',
    'batch names': 'batch_names',
}

# ── Pipeline stage keywords (substring, case-insensitive) ────────────────────
STAGE_KEYWORDS = {
    'fresh': 'fresh',
    'lost': 'lost',
    'docs_received': 'docs received',
    'application_filed': 'application filed',
    'deposit': 'deposit',
    'registered': 'registered to university',
    'enrolled': 'enrolled',
}

# Stages that count a lead as converted
CONVERTED_STAGES = ('registered', 'enrolled')

# ── Placeholder values treated as "absent" ───────────────────────────────────
UNASSIGNED = 'Unassigned'
UNKNOWN_STATUS = 'Unknown'
MISSING_VALUES = {'', 'na', 'n/a', 'unknown', 'null', 'none'}
PREFERENCE_PLACEHOLDERS = {'', 'other', 'other_program', 'na', 'unknown'}

# Substring → display category for student preferences (checked in order)
PREFERENCE_CATEGORIES = [
    ('engineering', 'Engineering Programs'),
    ('management', 'Management Programs'),
    ('healthcare', 'Healthcare Programs'),
    ('business', 'Business Programs'),
    ('computer', 'Computer Science/IT'),
]

# ── Top-N per view ───────────────────────────────────────────────────────────
TOP_N = {
    'status': 8,
    'assignee': 10,
    'city': 10,
    'ad': 6,
    'campaign': 6,
    'loss_reason': 6,
    'preference': 7,
    'lost_by_assignee': 5,
}
