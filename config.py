import os
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Tuple

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name, default='false'):
    return os.getenv(name, default).lower() in ('true', '1', 'yes')


def _split(value) -> Tuple[str, ...]:
    if not value:
        return ()
    if isinstance(value, (list, tuple)):
        return tuple(v for v in value if v)
    return tuple(part.strip() for part in str(value).split(',') if part.strip())


class Config:
    # Environment
    FLASK_ENV = os.getenv('FLASK_ENV', 'development')

    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

    # Mail settings (EMAIL_* names are shared with the agent portal deployment)
    MAIL_SERVER = os.getenv('EMAIL_HOST', 'smtp.gmail.com')
    MAIL_PORT = int(os.getenv('EMAIL_PORT', 587))
    MAIL_USE_SSL = _env_bool('EMAIL_SECURE')
    MAIL_USE_TLS = not MAIL_USE_SSL
    MAIL_USERNAME = os.getenv('EMAIL_USER')
    MAIL_PASSWORD = os.getenv('EMAIL_PASSWORD')
    MAIL_DEFAULT_SENDER = (
        os.getenv('EMAIL_SENDER_NAME', 'PA Real Estate Support Services'),
        os.getenv('EMAIL_FROM') or os.getenv('EMAIL_USER') or 'noreply@parealestatesupport.com'
    )
    MAIL_MAX_EMAILS = None
    MAIL_ASCII_ATTACHMENTS = False
    EMAIL_RECIPIENT = os.getenv('EMAIL_RECIPIENT', 'debbie@parealestatesupport.com')

    # PDF template
    TEMPLATE_URL = os.getenv(
        'TEMPLATE_URL',
        'https://rkqoexexgrmeevzffouq.supabase.co/storage/v1/object/public/transaction-documents//mergedTC.pdf'
    )
    TEMPLATE_FALLBACK_PATHS = _split(os.getenv('TEMPLATE_FALLBACK_PATHS', 'public/mergedTC.pdf,../public/mergedTC.pdf'))
    FIELD_MAP_SLUG = os.getenv('FIELD_MAP_SLUG', 'transaction-summary')

    # Delivery endpoints (served by this app unless pointed elsewhere). Without
    # PUBLIC_BASE_URL they stay relative and resolve against the incoming request's host.
    PUBLIC_BASE_URL = (os.getenv('PUBLIC_BASE_URL') or '').rstrip('/')
    STORAGE_UPLOAD_ENDPOINT = os.getenv('STORAGE_UPLOAD_ENDPOINT', f"{PUBLIC_BASE_URL}/api/supabase-pdf-upload")
    RECORD_UPDATE_ENDPOINT = os.getenv('RECORD_UPDATE_ENDPOINT', f"{PUBLIC_BASE_URL}/api/update-airtable-attachment")
    HTTP_TIMEOUT = float(os.getenv('HTTP_TIMEOUT', 30))

    # Airtable configuration
    AIRTABLE_API_KEY = os.getenv('AIRTABLE_API_KEY') or os.getenv('VITE_AIRTABLE_API_KEY')
    AIRTABLE_BASE_ID = os.getenv('AIRTABLE_BASE_ID') or os.getenv('VITE_AIRTABLE_BASE_ID')
    AIRTABLE_TRANSACTIONS_TABLE = os.getenv('AIRTABLE_TRANSACTIONS_TABLE', 'Transactions')
    AIRTABLE_CLIENTS_TABLE = os.getenv('AIRTABLE_CLIENTS_TABLE_ID') or os.getenv('AIRTABLE_CLIENTS_TABLE', 'Clients')
    AIRTABLE_ATTACHMENT_FIELD_ID = os.getenv('AIRTABLE_ATTACHMENT_FIELD_ID', 'fldhrYdoFwtNfzdFY')
    AIRTABLE_UPDATE_ATTEMPTS = int(os.getenv('AIRTABLE_UPDATE_ATTEMPTS', 3))
    AIRTABLE_RETRY_DELAY = float(os.getenv('AIRTABLE_RETRY_DELAY', 1.0))

    # Supabase configuration
    SUPABASE_URL = os.getenv('SUPABASE_URL')
    SUPABASE_KEY = os.getenv('SUPABASE_KEY')
    SUPABASE_BUCKET = os.getenv('SUPABASE_BUCKET', 'transaction-documents')


@dataclass(frozen=True)
class SmtpSettings:
    host: str = 'smtp.gmail.com'
    port: int = 587
    secure: bool = False
    user: Optional[str] = None
    password: Optional[str] = None

    @property
    def is_configured(self) -> bool:
        return bool(self.user and self.password)


@dataclass(frozen=True)
class PipelineConfig:
    """Everything the delivery pipeline needs, resolved once per app."""
    template_url: Optional[str]
    local_fallback_paths: Tuple[str, ...]
    smtp: SmtpSettings
    email_sender: Any
    email_recipients: Tuple[str, ...]
    storage_endpoint: Optional[str]
    record_store_endpoint: Optional[str]
    record_store_api_key: Optional[str]
    record_store_base_id: Optional[str]
    transactions_table: str = 'Transactions'
    attachment_field_id: str = 'fldhrYdoFwtNfzdFY'
    field_map_slug: str = 'transaction-summary'
    http_timeout: float = 30.0

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any]) -> 'PipelineConfig':
        """Build from a Flask config (or any mapping using the Config keys)."""
        smtp = SmtpSettings(
            host=config.get('MAIL_SERVER') or 'smtp.gmail.com',
            port=int(config.get('MAIL_PORT') or 587),
            secure=bool(config.get('MAIL_USE_SSL')),
            user=config.get('MAIL_USERNAME'),
            password=config.get('MAIL_PASSWORD'),
        )
        sender = config.get('MAIL_DEFAULT_SENDER')
        if isinstance(sender, list):
            sender = tuple(sender)

        return cls(
            template_url=config.get('TEMPLATE_URL'),
            local_fallback_paths=_split(config.get('TEMPLATE_FALLBACK_PATHS')),
            smtp=smtp,
            email_sender=sender,
            email_recipients=_split(config.get('EMAIL_RECIPIENT')),
            storage_endpoint=config.get('STORAGE_UPLOAD_ENDPOINT'),
            record_store_endpoint=config.get('RECORD_UPDATE_ENDPOINT'),
            record_store_api_key=config.get('AIRTABLE_API_KEY'),
            record_store_base_id=config.get('AIRTABLE_BASE_ID'),
            transactions_table=config.get('AIRTABLE_TRANSACTIONS_TABLE') or 'Transactions',
            attachment_field_id=config.get('AIRTABLE_ATTACHMENT_FIELD_ID') or 'fldhrYdoFwtNfzdFY',
            field_map_slug=config.get('FIELD_MAP_SLUG') or 'transaction-summary',
            http_timeout=float(config.get('HTTP_TIMEOUT') or 30),
        )
