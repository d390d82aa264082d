"""
Delivery Pipeline

Renders a transaction summary and hands it to each destination in turn:
email, cloud storage, the Airtable record (through the update endpoint)
and, when either of those fails, a direct Airtable attachment.

Rendering failures are fatal and propagate. A failed destination is
recorded in the report and the remaining steps still run.
"""

import logging
import smtplib
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional, Sequence

from flask_mail import BadHeaderError

from config import PipelineConfig
from services.airtable_service import AirtableService
from services.documents.exceptions import DeliveryError
from services.documents.loader import FieldMapLoader
from services.documents.normalizer import normalize_record
from services.documents.renderer import DocumentRenderer
from services.documents.template_source import TemplateLoader
from services.documents.types import NormalizedRecord, RenderedDocument
from services.storage_client import StorageAPIClient
from services.transaction_email import send_transaction_email

logger = logging.getLogger(__name__)

# Destination names
DIRECT = 'direct'
EMAIL = 'email'
STORAGE_UPLOAD = 'storage_upload'
RECORD_UPDATE = 'record_update'
FALLBACK_ATTACH = 'fallback_attach'


@dataclass
class DeliveryResult:
    """Outcome of one destination."""
    destination: str
    success: bool
    attempted: bool = True
    detail: Optional[str] = None
    url: Optional[str] = None
    record_updated: bool = False

    @classmethod
    def skipped(cls, destination: str, reason: str, success: bool = False) -> 'DeliveryResult':
        return cls(destination=destination, success=success, attempted=False, detail=reason)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'destination': self.destination,
            'success': self.success,
            'attempted': self.attempted,
        }
        if self.detail:
            data['detail'] = self.detail
        if self.url:
            data['url'] = self.url
        return data


@dataclass
class DeliveryContext:
    """State shared by the steps of one run."""
    record: NormalizedRecord
    document: RenderedDocument
    today: Optional[date] = None
    # Resolves relative endpoint URLs, usually the request host
    base_url: Optional[str] = None
    results: Dict[str, DeliveryResult] = field(default_factory=dict)

    def result(self, destination: str) -> Optional[DeliveryResult]:
        return self.results.get(destination)

    def succeeded(self, destination: str) -> bool:
        result = self.results.get(destination)
        return bool(result and result.success)


@dataclass
class DeliveryReport:
    """All results of one run plus the aggregate flags the portal reads."""
    document: RenderedDocument
    results: List[DeliveryResult] = field(default_factory=list)

    def get(self, destination: str) -> Optional[DeliveryResult]:
        return next((r for r in self.results if r.destination == destination), None)

    def _ok(self, destination: str) -> bool:
        result = self.get(destination)
        return bool(result and result.success)

    @property
    def direct(self) -> bool:
        return self._ok(DIRECT)

    @property
    def email_sent(self) -> bool:
        return self._ok(EMAIL)

    @property
    def attachment_success(self) -> bool:
        uploaded_and_recorded = self._ok(STORAGE_UPLOAD) and self._ok(RECORD_UPDATE)
        return uploaded_and_recorded or self._ok(FALLBACK_ATTACH)

    @property
    def pdf_url(self) -> Optional[str]:
        upload = self.get(STORAGE_UPLOAD)
        if upload and upload.success:
            return upload.url
        return None

    def to_dict(self) -> Dict[str, Any]:
        if self.direct:
            return {
                'success': True,
                'message': 'PDF generated successfully',
                'pdfBase64': self.document.base64,
                'filename': self.document.filename,
            }

        if self.email_sent:
            message = 'PDF generated and emailed successfully'
        else:
            message = 'PDF generated successfully, but email delivery failed'

        return {
            'success': True,
            'message': message,
            'emailSent': self.email_sent,
            'attachmentSuccess': self.attachment_success,
            'pdfUrl': self.pdf_url,
            'filename': self.document.filename,
            'deliveries': [r.to_dict() for r in self.results],
        }


class DeliveryStep:
    """
    One destination. Subclasses implement deliver(); run() turns the
    errors listed in `errors` into a failed result.
    """
    destination = ''
    errors: tuple = (DeliveryError,)

    def run(self, context: DeliveryContext) -> DeliveryResult:
        try:
            result = self.deliver(context)
        except self.errors as e:
            logger.warning(f"Delivery to {self.destination} failed: {e}")
            result = DeliveryResult(destination=self.destination, success=False, detail=str(e))

        if result.attempted:
            logger.info(f"Delivery to {self.destination}: {'ok' if result.success else 'failed'}")
        else:
            logger.debug(f"Delivery to {self.destination} skipped: {result.detail}")
        return result

    def deliver(self, context: DeliveryContext) -> DeliveryResult:
        raise NotImplementedError


class EmailStep(DeliveryStep):
    destination = EMAIL
    # Flask-Mail asserts on a missing sender or recipient
    errors = (smtplib.SMTPException, OSError, RuntimeError, ValueError, AssertionError, BadHeaderError)

    def __init__(self, mail, sender, recipients: Sequence[str]):
        self.mail = mail
        self.sender = sender
        self.recipients = list(recipients or [])

    def deliver(self, context: DeliveryContext) -> DeliveryResult:
        send_transaction_email(
            self.mail,
            context.record,
            context.document,
            sender=self.sender,
            recipients=self.recipients,
            today=context.today
        )
        return DeliveryResult(destination=self.destination, success=True,
                              detail=f"sent to {', '.join(self.recipients)}")


class StorageUploadStep(DeliveryStep):
    destination = STORAGE_UPLOAD

    def __init__(self, client: StorageAPIClient):
        self.client = client

    def deliver(self, context: DeliveryContext) -> DeliveryResult:
        transaction_id = context.record.transaction_id
        if not transaction_id:
            return DeliveryResult.skipped(self.destination, 'no transaction ID')

        response = self.client.upload_pdf(
            context.document.data_uri,
            context.document.filename,
            transaction_id,
            base_url=context.base_url
        )
        return DeliveryResult(
            destination=self.destination,
            success=True,
            url=response['url'],
            record_updated=bool(response.get('airtableUpdated')),
            detail=response.get('message'),
        )


class RecordUpdateStep(DeliveryStep):
    destination = RECORD_UPDATE

    def __init__(self, client: StorageAPIClient, field_id: str):
        self.client = client
        self.field_id = field_id

    def deliver(self, context: DeliveryContext) -> DeliveryResult:
        upload = context.result(STORAGE_UPLOAD)
        if not upload or not upload.success:
            return DeliveryResult.skipped(self.destination, 'upload did not succeed')

        if upload.record_updated:
            # Upload endpoint already attached the file
            return DeliveryResult.skipped(self.destination, 'updated by upload endpoint', success=True)

        self.client.update_attachment(
            upload.url,
            context.document.filename,
            context.record.transaction_id,
            field_id=self.field_id,
            base_url=context.base_url
        )
        return DeliveryResult(destination=self.destination, success=True, url=upload.url)


class FallbackAttachStep(DeliveryStep):
    destination = FALLBACK_ATTACH

    def __init__(self, airtable: AirtableService, field_id: str):
        self.airtable = airtable
        self.field_id = field_id

    def deliver(self, context: DeliveryContext) -> DeliveryResult:
        if not context.record.transaction_id:
            return DeliveryResult.skipped(self.destination, 'no transaction ID')

        if context.succeeded(STORAGE_UPLOAD) and context.succeeded(RECORD_UPDATE):
            return DeliveryResult.skipped(self.destination, 'not needed')

        if not self.airtable.is_configured:
            return DeliveryResult(destination=self.destination, success=False,
                                  detail='Airtable credentials not configured')

        self.airtable.attach_pdf(
            context.record.transaction_id,
            context.document.data_uri,
            context.document.filename,
            field_id=self.field_id
        )
        return DeliveryResult(destination=self.destination, success=True)


class DeliveryPipeline:
    """
    Render once, then deliver through each step in order.

    Usage:
        pipeline = DeliveryPipeline.from_config(PipelineConfig.from_mapping(app.config), mail)
        report = pipeline.run(request.get_json())
    """

    def __init__(self, template_loader: TemplateLoader, renderer: DocumentRenderer, steps: List[DeliveryStep]):
        self.template_loader = template_loader
        self.renderer = renderer
        self.steps = steps

    @classmethod
    def from_config(cls, config: PipelineConfig, mail, airtable: AirtableService = None, session=None) -> 'DeliveryPipeline':
        template_loader = TemplateLoader(
            config.template_url,
            config.local_fallback_paths,
            timeout=config.http_timeout,
            session=session
        )
        renderer = DocumentRenderer(FieldMapLoader.get_or_raise(config.field_map_slug))
        storage = StorageAPIClient(
            config.storage_endpoint,
            config.record_store_endpoint,
            timeout=config.http_timeout,
            session=session
        )
        airtable = airtable or AirtableService(
            config.record_store_api_key,
            config.record_store_base_id,
            transactions_table=config.transactions_table
        )
        steps = [
            EmailStep(mail, config.email_sender, config.email_recipients),
            StorageUploadStep(storage),
            RecordUpdateStep(storage, config.attachment_field_id),
            FallbackAttachStep(airtable, config.attachment_field_id),
        ]
        return cls(template_loader, renderer, steps)

    def render(self, raw: Dict[str, Any], today: date = None):
        """
        Normalize and render.

        Raises:
            TemplateUnavailable, TextEncodingError: fatal for the submission
        """
        record = normalize_record(raw)
        template_bytes = self.template_loader.load()
        document = self.renderer.render(record, template_bytes, today=today)
        return record, document

    def run(
        self,
        raw: Dict[str, Any],
        return_pdf: bool = False,
        today: date = None,
        base_url: str = None
    ) -> DeliveryReport:
        record, document = self.render(raw, today=today)
        report = DeliveryReport(document=document)

        if return_pdf:
            report.results.append(DeliveryResult(destination=DIRECT, success=True))
            logger.info(f"Returning {document.filename} directly ({document.size} bytes)")
            return report

        context = DeliveryContext(record=record, document=document, today=today, base_url=base_url)
        for step in self.steps:
            result = step.run(context)
            context.results[result.destination] = result
            report.results.append(result)

        logger.info(
            f"Delivered {document.filename}: emailSent={report.email_sent} "
            f"attachmentSuccess={report.attachment_success}"
        )
        return report
