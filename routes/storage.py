"""
Storage routes - PDF upload to Supabase and Airtable attachment updates
"""
import base64
import binascii

from flask import Blueprint, request, jsonify, current_app

from services.documents.exceptions import RecordStoreError
from services.supabase_storage import upload_transaction_pdf

storage_bp = Blueprint('storage', __name__, url_prefix='/api')

DATA_URI_PREFIX = 'data:application/pdf;base64,'
MIN_INLINE_PDF_LENGTH = 100


def get_airtable():
    """Get the AirtableService from app extensions."""
    return current_app.extensions.get('airtable')


def decode_pdf_data(pdf_data: str) -> bytes:
    """Data URI or bare base64 to bytes."""
    if ',' in pdf_data and pdf_data.startswith('data:'):
        pdf_data = pdf_data.split(',', 1)[1]
    return base64.b64decode(pdf_data, validate=True)


def to_attachment_url(pdf_data: str) -> str:
    """URLs and data URIs pass through; bare base64 gets the data URI prefix."""
    if pdf_data.startswith('http') or pdf_data.startswith(DATA_URI_PREFIX):
        return pdf_data
    return f"{DATA_URI_PREFIX}{pdf_data}"


@storage_bp.route('/supabase-pdf-upload', methods=['POST'])
def supabase_pdf_upload():
    """Upload a PDF to public storage and, given a record ID, attach its URL."""
    data = request.get_json(silent=True) or {}

    pdf_data = data.get('pdfData')
    filename = data.get('filename') or 'transaction.pdf'
    transaction_id = data.get('transactionId')

    if not pdf_data or not isinstance(pdf_data, str):
        return jsonify({'success': False, 'error': 'No PDF data provided'}), 400

    try:
        file_data = decode_pdf_data(pdf_data)
    except (binascii.Error, ValueError) as e:
        current_app.logger.warning(f"Invalid PDF data for {filename}: {e}")
        return jsonify({'success': False, 'error': 'Invalid PDF data'}), 400

    try:
        uploaded = upload_transaction_pdf(
            file_data,
            filename,
            bucket=current_app.config.get('SUPABASE_BUCKET', 'transaction-documents'),
            supabase_url=current_app.config.get('SUPABASE_URL'),
            supabase_key=current_app.config.get('SUPABASE_KEY')
        )
    except Exception as e:
        # supabase-py raises its own storage and HTTP error types
        current_app.logger.error(f"Supabase upload of {filename} failed: {e}")
        return jsonify({'success': False, 'error': f"Upload failed: {e}"}), 500

    airtable_updated = False
    airtable = get_airtable()
    if transaction_id and airtable is not None and airtable.is_configured:
        try:
            airtable.attach_pdf(
                transaction_id,
                uploaded['url'],
                filename,
                field_id=current_app.config.get('AIRTABLE_ATTACHMENT_FIELD_ID', 'fldhrYdoFwtNfzdFY')
            )
            airtable_updated = True
        except RecordStoreError as e:
            current_app.logger.warning(f"Uploaded {filename} but Airtable update failed: {e}")

    if airtable_updated:
        message = 'PDF uploaded and attached to Airtable'
    elif transaction_id:
        message = 'PDF uploaded but Airtable update failed'
    else:
        message = 'PDF uploaded'

    return jsonify({
        'success': True,
        'message': message,
        'url': uploaded['url'],
        'bucket': uploaded['bucket'],
        'airtableUpdated': airtable_updated
    })


@storage_bp.route('/update-airtable-attachment', methods=['POST'])
def update_airtable_attachment():
    """Point a transaction's attachment field at a PDF URL or inline PDF."""
    data = request.get_json(silent=True) or {}

    pdf_data = data.get('pdfData')
    filename = data.get('filename') or 'transaction.pdf'
    record_id = data.get('transactionId') or data.get('recordId')
    field_id = data.get('fieldId') or current_app.config.get('AIRTABLE_ATTACHMENT_FIELD_ID', 'fldhrYdoFwtNfzdFY')

    if not pdf_data:
        return jsonify({'success': False, 'error': 'Missing attachment data'}), 400

    if not isinstance(pdf_data, str) or (
            not pdf_data.startswith('http') and len(pdf_data) < MIN_INLINE_PDF_LENGTH):
        return jsonify({'success': False, 'error': 'Invalid PDF data format'}), 400

    if not record_id:
        return jsonify({'success': False, 'error': 'No transaction ID or record ID provided'}), 400

    airtable = get_airtable()
    if airtable is None or not airtable.is_configured:
        current_app.logger.error("Missing Airtable credentials")
        return jsonify({'success': False, 'error': 'Missing Airtable credentials'}), 500

    try:
        airtable.attach_pdf_with_retry(
            record_id,
            to_attachment_url(pdf_data),
            filename,
            field_id=field_id,
            attempts=current_app.config.get('AIRTABLE_UPDATE_ATTEMPTS', 3),
            delay=current_app.config.get('AIRTABLE_RETRY_DELAY', 1.0)
        )
    except RecordStoreError as e:
        current_app.logger.error(f"Airtable attachment for {record_id} failed: {e}")
        return jsonify({'success': False, 'error': f"Airtable operation failed: {e}"}), 500

    return jsonify({
        'success': True,
        'message': 'PDF attached to Airtable successfully',
        'recordId': record_id,
        'attachmentField': field_id
    })
