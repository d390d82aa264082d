"""
Submission routes - Airtable transaction records and service health
"""
from flask import Blueprint, request, jsonify, current_app

from services.documents.exceptions import RecordStoreError
from services.documents.loader import FieldMapLoader

submissions_bp = Blueprint('submissions', __name__, url_prefix='/api')


def get_airtable():
    """Get the AirtableService from app extensions."""
    return current_app.extensions.get('airtable')


@submissions_bp.route('/transactions', methods=['POST'])
def create_transaction():
    """Create the Transactions row and one Clients row per client."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or not data:
        return jsonify({'success': False, 'error': 'Request body must be a transaction object'}), 400

    airtable = get_airtable()
    if airtable is None or not airtable.is_configured:
        current_app.logger.error("Missing Airtable credentials")
        return jsonify({'success': False, 'error': 'Missing Airtable credentials'}), 500

    try:
        result = airtable.create_transaction(data)
    except RecordStoreError as e:
        current_app.logger.error(f"Transaction submission failed: {e}")
        return jsonify({'success': False, 'error': str(e)}), 502

    response = {
        'success': True,
        'transactionId': result['transactionId'],
        'clientIds': result['clientIds'],
    }
    if result['clientErrors']:
        response['clientErrors'] = result['clientErrors']
    return jsonify(response), 201


@submissions_bp.route('/health', methods=['GET'])
def health():
    """Liveness plus what is configured."""
    config = current_app.config
    airtable = get_airtable()

    return jsonify({
        'status': 'ok',
        'fieldMaps': FieldMapLoader.all_slugs() if FieldMapLoader.is_loaded() else [],
        'template': {
            'url': config.get('TEMPLATE_URL'),
            'fallbackPaths': list(config.get('TEMPLATE_FALLBACK_PATHS') or []),
        },
        'email': {
            'host': config.get('MAIL_SERVER'),
            'port': config.get('MAIL_PORT'),
            'configured': bool(config.get('MAIL_USERNAME') and config.get('MAIL_PASSWORD')),
        },
        'airtable': {'configured': bool(airtable and airtable.is_configured)},
        'supabase': {'configured': bool(config.get('SUPABASE_URL') and config.get('SUPABASE_KEY'))},
    })
