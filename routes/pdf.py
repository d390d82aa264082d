"""
PDF routes - render the transaction summary and deliver it
"""
from flask import Blueprint, request, jsonify, current_app

from services.documents.exceptions import DocumentError

pdf_bp = Blueprint('pdf', __name__, url_prefix='/api')


def get_pipeline():
    """Get the DeliveryPipeline built at app startup."""
    return current_app.extensions.get('delivery_pipeline')


@pdf_bp.route('/generate-pdf', methods=['POST'])
def generate_pdf():
    """
    Render the summary for a submitted transaction.

    With ?returnPdf=true the PDF comes back as base64 and nothing is
    delivered; otherwise it is emailed and attached to the Airtable record.
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({'success': False, 'error': 'Request body must be a transaction object'}), 400

    pipeline = get_pipeline()
    if pipeline is None:
        current_app.logger.error("Delivery pipeline not configured")
        return jsonify({'success': False, 'error': 'PDF service is not configured'}), 500

    return_pdf = request.args.get('returnPdf', '').lower() == 'true'

    try:
        report = pipeline.run(data, return_pdf=return_pdf, base_url=request.host_url)
    except DocumentError as e:
        current_app.logger.error(f"PDF generation failed: {e}")
        return jsonify({'success': False, 'error': f"Failed to generate PDF: {e}"}), 500
    except Exception as e:
        current_app.logger.exception(f"Unexpected error generating PDF: {e}")
        return jsonify({'success': False, 'error': 'An unexpected error occurred while generating the PDF'}), 500

    return jsonify(report.to_dict())
