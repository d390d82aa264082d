import logging

from flask import Flask
from flask_mail import Mail

from config import PipelineConfig
from routes import register_blueprints
from services.airtable_service import AirtableService
from services.delivery_pipeline import DeliveryPipeline
from services.documents import FieldMapLoader

def create_app(test_config=None):
    app = Flask(__name__)
    app.config.from_object('config.Config')
    if test_config:
        app.config.update(test_config)

    logging.basicConfig(
        level=app.config.get('LOG_LEVEL', 'INFO'),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )
    app.logger.setLevel(app.config.get('LOG_LEVEL', 'INFO'))

    # Fail fast on a broken field map
    FieldMapLoader.load_all()

    # Initialize Flask-Mail
    mail = Mail()
    mail.init_app(app)

    app.extensions['airtable'] = AirtableService(
        app.config.get('AIRTABLE_API_KEY'),
        app.config.get('AIRTABLE_BASE_ID'),
        transactions_table=app.config.get('AIRTABLE_TRANSACTIONS_TABLE', 'Transactions'),
        clients_table=app.config.get('AIRTABLE_CLIENTS_TABLE', 'Clients')
    )
    app.extensions['delivery_pipeline'] = DeliveryPipeline.from_config(
        PipelineConfig.from_mapping(app.config), mail, airtable=app.extensions['airtable']
    )

    # Register blueprints
    register_blueprints(app)

    return app

app = create_app()

if __name__ == '__main__':
    app.run(host='0.0.0.0', port=5005, debug=True)
