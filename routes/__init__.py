from .pdf import pdf_bp
from .storage import storage_bp
from .submissions import submissions_bp

def register_blueprints(app):
    app.register_blueprint(pdf_bp)
    app.register_blueprint(storage_bp)
    app.register_blueprint(submissions_bp)
