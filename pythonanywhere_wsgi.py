import os
import sys

from dotenv import load_dotenv

# Directory holding app.py, config.py and the documents/ field maps
project_home = os.getenv('TRANSACTION_PDF_HOME', '/home/yourusername/transaction-pdf-service')
if project_home not in sys.path:
    sys.path.insert(0, project_home)

# Environment has to be loaded before config.Config reads it
load_dotenv(os.path.join(project_home, '.env'))
os.environ.setdefault('FLASK_ENV', 'production')

# Upload and record-update calls go back to this app at the request host
# unless PUBLIC_BASE_URL or the *_ENDPOINT variables point elsewhere

# Template fallback paths are relative to the working directory
os.chdir(project_home)

from app import app as application  # noqa: E402
