import os
from app import app

if __name__ == '__main__':
    # Use the PORT environment variable if available, otherwise default to 5000
    port = int(os.environ.get('PORT', 5000))
    debug = os.environ.get('DEBUG', 'false').lower() in ('true', '1', 'yes')
    app.run(host='0.0.0.0', port=port, debug=debug)
