"""
WSGI entry point (Elastic Beanstalk looks for 'application')

    gunicorn application:application
"""
from backend.app import app as application

# For local testing
if __name__ == "__main__":
    application.run(debug=True)
