"""Flask application factory."""
from flask import Flask, request, jsonify
from flask_wtf.csrf import CSRFProtect
from app.database import init_db
import logging
import os


def create_app(config_object='config.Config'):
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_object)

    logging.basicConfig(
        level=logging.DEBUG if app.config.get('DEBUG') else logging.INFO,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )

    # CSRF protection for form posts (disabled via WTF_CSRF_ENABLED in tests)
    CSRFProtect(app)

    from flask_wtf.csrf import CSRFError

    @app.errorhandler(CSRFError)
    def handle_csrf_error(e):
        app.logger.warning(f"CSRF Error: {e.description}")
        return jsonify({'status': 'error', 'message': 'The form has expired. Reload and try again.'}), 400

    # Error tracking in production
    if os.getenv('SENTRY_DSN') and app.config.get('ENV') == 'production':
        import sentry_sdk
        from sentry_sdk.integrations.flask import FlaskIntegration

        sentry_sdk.init(
            dsn=os.getenv('SENTRY_DSN'),
            integrations=[FlaskIntegration()],
            traces_sample_rate=0.1,
            environment=app.config.get('ENV', 'production'),
            release=os.getenv('GIT_COMMIT', 'unknown')
        )

    # Initialize database
    init_db(app)

    # Error Handlers
    from app.exceptions import DiaryError

    @app.errorhandler(DiaryError)
    def handle_diary_error(error):
        """Handle custom application exceptions."""
        if error.status_code >= 500:
            app.logger.error(f"DiaryError [{error.status_code}]: {error.message}")
        else:
            app.logger.warning(f"DiaryError [{error.status_code}]: {error.message}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(404)
    def not_found_error(error):
        return jsonify({'status': 'error', 'message': 'Not Found'}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({'status': 'error', 'message': 'Method Not Allowed'}), 405

    @app.errorhandler(500)
    @app.errorhandler(Exception)
    def internal_error(error):
        import traceback
        from werkzeug.exceptions import HTTPException
        if isinstance(error, HTTPException) and error.code and error.code < 500:
            return jsonify({'status': 'error', 'message': error.description}), error.code
        app.logger.error(f"Unhandled Exception on {request.path}: {error}")
        app.logger.error(f"Traceback: {traceback.format_exc()}")
        return jsonify({'status': 'error', 'message': 'Internal Server Error'}), 500

    # Register blueprints
    from app.blueprints.customers import customers_bp
    from app.blueprints.tickets import tickets_bp
    from app.blueprints.locations import locations_bp
    from app.blueprints.attachments import attachments_bp

    app.register_blueprint(customers_bp)
    app.register_blueprint(tickets_bp)
    app.register_blueprint(locations_bp)
    app.register_blueprint(attachments_bp)

    @app.route('/health')
    def health():
        return {'status': 'ok'}

    # CLI commands
    from app.cli_commands import init_cli_commands
    init_cli_commands(app)

    return app
