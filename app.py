"""
Campus Booking - Event Reservation Service
Flask application factory and initialization
"""

import os
import sqlite3
import click
import logging
from flask import Flask, g, send_from_directory
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Import configuration
from config import config, ProductionConfig

# Import extensions
from extensions import login_manager, csrf

# Import database functions
from database import close_db, init_db

from models.resource_locks import ResourceLockRegistry
from utils.api_response import api_error
from utils.messages import MESSAGES


def create_app(config_name=None):
    """
    Application factory for Flask app.

    Args:
        config_name: Configuration name ('development', 'production', 'test')

    Returns:
        Flask application instance
    """
    # Determine config
    if config_name is None:
        config_name = os.environ.get('FLASK_ENV', 'development')

    if config_name == 'production':
        ProductionConfig.validate()

    # Create Flask app
    app = Flask(__name__)

    # Load configuration
    app.config.from_object(config[config_name])

    # Initialize extensions
    initialize_extensions(app)

    # Register blueprints
    register_blueprints(app)

    # Register error handlers
    register_error_handlers(app)

    # Register CLI commands
    register_cli_commands(app)

    # Register teardown handlers
    register_teardown_handlers(app)

    # Configure logging
    configure_logging(app)

    return app


def initialize_extensions(app):
    """Initialize Flask extensions and shared state."""
    # Initialize Flask-Login
    login_manager.init_app(app)
    # Initialize CSRF Protection
    csrf.init_app(app)
    # One lock per resource key, shared by every request of this process
    app.extensions['resource_locks'] = ResourceLockRegistry()


def register_blueprints(app):
    """Register Flask blueprints."""
    # Import blueprints
    from blueprints.auth.routes import auth_bp
    from blueprints.api.routes import api_bp
    from blueprints.reservations import reservations_bp

    # JSON clients authenticate with the session cookie only
    csrf.exempt(auth_bp)
    csrf.exempt(reservations_bp)

    # Register blueprints
    app.register_blueprint(auth_bp)
    app.register_blueprint(api_bp, url_prefix='/api')
    app.register_blueprint(reservations_bp)

    @app.route('/uploads/<path:filename>')
    def uploaded_file(filename):
        """Serve stored reservation documents."""
        return send_from_directory(os.path.abspath(app.config['UPLOAD_FOLDER']), filename)


def register_error_handlers(app):
    """Register error handlers."""

    @app.errorhandler(404)
    def not_found_error(error):
        """Handle 404 errors."""
        return api_error(MESSAGES['not_found'], 404, code='NOT_FOUND')

    @app.errorhandler(405)
    def method_not_allowed_error(error):
        """Handle 405 errors."""
        return api_error('Method not allowed', 405, code='METHOD_NOT_ALLOWED')

    @app.errorhandler(413)
    def too_large_error(error):
        """Handle uploads above MAX_CONTENT_LENGTH."""
        return api_error('Upload too large', 413, code='UPLOAD_TOO_LARGE')

    @app.errorhandler(500)
    def internal_error(error):
        """Handle 500 errors."""
        # Rollback database on error
        db = g.get('db')
        if db:
            db.rollback()
        app.logger.error('Unhandled error: %s', getattr(error, 'original_exception', error))
        return api_error(MESSAGES['server_error'], 500, code='SERVER_ERROR')


def register_cli_commands(app):
    """Register Flask CLI commands."""

    @app.cli.command('init-db')
    def init_db_command():
        """Initialize database with schema and seed data."""
        click.echo('Initializing database...')
        with app.app_context():
            init_db()
        click.echo('Database initialized successfully!')

    @app.cli.command('create-user')
    @click.argument('username')
    @click.argument('email')
    @click.option('--role', type=click.Choice(['requester', 'reviewer', 'admin']),
                  default='requester', show_default=True)
    @click.option('--full-name', default=None)
    @click.password_option()
    def create_user_command(username, email, role, full_name, password):
        """Create a new user."""
        from models.user import create_user
        from utils.validators import validate_password

        valid, message = validate_password(password)
        if not valid:
            raise click.BadParameter(message, param_hint='--password')

        with app.app_context():
            try:
                user_id = create_user(
                    username=username,
                    email=email,
                    password=password,
                    role=role,
                    full_name=full_name
                )
                click.echo(f'User created successfully! ID: {user_id}')
            except (sqlite3.IntegrityError, ValueError) as e:
                raise click.ClickException(f'Error creating user: {e}')


def register_teardown_handlers(app):
    """Register teardown handlers."""

    @app.teardown_appcontext
    def teardown_db(error):
        """Close database connection at end of request."""
        close_db(error)


def configure_logging(app):
    """Configure application logging."""
    if not app.debug and not app.testing:
        # Production logging
        if not os.path.exists('logs'):
            os.mkdir('logs')

        file_handler = logging.FileHandler('logs/campus_booking.log')
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]'
        ))
        file_handler.setLevel(logging.INFO)

        # Module loggers (models.*, blueprints.*) propagate to the root logger
        root_logger = logging.getLogger()
        root_logger.addHandler(file_handler)
        root_logger.setLevel(logging.INFO)

        app.logger.setLevel(logging.INFO)
        app.logger.info('%s startup', app.config.get('APP_NAME', 'Campus Booking'))
    else:
        # Development logging
        app.logger.setLevel(logging.DEBUG)
        logging.getLogger('models').setLevel(logging.DEBUG)


# Create application instance for development server
if __name__ == '__main__':
    app = create_app()
    # host='0.0.0.0' allows access from other devices on the network
    app.run(host='0.0.0.0', debug=True)
