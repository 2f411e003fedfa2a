from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_bcrypt import Bcrypt
from flask_login import LoginManager
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
bcrypt = Bcrypt()
login_manager = LoginManager()
migrate = Migrate()
socketio = SocketIO(async_mode=None)

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(str(flask_app.config.get('LOG_LEVEL', 'INFO')).upper())

    allowed_origins = flask_app.config.get('CORS_ORIGINS') or []

    db.init_app(flask_app)
    bcrypt.init_app(flask_app)
    login_manager.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Gate password is only ever compared against its hash
    if not flask_app.config.get('ACCESS_PASSWORD_HASH'):
        flask_app.config['ACCESS_PASSWORD_HASH'] = bcrypt.generate_password_hash(
            flask_app.config['ACCESS_PASSWORD']
        ).decode('utf-8')

    from app.main import main
    flask_app.register_blueprint(main, url_prefix='/api')

    from app.api.listings import listings
    flask_app.register_blueprint(listings, url_prefix='/api/listings')

    from app.api.cleanup import cleanup
    flask_app.register_blueprint(cleanup, url_prefix='/api')

    from app.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    from app.models import GateVisitor

    @login_manager.user_loader
    def load_visitor(visitor_id):
        return GateVisitor.from_session_id(visitor_id)

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({'error': 'Access password required'}), 401

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database."""
        from app.models import seed_listings
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            created = seed_listings()
            print(f'Database has been reset and seeded with {created} listings!')

    @click.command('cleanup-listings')
    def cleanup_listings_command():
        """Deletes listings past their start time plus the grace period."""
        from app.services.listings.cleanup import run_cleanup
        with flask_app.app_context():
            result = run_cleanup()
        if result['success']:
            click.echo(result['message'])
        else:
            raise click.ClickException(result['error'])

    flask_app.cli.add_command(db_reset_command)
    flask_app.cli.add_command(cleanup_listings_command)

    return flask_app
