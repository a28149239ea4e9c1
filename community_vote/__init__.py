from dotenv import load_dotenv
from flask import Flask
from flasgger import Swagger

from .errors import register_error_handlers
from .config import Config
from .extensions import db, migrate, jwt, ma, change_feed
from .models.token_blocklist import TokenBlocklist
from .models.polls import Poll
from .models.vote import Vote
from .swagger_config import swagger_template
from .middleware.request_id import init_request_id

load_dotenv()

def create_app(config_class=Config) -> Flask:
    app = Flask(__name__)
    app.config.from_object(config_class)
    Swagger(app, template=swagger_template(app))

    # Extensions
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    ma.init_app(app)

    # Committed inserts become live update signals
    change_feed.watch(Poll, "polls", poll_id_of=lambda poll: poll.id)
    change_feed.watch(Vote, "votes", poll_id_of=lambda vote: vote.poll_id)

    # Middleware + errors
    init_request_id(app)
    register_error_handlers(app)

    # Blueprint imports
    from .api.auth.routes import auth_bp
    from .api.resident.routes import resident_bp
    from .api.poll.routes import polls_bp
    from .api.voting.routes import voting_bp
    from .api.results.routes import results_bp
    from .api.admin.routes import admin_bp
    from .api.live.routes import live_bp

    # Blueprints
    app.register_blueprint(auth_bp, url_prefix="/api/auth")
    app.register_blueprint(resident_bp, url_prefix="/api/resident")
    app.register_blueprint(polls_bp, url_prefix="/api/polls")
    app.register_blueprint(voting_bp, url_prefix="/api/polls")
    app.register_blueprint(results_bp, url_prefix="/api/polls")
    app.register_blueprint(admin_bp, url_prefix="/api/admin")
    app.register_blueprint(live_bp, url_prefix="/api/live")

    from .cli import register_cli
    register_cli(app)

    # Health check
    @app.get("/health")
    def health():
        return {"status": "ok"}, 200

    # JWT token revocation check
    @jwt.token_in_blocklist_loader
    def is_token_revoked(jwt_header, jwt_payload) -> bool:
        jti = jwt_payload.get("jti")
        if not jti:
            return True
        return TokenBlocklist.is_blocklisted(jti)

    return app
