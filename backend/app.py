"""
Flask Application Factory - Contract-enforced API

Every contract is registered into one ContractRegistry instance at startup,
then (by default) the registry is sealed: reads are lock-free for the
lifetime of the process and late registration fails loudly.
"""

import logging
from typing import Optional

from flask import Flask
from flask_cors import CORS

from config import Config
from api.contracts import ContractRegistry, init_contracts
from api.serializers import ContractJSONProvider


logger = logging.getLogger('api.app')


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_app(registry: Optional[ContractRegistry] = None, config_object=Config) -> Flask:
    """
    Build the Flask app.

    Args:
        registry: Registry to serve from. A new one holding every endpoint
            contract is built when omitted.
        config_object: Config class (or object) loaded into app.config
    """
    app = Flask(__name__)
    app.config.from_object(config_object)
    app.json = ContractJSONProvider(app)
    _configure_logging(app.config.get('LOG_LEVEL', 'INFO'))

    CORS(app,
         resources={r"/api/*": {"origins": app.config.get('CORS_ORIGINS', '*')}},
         methods=["GET", "POST", "OPTIONS", "PUT", "DELETE"],
         allow_headers=["Content-Type", "Authorization", "X-Request-ID",
                        app.config.get('CONTRACT_VERSION_HEADER', 'X-API-Contract-Version')],
         expose_headers=["X-Request-ID", "X-API-Contract-Version", "X-Elapsed-Ms"])

    # === API CONTRACT MIDDLEWARE ===
    from api.middleware import setup_request_id_middleware, setup_error_handlers
    setup_request_id_middleware(app)
    setup_error_handlers(app)

    # Load contract schemas
    if registry is None:
        from api.contracts.schemas import register_all
        registry = register_all(ContractRegistry())
    if app.config.get('CONTRACT_SEAL_ON_STARTUP', True) and not registry.sealed:
        registry.seal()
    init_contracts(app, registry)
    logger.info(
        f"API contracts loaded: {len(registry.list_contracts())} contract(s) "
        f"in {len(registry.groups())} group(s)"
    )

    from routes.users import users_bp
    from routes.contracts import contracts_bp
    app.register_blueprint(users_bp, url_prefix='/api')
    app.register_blueprint(contracts_bp, url_prefix='/api')

    @app.route("/health", methods=["GET"])
    def health():
        return {"status": "ok", "contractsSealed": registry.sealed}

    return app


def run_app():
    """Run the development server."""
    app = create_app()
    app.run(debug=app.config.get('DEBUG', False), host="0.0.0.0", port=5000)


if __name__ == "__main__":
    run_app()
