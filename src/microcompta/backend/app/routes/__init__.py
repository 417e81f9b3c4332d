"""Blueprint registrations for application routes."""

from flask import Flask

from .account import blueprint as account_blueprint
from .config import blueprint as config_blueprint
from .dashboard import blueprint as dashboard_blueprint
from .income_tax import blueprint as income_tax_blueprint
from .tva import blueprint as tva_blueprint
from .urssaf import blueprint as urssaf_blueprint


def register_routes(app: Flask) -> None:
    """Register all Flask blueprints with the provided application."""

    app.register_blueprint(account_blueprint)
    app.register_blueprint(config_blueprint)
    app.register_blueprint(dashboard_blueprint)
    app.register_blueprint(income_tax_blueprint)
    app.register_blueprint(tva_blueprint)
    app.register_blueprint(urssaf_blueprint)
