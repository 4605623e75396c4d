from flask import Flask
from flask_cors import CORS

from .astro.engine import SwissEphemeris
from .chart_calc import EPHEMERIS_KEY
from .config import Config
from .logging_config import configure_logging
from .routes import bp


def create_app(ephemeris=None, **overrides):
    """
    Application factory.

    ``ephemeris`` replaces the Swiss Ephemeris collaborator (tests inject a
    fake one); ``overrides`` replace individual Config values.
    """
    app = Flask(__name__)
    settings = dict(Config.as_dict(), **overrides)
    try:
        Config.validate(settings)
    except ValueError as e:
        raise RuntimeError(str(e)) from e
    app.config.update(settings)

    configure_logging(app)

    if ephemeris is None:
        ephemeris = SwissEphemeris(settings["EPHE_PATH"], settings["AYANAMSHA"], settings["NODE_TYPE"])
    app.extensions[EPHEMERIS_KEY] = ephemeris

    CORS(app, resources={r"/*": {"origins": settings["ALLOWED_ORIGINS"]}})

    app.register_blueprint(bp)

    @app.get("/healthz")
    def healthz():
        return {"ok": True}, 200

    app.logger.info(
        f"Configured ayanamsha={settings['AYANAMSHA']} houseSystem={settings['HOUSE_SYSTEM']} "
        f"nodeType={settings['NODE_TYPE']} ephemeris={type(ephemeris).__name__}"
    )
    return app
