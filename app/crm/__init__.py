import logging

from dotenv import load_dotenv
from flask import Flask, Response, request
from werkzeug.exceptions import MethodNotAllowed, NotFound
from werkzeug.http import HTTP_STATUS_CODES

from app.crm.config import load_config
from app.crm.db import init_db
from app.crm.errors import CrmError, MethodNotAllowedError, NotFoundError
from app.crm.routes import CrmContext, build_blueprint
from app.crm.store import CustomerStore
from app.crm.views import ViewRenderer


def _status_response(code: int) -> Response:
    return Response(HTTP_STATUS_CODES.get(code, "Error") + "\n", status=code, mimetype="text/plain")


def create_app(context: CrmContext | None = None) -> Flask:
    load_dotenv()
    app = Flask(__name__, template_folder="templates")
    app.config.from_mapping(load_config())
    logging.basicConfig(
        level=app.config["LOG_LEVEL"],
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if context is None:
        engine = init_db(app)
        context = CrmContext(store=CustomerStore(engine), views=ViewRenderer())
    else:
        app.extensions["sqlalchemy_engine"] = context.store.engine
    app.extensions["crm_context"] = context

    app.register_blueprint(build_blueprint(context))

    @app.errorhandler(CrmError)
    def _crm_error(e: CrmError):
        if e.status_code >= 500:
            app.logger.error(
                "%s %s failed (customer_id=%s): %s",
                request.method,
                request.path,
                e.customer_id,
                e.message,
                exc_info=e,
            )
        else:
            app.logger.warning(
                "%s %s rejected with %s (customer_id=%s): %s",
                request.method,
                request.path,
                e.status_code,
                e.customer_id,
                e.message,
            )
        return _status_response(e.status_code)

    @app.errorhandler(NotFound)
    def _err_404(e):  # type: ignore[no-redef]
        return _crm_error(NotFoundError(f"no route for {request.path}"))

    @app.errorhandler(MethodNotAllowed)
    def _err_405(e):  # type: ignore[no-redef]
        return _crm_error(MethodNotAllowedError(f"{request.method} not allowed"))

    @app.errorhandler(500)
    def _err_500(e):  # type: ignore[no-redef]
        app.logger.exception("Unhandled 500 on %s %s", request.method, request.path)
        return _status_response(500)

    logging.getLogger(__name__).info("create_app() complete; app ready to serve")
    return app
