"""EtherBlink web service.

Routes:
- GET  /                      landing page
- GET  /create-link           creation form (?type=tip|nft_sale)
- POST /create-link           generate a link from the form
- GET  /a/{token}             resolve and render an action (JSON on request)
- POST /api/create-action     store an action (store strategy only)
- GET  /api/execute/{shortId} fetch a stored action (store strategy only)
- GET  /health, /ready, /metrics
"""

import logging
import time
import uuid
from pathlib import Path

from aiohttp import web

from etherblink.blockchain.networks import NetworkInfo
from etherblink.core.errors import (
    INVALID_LINK_MESSAGE,
    ActionNotFoundError,
    ActionValidationError,
    LinkResolutionError,
    MalformedLinkError,
    StoreWriteError,
    UnknownActionTypeError,
)
from etherblink.core.models import parse_action, validate_action
from etherblink.core.presenter import present
from etherblink.links.codec import LinkCodec, StoreLinkCodec, build_link_url
from etherblink.observability.health import HealthEndpoints
from etherblink.observability.logging import clear_request_id, set_request_id
from etherblink.observability.metrics import REQUEST_DURATION

from .pages import REQUIRED_FIELDS_MESSAGE, PageRenderer

logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).parent / "static"

FORM_FIELDS = {
    "tip": ("recipient_address", "tip_amount_eth"),
    "nft_sale": ("contract_address", "token_id", "price"),
}


@web.middleware
async def request_context_middleware(request: web.Request, handler) -> web.StreamResponse:
    """Tag logs with a request ID and time the request."""
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
    set_request_id(request_id)
    started = time.monotonic()
    try:
        response = await handler(request)
        response.headers["X-Request-ID"] = request_id
        return response
    finally:
        resource = request.match_info.route.resource
        route = resource.canonical if resource is not None else "unmatched"
        REQUEST_DURATION.labels(route=route).observe(time.monotonic() - started)
        clear_request_id()


def _wants_json(request: web.Request) -> bool:
    return "application/json" in request.headers.get("Accept", "")


class EtherBlinkServer:
    """HTTP server for link pages and the action API.

    Parameters
    ----------
    codec : LinkCodec
        Encodes and resolves link tokens.
    network : NetworkInfo
        Chain the actions execute on.
    base_url : str
        Public base URL used when composing links.
    health : HealthEndpoints | None
        Health/readiness/metrics handlers; a bare set is created if None.
    host : str
        Host to bind to.
    port : int
        Port to bind to.
    """

    def __init__(
        self,
        codec: LinkCodec,
        network: NetworkInfo,
        base_url: str,
        health: HealthEndpoints | None = None,
        host: str = "0.0.0.0",  # noqa: S104
        port: int = 8080,
    ):
        self._codec = codec
        self._network = network
        self._base_url = base_url
        self._health = health or HealthEndpoints()
        self._host = host
        self._port = port
        self._pages = PageRenderer(network)
        self._runner: web.AppRunner | None = None
        self._site: web.TCPSite | None = None

    @property
    def codec(self) -> LinkCodec:
        return self._codec

    @property
    def network(self) -> NetworkInfo:
        return self._network

    @property
    def health(self) -> HealthEndpoints:
        return self._health

    def create_app(self) -> web.Application:
        """Build the aiohttp application with all routes."""
        app = web.Application(middlewares=[request_context_middleware])
        app.router.add_get("/", self._handle_home)
        app.router.add_get("/create-link", self._handle_create_form)
        app.router.add_post("/create-link", self._handle_create_submit)
        app.router.add_get("/a/{token}", self._handle_action)
        if isinstance(self._codec, StoreLinkCodec):
            app.router.add_post("/api/create-action", self._handle_api_create)
            app.router.add_get("/api/execute/{short_id}", self._handle_api_execute)
        app.router.add_static("/static", STATIC_DIR)
        self._health.add_routes(app)
        return app

    async def start(self) -> None:
        """Start serving."""
        self._runner = web.AppRunner(self.create_app())
        await self._runner.setup()
        self._site = web.TCPSite(self._runner, self._host, self._port)
        await self._site.start()

        logger.info(
            "Web server started",
            extra={"host": self._host, "port": self._port, "strategy": self._codec.strategy.value},
        )

    async def stop(self) -> None:
        """Stop serving and release the codec's store."""
        if self._runner:
            await self._runner.cleanup()
            self._runner = None
            self._site = None
            logger.info("Web server stopped")
        await self._codec.close()

    def _html(self, body: str, status: int = 200) -> web.Response:
        return web.Response(text=body, content_type="text/html", status=status)

    async def _handle_home(self, _request: web.Request) -> web.Response:
        return self._html(self._pages.home())

    async def _handle_create_form(self, request: web.Request) -> web.Response:
        action_type = request.query.get("type", "tip")
        return self._html(self._pages.create_form(action_type))

    async def _handle_create_submit(self, request: web.Request) -> web.Response:
        """Validate the form, encode the action and show the link."""
        form = await request.post()
        action_type = str(form.get("action_type", "tip"))
        if action_type not in FORM_FIELDS:
            return self._html(self._pages.create_form(error="Unsupported action type."), 400)

        values = {
            name: str(form.get(name, "")).strip()
            for name in (*FORM_FIELDS[action_type], "description")
        }
        if not all(values[name] for name in FORM_FIELDS[action_type]):
            return self._html(
                self._pages.create_form(
                    action_type, values, REQUIRED_FIELDS_MESSAGE[action_type]
                ),
                400,
            )

        data = {"action_type": action_type, **values}
        if not data["description"]:
            data.pop("description")

        try:
            action = parse_action(data)
            validate_action(action)
        except (ActionValidationError, MalformedLinkError) as e:
            return self._html(self._pages.create_form(action_type, values, str(e)), 400)

        try:
            token = await self._codec.encode(action)
        except StoreWriteError as e:
            logger.error("Link generation failed", extra={"error": str(e)})
            return self._html(
                self._pages.create_form(action_type, values, "Failed to generate link."), 500
            )

        link = build_link_url(self._base_url, token)
        metadata = present(action, self._network.currency_symbol)
        return self._html(self._pages.link_created(link, metadata))

    async def _handle_action(self, request: web.Request) -> web.Response:
        """Resolve a link token and render the action."""
        token = request.match_info["token"]
        try:
            action = await self._codec.resolve(token)
        except LinkResolutionError:
            if _wants_json(request):
                return web.json_response({"error": INVALID_LINK_MESSAGE}, status=404)
            return self._html(self._pages.invalid_link(), 404)

        metadata = present(action, self._network.currency_symbol)
        if _wants_json(request):
            return web.json_response(
                {
                    "action": action.model_dump(exclude_none=True),
                    "metadata": metadata.to_dict(),
                    "chain_id": self._network.chain_id,
                }
            )
        link = build_link_url(self._base_url, token)
        return self._html(self._pages.action(link, action, metadata))

    async def _handle_api_create(self, request: web.Request) -> web.Response:
        """Store an action from a flat JSON body."""
        try:
            body = await request.json()
        except ValueError:
            return web.json_response({"error": "Request body must be JSON"}, status=400)

        try:
            action = parse_action(body)
            validate_action(action)
        except (MalformedLinkError, UnknownActionTypeError, ActionValidationError) as e:
            return web.json_response({"error": str(e)}, status=400)

        try:
            token, record = await self._codec.encode_record(action)
        except StoreWriteError as e:
            logger.error("Create action failed", extra={"error": str(e)})
            return web.json_response({"error": str(e)}, status=500)

        return web.json_response(
            {
                "id": record.id,
                "short_id": record.short_id,
                "short_url": build_link_url(self._base_url, token),
                "created_at": record.created_at.isoformat(),
            }
        )

    async def _handle_api_execute(self, request: web.Request) -> web.Response:
        """Return a stored action as a flat JSON row."""
        short_id = request.match_info["short_id"]
        try:
            record = await self._codec.store.get(short_id)
        except ActionNotFoundError:
            return web.json_response({"error": "Action not found"}, status=404)
        return web.json_response(record.to_row())
