"""WebServer - JSON HTTP API over the user and hunt stores."""

import functools
import json
import logging
from typing import Any

from aiohttp import web

from .auth import tokens
from .auth.store import UserStore
from .errors import InvalidHuntError, PathHeroError
from .hunts import HuntStore

logger = logging.getLogger(__name__)

TOKEN_COOKIE = "pathhero_token"

_dumps = functools.partial(json.dumps, default=str)


def json_response(data: Any, status: int = 200) -> web.Response:
    """JSON response that renders ObjectIds as strings."""
    return web.json_response(data, status=status, dumps=_dumps)


def _json_error(exc_class: type[web.HTTPException], message: str) -> web.HTTPException:
    return exc_class(
        text=json.dumps({"error": message}), content_type="application/json"
    )


def _field(data: dict[str, Any], name: str) -> str:
    """Text value of a credential field; missing or null reads as empty."""
    value = data.get(name)
    return "" if value is None else str(value)


@web.middleware
async def error_middleware(request: web.Request, handler):
    """Translate store failures into JSON error responses."""
    try:
        return await handler(request)
    except InvalidHuntError as e:
        return json_response({"error": str(e)}, status=400)
    except PathHeroError as e:
        logger.error(f"{request.method} {request.path} failed: {e}", exc_info=True)
        return json_response({"error": "Internal server error"}, status=500)


class WebServer:
    """HTTP front end for Path Hero.

    Sessions are signed tokens kept in an httponly cookie. Hunt routes that
    change data require a session; reads are public so players can load a
    hunt from its URL.
    """

    def __init__(
        self,
        config: dict[str, Any],
        user_store: UserStore,
        hunt_store: HuntStore,
    ) -> None:
        if user_store is None or hunt_store is None:
            raise ValueError("WebServer requires a UserStore and a HuntStore")
        auth_config = config.get("auth", {})
        self.user_store = user_store
        self.hunt_store = hunt_store
        self.host = config.get("host", "localhost")
        self.port = config.get("port", 3000)
        self.secure_cookies = config.get("secure_cookies", False)
        self.jwt_secret = auth_config.get("jwt_secret", "")
        self.token_expiry_hours = auth_config.get("token_expiry_hours", 24)
        self.app = None
        self.runner = None
        self.site = None

    def build_app(self) -> web.Application:
        app = web.Application(middlewares=[error_middleware])
        app.router.add_post("/signup", self.handle_signup)
        app.router.add_post("/login", self.handle_login)
        app.router.add_get("/logout", self.handle_logout)
        app.router.add_get("/api/hunts", self.handle_user_hunts)
        app.router.add_post("/api/hunts", self.handle_add_hunt)
        app.router.add_get("/api/hunts/all", self.handle_all_hunts)
        app.router.add_get("/api/hunts/{id}", self.handle_get_hunt)
        app.router.add_put("/api/hunts/{id}", self.handle_update_hunt)
        app.router.add_delete("/api/hunts/{id}", self.handle_remove_hunt)
        return app

    async def start(self) -> None:
        """Start aiohttp web server."""
        self.app = self.build_app()
        self.runner = web.AppRunner(self.app)
        await self.runner.setup()
        self.site = web.TCPSite(self.runner, self.host, self.port)
        await self.site.start()
        logger.info(f"Path hero listening at http://{self.host}:{self.port}")

    async def stop(self) -> None:
        """Stop web server gracefully."""
        if self.site:
            await self.site.stop()
        if self.runner:
            await self.runner.cleanup()
        logger.info("WebServer stopped")

    # -- helpers ---------------------------------------------------------

    async def _read_body(self, request: web.Request) -> dict[str, Any]:
        if request.content_type == "application/json":
            try:
                data = await request.json()
            except json.JSONDecodeError:
                raise _json_error(web.HTTPBadRequest, "Malformed JSON body")
        else:
            data = dict(await request.post())
        if not isinstance(data, dict):
            raise _json_error(web.HTTPBadRequest, "Expected a JSON object")
        return data

    def _session_user(self, request: web.Request) -> str | None:
        token = request.cookies.get(TOKEN_COOKIE)
        if not token:
            return None
        return tokens.verify_token(token, self.jwt_secret)

    def _require_user(self, request: web.Request) -> str:
        userid = self._session_user(request)
        if userid is None:
            raise _json_error(web.HTTPUnauthorized, "Unauthorized - please login")
        return userid

    def _login_response(self, userid: str) -> web.Response:
        token = tokens.create_token(userid, self.jwt_secret, self.token_expiry_hours)
        response = json_response({"id": userid})
        response.set_cookie(
            TOKEN_COOKIE,
            token,
            max_age=self.token_expiry_hours * 3600,
            httponly=True,
            secure=self.secure_cookies,
            samesite="Lax",
        )
        return response

    # -- auth ------------------------------------------------------------

    async def handle_signup(self, request: web.Request) -> web.Response:
        """Create the user if needed, then log in with the given password."""
        data = await self._read_body(request)
        username = _field(data, "username").strip()
        password = _field(data, "password")
        if not username or not password:
            return json_response({"error": "Username and password required"}, status=400)

        await self.user_store.find_or_create_user(username, password)
        result = await self.user_store.validate_user(username, password)
        if not result.ok:
            logger.info(f"Signup rejected for existing user {username!r}")
            return json_response({"error": result.message}, status=401)

        logger.info(f"Signup: {username}")
        return self._login_response(result.id)

    async def handle_login(self, request: web.Request) -> web.Response:
        """Authenticate user and set session cookie."""
        data = await self._read_body(request)
        username = _field(data, "username").strip()
        password = _field(data, "password")

        result = await self.user_store.validate_user(username, password)
        if not result.ok:
            logger.info(f"Login failed for {username!r} from {request.remote}")
            return json_response({"error": result.message}, status=401)

        logger.info(f"Login: {result.id}")
        return self._login_response(result.id)

    async def handle_logout(self, request: web.Request) -> web.Response:
        """Clear session cookie."""
        response = json_response({"message": "logged out"})
        response.del_cookie(TOKEN_COOKIE)
        return response

    # -- hunts -----------------------------------------------------------

    async def handle_user_hunts(self, request: web.Request) -> web.Response:
        userid = self._require_user(request)
        return json_response(await self.hunt_store.get_user_hunts(userid))

    async def handle_add_hunt(self, request: web.Request) -> web.Response:
        userid = self._require_user(request)
        hunt = await self._read_body(request)
        hunt["creatorId"] = userid
        url = await self.hunt_store.add_hunt(hunt)
        logger.info(f"Hunt created by {userid}: {url}")
        return json_response({"url": url}, status=201)

    async def handle_all_hunts(self, request: web.Request) -> web.Response:
        return json_response(await self.hunt_store.get_all_hunts())

    async def handle_get_hunt(self, request: web.Request) -> web.Response:
        hunt = await self.hunt_store.get_hunt_by_id(request.match_info["id"])
        if hunt is None:
            return json_response({"error": "Hunt not found"}, status=404)
        return json_response(hunt)

    async def handle_update_hunt(self, request: web.Request) -> web.Response:
        userid = self._require_user(request)
        hunt = await self._read_body(request)
        hunt["_id"] = request.match_info["id"]
        hunt.setdefault("creatorId", userid)
        updated = await self.hunt_store.update_hunt(hunt)
        if updated is None:
            return json_response({"error": "Hunt not found"}, status=404)
        return json_response(updated)

    async def handle_remove_hunt(self, request: web.Request) -> web.Response:
        userid = self._require_user(request)
        removed = await self.hunt_store.remove_hunt_by_id(request.match_info["id"])
        if removed is None:
            return json_response({"error": "Hunt not found"}, status=404)
        logger.info(f"Hunt {removed['_id']} removed by {userid}")
        return json_response(removed)
