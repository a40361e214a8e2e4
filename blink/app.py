"""FastAPI application serving the stake action."""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Callable, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel
from solana.rpc.async_api import AsyncClient

from blink.config import Settings
from blink.descriptor import build_action_descriptor, build_actions_manifest
from blink.schemas import ActionError, ActionPostRequest, ActionPostResponse, HealthCheckResponse
from stake.actions import build_stake_transaction, format_sol, parse_sol_amount
from stake.errors import InvalidInput, MalformedRequest, MissingAccount, StakeError, UpstreamFailure

logger = logging.getLogger(__name__)

INTERNAL_ERROR = "Internal server error"


def create_app(
    settings: Optional[Settings] = None,
    client: Optional[AsyncClient] = None,
    random_bytes: Optional[Callable[[int], bytes]] = None,
) -> FastAPI:
    """Creates the application.

    `client` and `random_bytes` replace the RPC connection and the random
    source; both default to the real thing.
    """
    settings = settings or Settings()
    if client is None:
        client = AsyncClient(settings.RPC_URL, commitment=settings.COMMITMENT, timeout=settings.RPC_TIMEOUT)
    options = settings.stake_options
    if random_bytes is not None:
        options = options._replace(random_bytes=random_bytes)
    vote = settings.vote_account
    headers = settings.response_headers

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Serving %s for vote account %s via %s", settings.ACTION_PATH, vote, settings.RPC_URL)
        yield
        await client.close()

    app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)
    app.state.settings = settings
    app.state.client = client

    def respond(body: Optional[BaseModel] = None, status_code: int = 200) -> Response:
        if body is None:
            return Response(status_code=status_code)
        return JSONResponse(body.model_dump(exclude_none=True), status_code=status_code)

    @app.middleware("http")
    async def action_headers(request: Request, call_next):
        response = await call_next(request)
        for name, value in headers.items():
            response.headers.setdefault(name, value)
        return response

    @app.exception_handler(InvalidInput)
    async def invalid_input(request: Request, exc: InvalidInput):
        logger.warning("Rejected %s %s: %s", request.method, request.url.path, exc)
        return respond(ActionError(error=str(exc)), 400)

    @app.exception_handler(UpstreamFailure)
    async def upstream_failure(request: Request, exc: UpstreamFailure):
        logger.error("RPC failure on %s %s: %s", request.method, request.url.path, exc, exc_info=exc)
        return respond(ActionError(error=INTERNAL_ERROR), 500)

    @app.options("/actions.json")
    @app.options(settings.ACTION_PATH)
    async def preflight():
        return respond()

    @app.get("/actions.json")
    async def actions_manifest():
        return respond(build_actions_manifest(settings))

    @app.get(settings.ACTION_PATH)
    async def action_descriptor(request: Request):
        return respond(build_action_descriptor(settings, str(request.base_url)))

    @app.post(settings.ACTION_PATH)
    async def stake(request: Request, amount: Optional[str] = None):
        sol_amount = parse_sol_amount(amount if amount is not None else settings.DEFAULT_AMOUNT)
        try:
            payload = ActionPostRequest.model_validate(await request.json())
        except ValueError as e:
            raise MalformedRequest("Invalid JSON body") from e
        if not payload.account:
            raise MissingAccount("Missing wallet account")

        try:
            staked = await build_stake_transaction(client, payload.account, vote, sol_amount, options)
        except StakeError:
            raise
        except Exception:
            logger.exception("Error building stake transaction")
            return respond(ActionError(error=INTERNAL_ERROR), 500)

        return respond(
            ActionPostResponse(
                transaction=staked.serialize(),
                message=f"Staking {format_sol(sol_amount)} SOL with {settings.VALIDATOR_NAME}",
            )
        )

    @app.get("/healthz", response_model=HealthCheckResponse)
    async def health_check():
        try:
            connected = await asyncio.wait_for(client.is_connected(), settings.RPC_TIMEOUT)
        except asyncio.TimeoutError:
            connected = False
        return HealthCheckResponse(status="ok", rpc=connected)

    return app
