import logging
import logging.config
import uvicorn
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from .routers import transactions
from .config import Settings, settings, logging_config
from .db import create_engine, create_sessionmaker, init_db
from .errors import TransactionServiceError
from .services.orders import OrderValidator, create_orders_client
from .services.seed import seed_transactions
from .services.store import TransactionStore
from .services.transactions import TransactionService

logger = logging.getLogger(__name__)


def create_app(app_settings: Settings = settings) -> FastAPI:
    app = FastAPI(title="Payment Transactions Service")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(transactions.router)

    @app.exception_handler(TransactionServiceError)
    async def service_error_handler(request: Request, exc: TransactionServiceError):
        return JSONResponse(status_code=exc.status_code, content={"detail": jsonable_encoder(exc.detail)})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})

    @app.get("/")
    async def root():
        """Health check endpoint."""
        return {"message": "Payment transactions service is running"}

    @app.on_event("startup")
    async def on_startup():
        logging.config.dictConfig(logging_config(app_settings.log_level))

        engine = create_engine(app_settings.database_url)
        await init_db(engine)
        store = TransactionStore(create_sessionmaker(engine), timeout=app_settings.database_timeout)

        client = create_orders_client(app_settings.orders_service_url, timeout=app_settings.orders_service_timeout)
        policy = app_settings.validation_failure_policy
        validator = OrderValidator(client, on_validation_failure=policy)

        app.state.engine = engine
        app.state.orders_client = client
        app.state.transaction_service = TransactionService(store, validator)
        logger.info("Order validation failure policy: %s (env=%s)", policy.value, app_settings.env)

        if app_settings.should_seed:
            await seed_transactions(store)

    @app.on_event("shutdown")
    async def on_shutdown():
        await app.state.orders_client.aclose()
        await app.state.engine.dispose()

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run("payment_transactions.main:app", host=settings.app_host, port=settings.app_port,
                reload=not settings.is_production)
